"""Reactive board tree and ordered-collection store."""

from martrello.model.loader import board_from_dict, boards_from_dicts, card_from_dict, list_from_dict
from martrello.model.node import ListNode, Node
from martrello.model.position import check_dense, is_dense, renumber
from martrello.model.store import BoardStore, Snapshot
from martrello.model.writer import board_to_dict, boards_to_list, card_to_dict, list_to_dict

__all__ = [
    "BoardStore",
    "ListNode",
    "Node",
    "Snapshot",
    "board_from_dict",
    "board_to_dict",
    "boards_from_dicts",
    "boards_to_list",
    "card_from_dict",
    "card_to_dict",
    "check_dense",
    "is_dense",
    "list_from_dict",
    "list_to_dict",
    "renumber",
]
