"""Serialize the board tree to plain dicts."""

import json

from martrello.model.node import ListNode, Node


def card_to_dict(card: Node) -> dict:
    return {
        "id": card.id,
        "list_id": card.list_id,
        "title": card.title or "",
        "description": card.description or "",
        "position": card.position,
    }


def list_to_dict(lst: Node) -> dict:
    return {
        "id": lst.id,
        "board_id": lst.board_id,
        "title": lst.title or "",
        "position": lst.position,
        "cards": [card_to_dict(card) for card in lst.cards],
    }


def board_to_dict(board: Node) -> dict:
    return {
        "id": board.id,
        "title": board.title or "",
        "description": board.description or "",
        "background": board.background or "",
        "lists": [list_to_dict(lst) for lst in board.lists],
    }


def boards_to_list(boards: ListNode) -> list[dict]:
    """Deep plain copy of every board, in order."""
    return [board_to_dict(board) for board in boards]


def dumps(boards: ListNode) -> str:
    """Stable JSON text of the whole tree, for comparisons and output."""
    return json.dumps(boards_to_list(boards), indent=2, sort_keys=True)
