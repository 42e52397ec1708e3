"""Build the board tree from server payloads or plain dicts."""

from martrello.ids import to_local_id
from martrello.model.node import ListNode, Node
from martrello.model.position import renumber


def _ordered(items: list[dict]) -> list[dict]:
    """Sort by position, falling back to id for ties and missing positions."""

    def key(item):
        position = item.get("position")
        try:
            numeric_id = int(item.get("id"))
        except (TypeError, ValueError):
            numeric_id = 0
        return (position if isinstance(position, int) else 0, numeric_id)

    return sorted(items or [], key=key)


def card_from_dict(data: dict, list_id: str | None = None) -> Node:
    """Build a card Node. Position is left for the caller to renumber."""
    parent_id = list_id if list_id is not None else data.get("list_id", data.get("listId"))
    return Node(
        id=to_local_id(data["id"]),
        list_id=to_local_id(parent_id) if parent_id is not None else "",
        title=data.get("title") or "",
        description=data.get("description") or "",
        position=data.get("position", 0),
    )


def list_from_dict(data: dict, board_id: str | None = None) -> Node:
    """Build a list Node with its cards ordered and renumbered."""
    list_id = to_local_id(data["id"])
    parent_id = board_id if board_id is not None else data.get("board_id", data.get("boardId"))
    cards = ListNode()
    for card_data in _ordered(data.get("cards", [])):
        card = card_from_dict(card_data, list_id)
        cards[card.id] = card
    renumber(cards)
    return Node(
        id=list_id,
        board_id=to_local_id(parent_id) if parent_id is not None else "",
        title=data.get("title") or "",
        position=data.get("position", 0),
        cards=cards,
    )


def board_from_dict(data: dict) -> Node:
    """Build a board Node with lists and cards ordered and renumbered."""
    board_id = to_local_id(data["id"])
    lists = ListNode()
    for list_data in _ordered(data.get("lists", [])):
        lst = list_from_dict(list_data, board_id)
        lists[lst.id] = lst
    renumber(lists)
    return Node(
        id=board_id,
        title=data.get("title") or "",
        description=data.get("description") or "",
        background=data.get("background") or "",
        lists=lists,
    )


def boards_from_dicts(payload: list[dict]) -> ListNode:
    """Build the top-level boards collection, keeping payload order."""
    boards = ListNode()
    for board_data in payload or []:
        board = board_from_dict(board_data)
        boards[board.id] = board
    return boards
