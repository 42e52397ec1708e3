"""In-memory board tree with ordered move/insert/remove operations.

The store owns the tree Board → List → Card. Every structural change
renumbers the affected container and then checks that positions are
dense. Operations validate their arguments before touching the tree,
so a failed call leaves the store exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from martrello.errors import NotFound, ValidationError
from martrello.model.loader import board_from_dict, boards_from_dicts, card_from_dict, list_from_dict
from martrello.model.node import ListNode, Node
from martrello.model.position import check_dense, renumber
from martrello.model.writer import boards_to_list

BOARD_FIELDS = ("title", "description", "background")
LIST_FIELDS = ("title",)
CARD_FIELDS = ("title", "description")


@dataclass(frozen=True)
class Snapshot:
    """Deep plain copy of the tree at a store version."""

    version: int
    boards: list[dict] = field(default_factory=list)


def require_title(title: str | None) -> str:
    """Return the stripped title, or raise ValidationError if empty."""
    stripped = (title or "").strip()
    if not stripped:
        raise ValidationError("title must not be empty")
    return stripped


def _clamp(index: int | None, length: int) -> int:
    if index is None:
        return length
    return max(0, min(index, length))


class BoardStore:
    """Ordered collection of boards, lists and cards.

    Construct one per application and pass it to the controller, the
    drag adapter and the UI.
    """

    def __init__(self, boards: list[dict] | None = None) -> None:
        self.boards = ListNode()
        self.version = 0
        self._listeners: list[Callable[[int], None]] = []
        if boards:
            self.load(boards)

    def _bump(self) -> None:
        self.version += 1
        for callback in list(self._listeners):
            callback(self.version)

    def watch(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """Call callback(version) after every change. Returns an unwatch callable."""
        self._listeners.append(callback)

        def unwatch() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unwatch

    # -- lookups --

    def get_board(self, board_id: str) -> Node:
        board = self.boards[board_id]
        if board is None:
            raise NotFound("board", board_id)
        return board

    def get_list(self, list_id: str) -> Node:
        for board in self.boards:
            lst = board.lists[list_id]
            if lst is not None:
                return lst
        raise NotFound("list", list_id)

    def get_card(self, card_id: str) -> Node:
        return self.find_card_list(card_id).cards[card_id]

    def has_list(self, list_id: str) -> bool:
        return any(list_id in board.lists for board in self.boards)

    def has_card(self, card_id: str) -> bool:
        return any(card_id in lst.cards for board in self.boards for lst in board.lists)

    def find_card_list(self, card_id: str) -> Node:
        """Find the list containing a card."""
        for board in self.boards:
            for lst in board.lists:
                if card_id in lst.cards:
                    return lst
        raise NotFound("card", card_id)

    def find_card_index(self, card_id: str) -> int:
        return self.find_card_list(card_id).cards.index(card_id)

    def find_list_board(self, list_id: str) -> Node:
        """Find the board containing a list."""
        for board in self.boards:
            if list_id in board.lists:
                return board
        raise NotFound("list", list_id)

    def find_list_index(self, list_id: str) -> int:
        return self.find_list_board(list_id).lists.index(list_id)

    # -- cards --

    def insert_card(self, list_id: str, card: Node | dict, at_index: int | None = None) -> Node:
        """Insert card into list at at_index (clamped; append when None)."""
        target = self.get_list(list_id)
        if isinstance(card, dict):
            card = card_from_dict(card, list_id)
        if not card.id:
            raise ValidationError("card has no id")
        if self.has_card(card.id):
            raise ValidationError(f"card '{card.id}' already exists")
        card.list_id = target.id
        card = target.cards.insert(card.id, card, _clamp(at_index, len(target.cards)))
        renumber(target.cards)
        check_dense(target.cards, target.path)
        self._bump()
        return card

    def remove_card(self, card_id: str) -> tuple[Node, str, int]:
        """Remove a card. Returns (card, from_list_id, from_index)."""
        source = self.find_card_list(card_id)
        from_index = source.cards.index(card_id)
        card = source.cards.pop(card_id)
        renumber(source.cards)
        check_dense(source.cards, source.path)
        self._bump()
        return card, source.id, from_index

    def move_card(self, card_id: str, to_list_id: str, to_index: int | None = None) -> bool:
        """Move a card to to_list_id so that it ends up at to_index.

        The index is applied after the card has been removed from its
        source, so within one list [A, B, C] with B moved to 2 gives
        [A, C, B]. Returns False when the card already sits there.
        """
        source = self.find_card_list(card_id)
        target = self.get_list(to_list_id)
        from_index = source.cards.index(card_id)

        if source is target:
            insert_pos = _clamp(to_index, len(source.cards) - 1)
            if insert_pos == from_index:
                return False
            source.cards.move(card_id, insert_pos)
            renumber(source.cards)
            check_dense(source.cards, source.path)
            self._bump()
            return True

        card = source.cards.pop(card_id)
        renumber(source.cards)
        card.list_id = target.id
        target.cards.insert(card_id, card, _clamp(to_index, len(target.cards)))
        renumber(target.cards)
        check_dense(source.cards, source.path)
        check_dense(target.cards, target.path)
        self._bump()
        return True

    def update_card(self, card_id: str, **fields) -> Node:
        """Set title/description on a card."""
        card = self.get_card(card_id)
        changes = self._validated_fields(fields, CARD_FIELDS)
        for key, value in changes.items():
            setattr(card, key, value)
        self._bump()
        return card

    # -- lists --

    def insert_list(self, board_id: str, lst: Node | dict, at_index: int | None = None) -> Node:
        """Insert a list into a board at at_index (clamped; append when None)."""
        board = self.get_board(board_id)
        if isinstance(lst, dict):
            lst = list_from_dict(lst, board_id)
        if not lst.id:
            raise ValidationError("list has no id")
        if self.has_list(lst.id):
            raise ValidationError(f"list '{lst.id}' already exists")
        if lst.cards is None:
            lst.cards = ListNode()
        lst.board_id = board.id
        lst = board.lists.insert(lst.id, lst, _clamp(at_index, len(board.lists)))
        renumber(board.lists)
        check_dense(board.lists, board.path)
        self._bump()
        return lst

    def remove_list(self, list_id: str) -> tuple[Node, str, int]:
        """Remove a list and its cards. Returns (list, board_id, from_index)."""
        board = self.find_list_board(list_id)
        from_index = board.lists.index(list_id)
        lst = board.lists.pop(list_id)
        renumber(board.lists)
        check_dense(board.lists, board.path)
        self._bump()
        return lst, board.id, from_index

    def move_list(self, board_id: str, from_index: int, to_index: int) -> list[Node]:
        """Move the list at from_index to to_index within a board.

        Returns the lists whose position changed.
        """
        board = self.get_board(board_id)
        count = len(board.lists)
        if not 0 <= from_index < count:
            raise ValidationError(f"list index {from_index} out of range for board '{board_id}'")
        to_index = _clamp(to_index, count - 1)
        if to_index == from_index:
            return []

        before = {lst.id: lst.position for lst in board.lists}
        key = board.lists.keys()[from_index]
        board.lists.move(key, to_index)
        renumber(board.lists)
        check_dense(board.lists, board.path)
        self._bump()
        return [lst for lst in board.lists if before[lst.id] != lst.position]

    def update_list(self, list_id: str, **fields) -> Node:
        """Set the title of a list."""
        lst = self.get_list(list_id)
        changes = self._validated_fields(fields, LIST_FIELDS)
        for key, value in changes.items():
            setattr(lst, key, value)
        self._bump()
        return lst

    # -- boards --

    def add_board(self, board: Node | dict) -> Node:
        """Append a board."""
        if isinstance(board, dict):
            board = board_from_dict(board)
        if not board.id:
            raise ValidationError("board has no id")
        if board.id in self.boards:
            raise ValidationError(f"board '{board.id}' already exists")
        if board.lists is None:
            board.lists = ListNode()
        board = self.boards.insert(board.id, board)
        self._bump()
        return board

    def remove_board(self, board_id: str) -> Node:
        self.get_board(board_id)
        board = self.boards.pop(board_id)
        self._bump()
        return board

    def update_board(self, board_id: str, **fields) -> Node:
        """Set title/description/background on a board."""
        board = self.get_board(board_id)
        changes = self._validated_fields(fields, BOARD_FIELDS)
        for key, value in changes.items():
            setattr(board, key, value)
        self._bump()
        return board

    @staticmethod
    def _validated_fields(fields: dict, allowed: tuple[str, ...]) -> dict:
        unknown = set(fields) - set(allowed)
        if unknown:
            raise ValidationError(f"unknown fields: {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in fields.items() if v is not None}
        if "title" in changes:
            changes["title"] = require_title(changes["title"])
        return changes

    # -- whole-tree operations --

    def snapshot(self) -> Snapshot:
        """Capture a deep copy of the current tree."""
        return Snapshot(version=self.version, boards=boards_to_list(self.boards))

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the tree with a snapshot, in place so watchers survive."""
        self._replace(boards_from_dicts(snapshot.boards))

    def load(self, payload: list[dict]) -> None:
        """Replace the tree with authoritative data from the server."""
        self._replace(boards_from_dicts(payload))

    def _replace(self, new_boards: ListNode) -> None:
        self.boards.update(new_boards)
        for board in self.boards:
            check_dense(board.lists, board.path)
            for lst in board.lists:
                check_dense(lst.cards, lst.path)
        self._bump()
