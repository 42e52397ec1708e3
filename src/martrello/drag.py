"""Turn normalized drag events into store previews and controller moves.

A gesture is one ``start``, any number of ``over`` and one ``end`` or
``cancel``. While a card is dragged across lists it is moved in the
store right away (a preview) so the UI shows it in the hovered list.
Nothing is sent to the backend until ``end``, and ``cancel`` puts the
store back exactly as it was at ``start``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from martrello.controller import MoveController
from martrello.errors import NotFound, ValidationError
from martrello.model.store import BoardStore, Snapshot

logger = logging.getLogger(__name__)


class DragPhase(str, Enum):
    START = "start"
    OVER = "over"
    END = "end"
    CANCEL = "cancel"


@dataclass(frozen=True)
class DragEvent:
    """One step of a drag gesture.

    ``over_container_id`` is the list under the pointer, ``over_item_id``
    the card under the pointer (if any). Either may be None.
    """

    phase: DragPhase
    dragged_id: str
    over_container_id: str | None = None
    over_item_id: str | None = None


@dataclass
class _Active:
    kind: str  # "card" or "list"
    id: str
    origin_list: str | None
    origin_index: int
    snapshot: Snapshot
    # Store version after the adapter's own last change.
    version: int
    target_list: str | None = None
    over_item: str | None = None


class DragAdapter:
    """Drag gesture state for one board."""

    def __init__(self, store: BoardStore, controller: MoveController, board_id: str) -> None:
        self.store = store
        self.controller = controller
        self.board_id = board_id
        self.active: _Active | None = None

    @property
    def dragging(self) -> bool:
        return self.active is not None

    @property
    def dragged_id(self) -> str | None:
        return self.active.id if self.active else None

    def handle(self, event: DragEvent) -> asyncio.Task | None:
        """Dispatch an event. Returns the confirmation task scheduled on end."""
        match DragPhase(event.phase):
            case DragPhase.START:
                self.start(event.dragged_id)
            case DragPhase.OVER:
                self._require(event.dragged_id)
                self.over(event.over_container_id, event.over_item_id)
            case DragPhase.END:
                self._require(event.dragged_id)
                return self.end(event.over_container_id, event.over_item_id)
            case DragPhase.CANCEL:
                self.cancel()
        return None

    def _require(self, dragged_id: str) -> None:
        if self.active is None or self.active.id != dragged_id:
            raise ValidationError(f"no drag in progress for '{dragged_id}'")

    # -- lookups within this board --

    def _board(self):
        return self.store.get_board(self.board_id)

    def _card_list(self, card_id: str):
        """List of this board holding card_id, or None."""
        for lst in self._board().lists:
            if card_id in lst.cards:
                return lst
        return None

    def _resolve_list(self, container_id: str | None, item_id: str | None):
        """Hovered list: the container if it is a list, else the hovered card's list."""
        lists = self._board().lists
        if container_id is not None and container_id in lists:
            return lists[container_id]
        if item_id is not None:
            if item_id in lists:
                return lists[item_id]
            return self._card_list(item_id)
        if container_id is not None:
            return self._card_list(container_id)
        return None

    # -- phases --

    def start(self, dragged_id: str) -> None:
        """Remember what is being dragged and where it came from."""
        if self.active is not None:
            logger.debug("drag of %s replaced by %s", self.active.id, dragged_id)
            self.cancel()
        board = self._board()
        snapshot = self.store.snapshot()
        version = self.store.version
        source = self._card_list(dragged_id)
        if source is not None:
            self.active = _Active("card", dragged_id, source.id, source.cards.index(dragged_id), snapshot, version)
        elif dragged_id in board.lists:
            self.active = _Active("list", dragged_id, None, board.lists.index(dragged_id), snapshot, version)
        else:
            raise NotFound("card or list", dragged_id)

    def _resync(self) -> bool:
        """Adopt changes made to the store by anyone but this drag.

        A reload or another move during the gesture replaces the preview.
        The current state becomes the new starting point, and the drag is
        dropped if the dragged entity is gone. Returns whether it goes on.
        """
        active = self.active
        if self.store.version == active.version:
            return True
        logger.debug("store changed during drag of %s, starting over from current state", active.id)
        self.active = None
        if self.board_id not in self.store.boards:
            return False
        lists = self._board().lists
        if active.kind == "card":
            source = self._card_list(active.id)
            if source is None:
                return False
            active.origin_list, active.origin_index = source.id, source.cards.index(active.id)
        elif active.id in lists:
            active.origin_index = lists.index(active.id)
        else:
            return False
        active.snapshot = self.store.snapshot()
        active.version = self.store.version
        active.target_list = active.over_item = None
        self.active = active
        return True

    def over(self, container_id: str | None, item_id: str | None) -> None:
        """Track the hover target and preview card moves in the store."""
        active = self.active
        if active is None or not self._resync() or item_id == active.id:
            return
        target = self._resolve_list(container_id, item_id)
        if target is None:
            return
        # Only a change of hover target moves the preview.
        if (target.id, item_id) == (active.target_list, active.over_item):
            return
        active.target_list = target.id
        active.over_item = item_id
        if active.kind == "card":
            self._preview(target, item_id if item_id in target.cards else None)

    def _preview(self, target, over_card: str | None) -> None:
        """Put the dragged card where it would land.

        Over a card: take that card's index. Over the list itself: the end.
        """
        current = self._card_list(self.active.id)
        if current is None:
            return
        if over_card is not None:
            index = target.cards.index(over_card)
        elif current.id == target.id:
            index = len(target.cards) - 1
        else:
            index = len(target.cards)
        self.store.move_card(self.active.id, target.id, index)
        self.active.version = self.store.version

    def end(self, container_id: str | None = None, item_id: str | None = None) -> asyncio.Task | None:
        """Finish the gesture and submit a move if anything changed.

        Dropping with nothing under the pointer is a cancel.
        """
        active = self.active
        if active is None:
            return None
        if container_id is None and item_id is None:
            self.cancel()
            return None
        if not self._resync():
            logger.debug("%s %s no longer exists, drop ignored", active.kind, active.id)
            return None
        self.over(container_id, item_id)
        self.active = None
        if active.kind == "card":
            return self._end_card(active)
        return self._end_list(active)

    def _end_card(self, active: _Active) -> asyncio.Task | None:
        current = self._card_list(active.id)
        list_id = current.id
        index = current.cards.index(active.id)

        # Re-apply through the controller so a failed save rolls back to
        # the state before the drag, not to the preview.
        self.store.restore(active.snapshot)
        if list_id == active.origin_list and index == active.origin_index:
            logger.debug("card %s dropped where it started", active.id)
            return None
        return self.controller.submit_move_card(active.id, list_id, index)

    def _end_list(self, active: _Active) -> asyncio.Task | None:
        lists = self._board().lists
        if active.target_list is None or active.target_list not in lists:
            return None
        to_index = lists.index(active.target_list)
        if to_index == active.origin_index:
            return None
        return self.controller.submit_move_list(self.board_id, active.origin_index, to_index)

    def cancel(self) -> None:
        """Abandon the gesture and undo any preview."""
        active = self.active
        self.active = None
        if active is None:
            return
        if self.store.version != active.version:
            # The store was reloaded or changed meanwhile; that state wins.
            logger.debug("store changed during drag of %s, preview not restored", active.id)
            return
        self.store.restore(active.snapshot)
