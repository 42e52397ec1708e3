"""Optimistic move controller.

Applies moves to the store immediately, then confirms them with the
persistence backend. A failed confirmation is reconciled in one of
two ways:

- nothing else has touched the store since the move was applied:
  restore the snapshot taken just before the move;
- the store has moved on (a later move or edit): reload everything
  from the backend rather than restoring an older snapshot over
  newer local state.

List moves are confirmed per list with independent calls. A partial
failure leaves the local order ahead of the backend until the caller
refreshes or retries.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from martrello.errors import PersistenceFailure, ValidationError
from martrello.ids import to_remote_id
from martrello.model.node import Node
from martrello.model.store import BoardStore, Snapshot, require_title
from martrello.persistence.base import Persistence
from martrello.result import Err, Result

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

FailureCallback = Callable[[PersistenceFailure], None]


class MoveState(str, Enum):
    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass
class Move:
    """One optimistic change and where it is in its lifecycle."""

    kind: str
    args: tuple
    state: MoveState = MoveState.IDLE
    version: int | None = None
    error: str | None = None
    # Lists whose order the move changed.
    lists: tuple[str, ...] = ()

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        return f"{self.kind}({args})"


class MoveController:
    """Optimistic mutations of a BoardStore confirmed against a Persistence."""

    def __init__(self, store: BoardStore, persistence: Persistence, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.store = store
        self.persistence = persistence
        self.timeout = timeout
        self.last_failure: PersistenceFailure | None = None
        self._pending: set[asyncio.Task] = set()
        self._failure_callbacks: list[FailureCallback] = []

    # -- plumbing --

    def on_failure(self, callback: FailureCallback) -> Callable[[], None]:
        """Register a callback for every failed confirmation. Returns an unsubscribe callable."""
        self._failure_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._failure_callbacks:
                self._failure_callbacks.remove(callback)

        return unsubscribe

    async def _call(self, request: Awaitable[Result]) -> Result:
        """Await a persistence call, turning timeouts and surprises into Err."""
        try:
            return await asyncio.wait_for(request, self.timeout)
        except asyncio.TimeoutError:
            return Err(f"timed out after {self.timeout:g}s")
        except Exception as exc:
            logger.exception("persistence call failed")
            return Err(str(exc) or type(exc).__name__)

    def _fail(self, move: Move | None, reason: str) -> None:
        if move is not None:
            move.error = reason
        failure = PersistenceFailure(reason, move)
        self.last_failure = failure
        for callback in list(self._failure_callbacks):
            callback(failure)
        raise failure

    def _applied(self, move: Move) -> None:
        move.state = MoveState.APPLIED
        move.version = self.store.version
        logger.debug("applied %s at version %d", move, move.version)

    def _confirm(self, move: Move, snapshot: Snapshot, request: Awaitable[Result]) -> Awaitable[Move]:
        """Mark an already-applied move and return the awaitable confirming it."""
        self._applied(move)
        return self._await_confirmation(move, snapshot, request)

    async def _await_confirmation(self, move: Move, snapshot: Snapshot, request: Awaitable[Result]) -> Move:
        result = await self._call(request)
        if not result.ok:
            await self._roll_back(move, snapshot, result.reason)
        move.state = MoveState.CONFIRMED
        logger.debug("confirmed %s", move)
        return move

    async def _roll_back(self, move: Move, snapshot: Snapshot, reason: str) -> None:
        logger.warning("%s not saved: %s", move, reason)
        await self._reconcile(move, snapshot)
        move.state = MoveState.ROLLED_BACK
        self._fail(move, reason)

    async def _reconcile(self, move: Move, snapshot: Snapshot) -> None:
        if self.store.version == move.version:
            logger.info("rolling back %s", move)
            self.store.restore(snapshot)
            return
        logger.info("store changed since %s, reloading from backend", move)
        try:
            await self.refresh()
        except PersistenceFailure as exc:
            logger.warning("reload after failed %s also failed: %s", move, exc)

    # -- background tasks --

    def submit(self, request: Awaitable[Any]) -> asyncio.Task:
        """Run a request in the background and keep track of it."""
        task = asyncio.ensure_future(request)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.debug("request cancelled, result discarded")
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, PersistenceFailure):
            logger.debug("background request failed: %s", exc)
        else:
            logger.error("background request crashed", exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every submitted request has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def cancel_pending(self) -> None:
        """Cancel in-flight requests; their results are discarded."""
        for task in list(self._pending):
            task.cancel()

    # -- moves --

    def _apply_card_move(self, card_id: str, to_list_id: str, to_index: int | None) -> tuple[Move, Awaitable[Move]]:
        move = Move("move_card", (card_id, to_list_id, to_index))
        remote_list = to_remote_id(to_list_id)
        source = self.store.find_card_list(card_id)
        target = self.store.get_list(to_list_id)
        move.lists = tuple(dict.fromkeys((source.id, target.id)))
        before = {card.id: card.position for lst in (source, target) for card in lst.cards}
        remote_ids = {cid: to_remote_id(cid) for cid in before}

        snapshot = self.store.snapshot()
        if not self.store.move_card(card_id, to_list_id, to_index):
            move.state = MoveState.CONFIRMED
            return move, _settled(move)

        self._applied(move)
        position = self.store.find_card_index(card_id)
        # The backend only stores what it is sent, so every shifted sibling
        # gets its new position too.
        shifted = [
            (card.id, remote_ids[card.id], card.position)
            for list_id in move.lists
            for card in self.store.get_list(list_id).cards
            if card.id != card_id and before[card.id] != card.position
        ]
        request = self.persistence.move_card(remote_ids[card_id], remote_list, position)
        return move, self._confirm_card_move(move, snapshot, request, shifted)

    async def _confirm_card_move(
        self, move: Move, snapshot: Snapshot, request: Awaitable[Result], shifted: list[tuple[str, int, int]]
    ) -> Move:
        result = await self._call(request)
        if not result.ok:
            await self._roll_back(move, snapshot, result.reason)
        return await self._push_positions(move, "card", shifted, self._send_card_position)

    async def request_move_card(self, card_id: str, to_list_id: str, to_index: int | None) -> Move:
        """Move a card locally now and confirm its new (list, position)."""
        _, confirmation = self._apply_card_move(card_id, to_list_id, to_index)
        return await confirmation

    def submit_move_card(self, card_id: str, to_list_id: str, to_index: int | None) -> asyncio.Task:
        """Move a card locally now; confirm in the background."""
        _, confirmation = self._apply_card_move(card_id, to_list_id, to_index)
        return self.submit(confirmation)

    def _apply_list_move(self, board_id: str, from_index: int, to_index: int) -> tuple[Move, Awaitable[Move]]:
        move = Move("move_list", (board_id, from_index, to_index))
        board = self.store.get_board(board_id)
        remote_ids = {lst.id: to_remote_id(lst.id) for lst in board.lists}

        changed = self.store.move_list(board_id, from_index, to_index)
        if not changed:
            move.state = MoveState.CONFIRMED
            return move, _settled(move)

        self._applied(move)
        positions = [(lst.id, remote_ids[lst.id], lst.position) for lst in changed]
        return move, self._push_positions(move, "list", positions, self._send_list_position)

    async def request_move_list(self, board_id: str, from_index: int, to_index: int) -> Move:
        """Move a list locally now and confirm each changed list position."""
        _, confirmation = self._apply_list_move(board_id, from_index, to_index)
        return await confirmation

    def submit_move_list(self, board_id: str, from_index: int, to_index: int) -> asyncio.Task:
        """Move a list locally now; confirm in the background."""
        _, confirmation = self._apply_list_move(board_id, from_index, to_index)
        return self.submit(confirmation)

    def _send_list_position(self, remote: int, position: int) -> Awaitable[Result]:
        return self.persistence.update_list(remote, position=position)

    def _send_card_position(self, remote: int, position: int) -> Awaitable[Result]:
        return self.persistence.update_card(remote, position=position)

    async def _push_positions(
        self,
        move: Move,
        what: str,
        positions: list[tuple[str, int, int]],
        send: Callable[[int, int], Awaitable[Result]],
    ) -> Move:
        """Save (id, remote id, position) triples with independent calls.

        Any failure leaves the move APPLIED: the local order is already
        ahead of the backend and stays that way until a retry or refresh.
        """
        results = await asyncio.gather(*(self._call(send(remote, position)) for _, remote, position in positions))
        failed = [item_id for (item_id, _, _), result in zip(positions, results) if not result.ok]
        if not failed:
            move.state = MoveState.CONFIRMED
            move.error = None
            logger.debug("confirmed %s", move)
            return move

        move.state = MoveState.APPLIED
        reasons = {result.reason for result in results if not result.ok}
        logger.warning("%s: %d of %d %s positions not saved", move, len(failed), len(positions), what)
        self._fail(move, f"could not save position of {what} {', '.join(failed)}: {'; '.join(sorted(reasons))}")

    async def retry(self, move: Move) -> Move:
        """Re-issue a move whose confirmation failed.

        A card move that reached the backend but left siblings unsaved
        pushes every position of the lists it touched.
        """
        if move.kind == "move_card":
            if move.state is not MoveState.APPLIED:
                return await self.request_move_card(*move.args)
            positions = [
                (card.id, to_remote_id(card.id), card.position)
                for list_id in move.lists
                for card in self.store.get_list(list_id).cards
            ]
            return await self._push_positions(move, "card", positions, self._send_card_position)
        if move.kind == "move_list":
            board = self.store.get_board(move.args[0])
            positions = [(lst.id, to_remote_id(lst.id), lst.position) for lst in board.lists]
            return await self._push_positions(move, "list", positions, self._send_list_position)
        raise ValidationError(f"cannot retry {move}")

    # -- loading --

    async def refresh(self) -> None:
        """Replace the store with the backend's boards."""
        result = await self._call(self.persistence.get_all_boards())
        if not result.ok:
            raise PersistenceFailure(result.reason)
        self.store.load(result.value)

    # -- boards --

    async def create_board(self, title: str, description: str = "", background: str = "") -> Node:
        title = require_title(title)
        result = await self._call(self.persistence.create_board(title, description, background))
        if not result.ok:
            self._fail(None, result.reason)
        return self.store.add_board({**result.value, "lists": []})

    async def update_board(self, board_id: str, **fields) -> Move:
        move = Move("update_board", (board_id,))
        remote = to_remote_id(board_id)
        snapshot = self.store.snapshot()
        board = self.store.update_board(board_id, **fields)
        changes = {k: getattr(board, k) for k, v in fields.items() if v is not None}
        return await self._confirm(move, snapshot, self.persistence.update_board(remote, **changes))

    async def delete_board(self, board_id: str) -> Move:
        move = Move("delete_board", (board_id,))
        remote = to_remote_id(board_id)
        snapshot = self.store.snapshot()
        self.store.remove_board(board_id)
        return await self._confirm(move, snapshot, self.persistence.delete_board(remote))

    # -- lists --

    async def create_list(self, board_id: str, title: str) -> Node:
        """Create a list at the end of a board once the backend assigns its id."""
        title = require_title(title)
        board = self.store.get_board(board_id)
        position = len(board.lists)
        result = await self._call(self.persistence.create_list(to_remote_id(board_id), title, position))
        if not result.ok:
            self._fail(None, result.reason)
        return self.store.insert_list(board_id, {**result.value, "cards": []})

    async def update_list(self, list_id: str, title: str) -> Move:
        move = Move("update_list", (list_id,))
        remote = to_remote_id(list_id)
        snapshot = self.store.snapshot()
        lst = self.store.update_list(list_id, title=title)
        return await self._confirm(move, snapshot, self.persistence.update_list(remote, title=lst.title))

    async def delete_list(self, list_id: str) -> Move:
        move = Move("delete_list", (list_id,))
        remote = to_remote_id(list_id)
        snapshot = self.store.snapshot()
        self.store.remove_list(list_id)
        return await self._confirm(move, snapshot, self.persistence.delete_list(remote))

    # -- cards --

    async def create_card(self, list_id: str, title: str, description: str = "") -> Node:
        """Create a card at the end of a list once the backend assigns its id."""
        title = require_title(title)
        lst = self.store.get_list(list_id)
        position = len(lst.cards)
        result = await self._call(self.persistence.create_card(to_remote_id(list_id), title, description, position))
        if not result.ok:
            self._fail(None, result.reason)
        return self.store.insert_card(list_id, result.value)

    async def update_card(self, card_id: str, title: str | None = None, description: str | None = None) -> Move:
        move = Move("update_card", (card_id,))
        remote = to_remote_id(card_id)
        snapshot = self.store.snapshot()
        card = self.store.update_card(card_id, title=title, description=description)
        request = self.persistence.update_card(
            remote,
            title=card.title if title is not None else None,
            description=description,
        )
        return await self._confirm(move, snapshot, request)

    async def delete_card(self, card_id: str) -> Move:
        move = Move("delete_card", (card_id,))
        remote = to_remote_id(card_id)
        snapshot = self.store.snapshot()
        self.store.remove_card(card_id)
        return await self._confirm(move, snapshot, self.persistence.delete_card(remote))


async def _settled(move: Move) -> Move:
    return move
