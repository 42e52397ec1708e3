"""Tests for optimistic moves, confirmation and reconciliation."""

import asyncio

import pytest

from martrello.controller import MoveController, MoveState
from martrello.errors import PersistenceFailure, ValidationError
from martrello.model.writer import dumps
from martrello.result import Err, Ok


def _titles(store, list_id):
    return [card.title for card in store.get_list(list_id).cards]


async def _server_titles(backend, list_id):
    result = await backend.get_all_boards()
    for board in result.value:
        for lst in board["lists"]:
            if lst["id"] == list_id:
                return [card["title"] for card in lst["cards"]]
    return None


# --- card moves ---


@pytest.mark.asyncio
async def test_move_card_confirmed(controller, store, flaky, backend):
    move = await controller.request_move_card("100", "12", 0)

    assert move.state is MoveState.CONFIRMED
    assert _titles(store, "10") == ["B", "C"]
    assert _titles(store, "12") == ["A"]
    assert flaky.called("move_card") == [("move_card", (100, 12, 0), {})]
    assert await _server_titles(backend, 12) == ["A"]


@pytest.mark.asyncio
async def test_move_card_same_list_sends_final_index(controller, store, flaky, backend):
    await controller.request_move_card("101", "10", 2)

    assert _titles(store, "10") == ["A", "C", "B"]
    assert flaky.called("move_card")[0][1] == (101, 10, 2)
    assert await _server_titles(backend, 10) == ["A", "C", "B"]


@pytest.mark.asyncio
async def test_move_card_saves_shifted_sibling_positions(controller, flaky, backend, monkeypatch):
    # A backend that stores exactly the position it is sent.
    async def store_as_sent(id, title=None, description=None, position=None, list_id=None):
        row = backend._find("cards", id)
        row.update({k: v for k, v in {"position": position, "list_id": list_id}.items() if v is not None})
        return Ok(dict(row))

    async def move_as_sent(id, list_id, position):
        return await store_as_sent(id, position=position, list_id=list_id)

    monkeypatch.setattr(backend, "update_card", store_as_sent)
    monkeypatch.setattr(backend, "move_card", move_as_sent)

    await controller.request_move_card("100", "12", 0)

    rows = {row["id"]: (row["list_id"], row["position"]) for row in backend.data["cards"]}
    assert rows == {100: (12, 0), 101: (10, 0), 102: (10, 1), 103: (11, 0)}
    assert sorted((call[1][0], call[2]["position"]) for call in flaky.called("update_card")) == [(101, 0), (102, 1)]


@pytest.mark.asyncio
async def test_moving_last_card_to_end_of_other_list_shifts_nothing(controller, flaky):
    await controller.request_move_card("102", "11", None)
    assert flaky.called("update_card") == []


@pytest.mark.asyncio
async def test_unsaved_sibling_positions_leave_move_applied(controller, store, flaky):
    flaky.fail("update_card")
    with pytest.raises(PersistenceFailure, match="card 101, 102") as exc_info:
        await controller.request_move_card("100", "12", 0)

    move = exc_info.value.move
    assert move.state is MoveState.APPLIED
    assert _titles(store, "10") == ["B", "C"]
    assert _titles(store, "12") == ["A"]

    flaky.heal()
    flaky.calls.clear()
    move = await controller.retry(move)

    assert move.state is MoveState.CONFIRMED
    assert flaky.called("move_card") == []
    assert sorted(call[1][0] for call in flaky.called("update_card")) == [100, 101, 102]


@pytest.mark.asyncio
async def test_noop_move_makes_no_call(controller, store, flaky):
    version = store.version
    move = await controller.request_move_card("101", "10", 1)

    assert move.state is MoveState.CONFIRMED
    assert flaky.calls == []
    assert store.version == version


@pytest.mark.asyncio
async def test_failed_move_restores_snapshot_exactly(controller, store, flaky):
    before = dumps(store.boards)
    flaky.fail("move_card", "network down")

    with pytest.raises(PersistenceFailure) as exc_info:
        await controller.request_move_card("100", "11", 0)

    move = exc_info.value.move
    assert move.state is MoveState.ROLLED_BACK
    assert move.error == "network down"
    assert dumps(store.boards) == before
    assert controller.last_failure is exc_info.value


@pytest.mark.asyncio
async def test_failure_listeners_notified(controller, flaky):
    seen = []
    unsubscribe = controller.on_failure(seen.append)
    flaky.fail("move_card")

    with pytest.raises(PersistenceFailure):
        await controller.request_move_card("100", "11", 0)
    unsubscribe()
    unsubscribe()
    with pytest.raises(PersistenceFailure):
        await controller.request_move_card("100", "11", 0)

    assert len(seen) == 1
    assert seen[0].reason == "server error"


@pytest.mark.asyncio
async def test_stale_failure_refreshes_instead_of_restoring(controller, store, flaky, backend):
    gate = flaky.hold("move_card")
    flaky.fail("move_card")
    first = asyncio.ensure_future(controller.request_move_card("100", "12", 0))
    await asyncio.sleep(0)
    assert _titles(store, "12") == ["A"]

    # A later local change makes the first move's snapshot stale.
    await controller.update_card("103", title="D2")
    gate.set()

    with pytest.raises(PersistenceFailure):
        await first

    # Reloaded from the backend: A never moved, D2 was saved.
    assert flaky.called("get_all_boards")
    assert _titles(store, "10") == ["A", "B", "C"]
    assert _titles(store, "11") == ["D2"]
    assert _titles(store, "12") == []


@pytest.mark.asyncio
async def test_timeout_is_a_failure(store, flaky):
    controller = MoveController(store, flaky, timeout=0.01)
    flaky.hold("move_card")
    before = dumps(store.boards)

    with pytest.raises(PersistenceFailure, match="timed out"):
        await controller.request_move_card("100", "11", 0)

    assert dumps(store.boards) == before


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_failure(controller, store, flaky, monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(flaky.inner, "move_card", explode)
    before = dumps(store.boards)

    with pytest.raises(PersistenceFailure, match="boom"):
        await controller.request_move_card("100", "11", 0)
    assert dumps(store.boards) == before


@pytest.mark.asyncio
async def test_unsaved_list_id_rejected_before_any_change(controller, store, flaky):
    store.insert_list("1", {"id": "draft", "title": "Draft"})
    before = dumps(store.boards)
    with pytest.raises(ValidationError):
        await controller.request_move_card("100", "draft", 0)
    assert flaky.calls == []
    assert dumps(store.boards) == before


@pytest.mark.asyncio
async def test_retry_after_failure(controller, store, flaky, backend):
    flaky.fail("move_card")
    with pytest.raises(PersistenceFailure) as exc_info:
        await controller.request_move_card("100", "12", 0)

    flaky.heal()
    move = await controller.retry(exc_info.value.move)

    assert move.state is MoveState.CONFIRMED
    assert _titles(store, "12") == ["A"]
    assert await _server_titles(backend, 12) == ["A"]


# --- background submission ---


@pytest.mark.asyncio
async def test_submit_move_card_applies_now(controller, store, flaky):
    gate = flaky.hold("move_card")
    task = controller.submit_move_card("100", "12", 0)

    assert _titles(store, "12") == ["A"]
    assert controller.pending == 1

    gate.set()
    move = await task
    assert move.state is MoveState.CONFIRMED
    assert controller.pending == 0


@pytest.mark.asyncio
async def test_submitted_failure_is_logged_not_raised(controller, store, flaky):
    before = dumps(store.boards)
    flaky.fail("move_card")
    controller.submit_move_card("100", "12", 0)

    await controller.drain()

    assert dumps(store.boards) == before
    assert controller.last_failure is not None
    assert controller.pending == 0


@pytest.mark.asyncio
async def test_cancel_pending_discards_results(controller, store, flaky):
    flaky.hold("move_card")
    task = controller.submit_move_card("100", "12", 0)
    await asyncio.sleep(0)

    controller.cancel_pending()
    await controller.drain()

    assert task.cancelled()
    assert controller.last_failure is None
    assert _titles(store, "12") == ["A"]


# --- list moves ---


@pytest.mark.asyncio
async def test_move_list_pushes_changed_positions(controller, store, flaky, backend):
    move = await controller.request_move_list("1", 0, 2)

    assert move.state is MoveState.CONFIRMED
    assert [lst.title for lst in store.get_board("1").lists] == ["Doing", "Done", "Todo"]
    pushed = sorted((call[1][0], call[2]["position"]) for call in flaky.called("update_list"))
    assert pushed == [(10, 2), (11, 0), (12, 1)]
    boards = (await backend.get_all_boards()).value
    assert [lst["title"] for lst in boards[0]["lists"]] == ["Doing", "Done", "Todo"]


@pytest.mark.asyncio
async def test_move_list_noop(controller, flaky):
    move = await controller.request_move_list("1", 1, 1)
    assert move.state is MoveState.CONFIRMED
    assert flaky.calls == []


@pytest.mark.asyncio
async def test_move_list_partial_failure_stays_applied(controller, store, flaky, monkeypatch):
    real_update = flaky.inner.update_list

    async def fail_for_list_11(id, title=None, position=None):
        if id == 11:
            return Err("locked", 409)
        return await real_update(id, title=title, position=position)

    monkeypatch.setattr(flaky.inner, "update_list", fail_for_list_11)

    with pytest.raises(PersistenceFailure, match="11") as exc_info:
        await controller.request_move_list("1", 0, 2)

    move = exc_info.value.move
    assert move.state is MoveState.APPLIED
    assert "locked" in move.error
    # Local order stays ahead of the backend.
    assert store.get_board("1").lists.keys() == ["11", "12", "10"]


@pytest.mark.asyncio
async def test_retry_list_move_pushes_every_position(controller, store, flaky):
    flaky.fail("update_list")
    with pytest.raises(PersistenceFailure) as exc_info:
        await controller.request_move_list("1", 2, 0)

    flaky.heal()
    flaky.calls.clear()
    move = await controller.retry(exc_info.value.move)

    assert move.state is MoveState.CONFIRMED
    assert move.error is None
    assert len(flaky.called("update_list")) == 3


@pytest.mark.asyncio
async def test_retry_rejects_other_kinds(controller, flaky):
    flaky.fail("update_card")
    with pytest.raises(PersistenceFailure) as exc_info:
        await controller.update_card("100", title="x")
    with pytest.raises(ValidationError):
        await controller.retry(exc_info.value.move)


# --- refresh ---


@pytest.mark.asyncio
async def test_refresh_loads_backend(controller, store, backend):
    await backend.create_card(12, "From elsewhere", "", 0)
    await controller.refresh()
    assert _titles(store, "12") == ["From elsewhere"]


@pytest.mark.asyncio
async def test_refresh_failure_raises(controller, store, flaky):
    before = dumps(store.boards)
    flaky.fail("get_all_boards", "offline")
    with pytest.raises(PersistenceFailure, match="offline"):
        await controller.refresh()
    assert dumps(store.boards) == before


# --- CRUD ---


@pytest.mark.asyncio
async def test_create_card_uses_server_id(controller, store, flaky):
    card = await controller.create_card("12", " Fresh ", "notes")
    assert card.id == "104"
    assert card.title == "Fresh"
    assert _titles(store, "12") == ["Fresh"]
    assert flaky.called("create_card")[0][1] == (12, "Fresh", "notes", 0)


@pytest.mark.asyncio
async def test_create_card_failure_changes_nothing(controller, store, flaky):
    before = dumps(store.boards)
    flaky.fail("create_card")
    with pytest.raises(PersistenceFailure):
        await controller.create_card("12", "Fresh")
    assert dumps(store.boards) == before


@pytest.mark.asyncio
async def test_create_with_empty_title_rejected(controller, flaky):
    with pytest.raises(ValidationError):
        await controller.create_card("12", "  ")
    with pytest.raises(ValidationError):
        await controller.create_list("1", "")
    with pytest.raises(ValidationError):
        await controller.create_board("")
    assert flaky.calls == []


@pytest.mark.asyncio
async def test_create_list_and_board(controller, store):
    lst = await controller.create_list("1", "Review")
    assert lst.id == "13"
    assert store.get_board("1").lists.keys()[-1] == "13"
    assert lst.position == 3

    board = await controller.create_board("Home", "chores")
    assert board.id == "2"
    assert store.get_board("2").description == "chores"
    assert len(board.lists) == 0


@pytest.mark.asyncio
async def test_update_card_rolls_back(controller, store, flaky):
    flaky.fail("update_card")
    with pytest.raises(PersistenceFailure):
        await controller.update_card("100", title="Renamed")
    assert store.get_card("100").title == "A"


@pytest.mark.asyncio
async def test_update_card_sends_only_given_fields(controller, flaky):
    await controller.update_card("100", description="more")
    assert flaky.called("update_card")[0][2] == {"title": None, "description": "more"}


@pytest.mark.asyncio
async def test_delete_list_rolls_back(controller, store, flaky):
    before = dumps(store.boards)
    flaky.fail("delete_list")
    with pytest.raises(PersistenceFailure):
        await controller.delete_list("11")
    assert dumps(store.boards) == before


@pytest.mark.asyncio
async def test_delete_card_and_board(controller, store, backend):
    await controller.delete_card("101")
    assert _titles(store, "10") == ["A", "C"]
    assert await _server_titles(backend, 10) == ["A", "C"]

    await controller.delete_board("1")
    assert len(store.boards) == 0
    assert (await backend.get_all_boards()) == Ok([])


@pytest.mark.asyncio
async def test_update_list_and_board(controller, store, backend):
    await controller.update_list("10", "Backlog")
    await controller.update_board("1", title="Job", background="#000")
    assert store.get_list("10").title == "Backlog"
    boards = (await backend.get_all_boards()).value
    assert boards[0]["title"] == "Job"
    assert boards[0]["background"] == "#000"
    assert boards[0]["lists"][0]["title"] == "Backlog"
