"""Shared fixtures: a small board, a backend holding the same data, a controller."""

import asyncio

import pytest

from martrello.controller import MoveController
from martrello.model.store import BoardStore
from martrello.persistence.memory import MemoryPersistence
from martrello.result import Err


def _make_payload():
    """One board "Work" with lists Todo [A, B, C], Doing [D] and Done []."""
    return [
        {
            "id": 1,
            "title": "Work",
            "description": "Day job",
            "background": "#0079bf",
            "lists": [
                {
                    "id": 10,
                    "board_id": 1,
                    "title": "Todo",
                    "position": 0,
                    "cards": [
                        {"id": 100, "list_id": 10, "title": "A", "description": "", "position": 0},
                        {"id": 101, "list_id": 10, "title": "B", "description": "", "position": 1},
                        {"id": 102, "list_id": 10, "title": "C", "description": "", "position": 2},
                    ],
                },
                {
                    "id": 11,
                    "board_id": 1,
                    "title": "Doing",
                    "position": 1,
                    "cards": [
                        {"id": 103, "list_id": 11, "title": "D", "description": "", "position": 0},
                    ],
                },
                {"id": 12, "board_id": 1, "title": "Done", "position": 2, "cards": []},
            ],
        }
    ]


def _flatten(payload):
    """Nested boards payload to the flat tables MemoryPersistence stores."""
    tables = {"boards": [], "lists": [], "cards": []}
    for board in payload:
        tables["boards"].append({k: v for k, v in board.items() if k != "lists"})
        for lst in board["lists"]:
            tables["lists"].append({k: v for k, v in lst.items() if k != "cards"})
            tables["cards"].extend(dict(card) for card in lst["cards"])
    return tables


class FlakyPersistence:
    """Wraps a backend; calls can be made to fail or to wait on a gate.

    Every call is recorded in ``calls`` as (name, args, kwargs).
    """

    def __init__(self, inner):
        self.inner = inner
        self.calls = []
        self.failures = {}
        self.gates = {}

    def fail(self, name, reason="server error"):
        self.failures[name] = reason

    def heal(self, name=None):
        if name is None:
            self.failures.clear()
        else:
            self.failures.pop(name, None)

    def hold(self, name):
        """Make calls to name wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[name] = gate
        return gate

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    def __getattr__(self, name):
        method = getattr(self.inner, name)

        async def call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            if name in self.gates:
                await self.gates[name].wait()
            if name in self.failures:
                return Err(self.failures[name], 500)
            return await method(*args, **kwargs)

        return call


@pytest.fixture
def payload():
    return _make_payload()


@pytest.fixture
def store(payload):
    return BoardStore(payload)


@pytest.fixture
def tables(payload):
    """The payload as flat boards/lists/cards tables."""
    return _flatten(payload)


@pytest.fixture
def backend(tables):
    return MemoryPersistence(data=tables)


@pytest.fixture
def flaky(backend):
    return FlakyPersistence(backend)


@pytest.fixture
def controller(store, flaky):
    return MoveController(store, flaky, timeout=1.0)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and MARTRELLO_* environment out of tests."""
    monkeypatch.setenv("MARTRELLO_CONFIG", str(tmp_path / "no-config.yaml"))
    for name in ("MARTRELLO_API_URL", "MARTRELLO_DATA_FILE", "MARTRELLO_TIMEOUT", "MARTRELLO_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
