"""Shared fixtures for CLI tests."""

import json

import pytest


@pytest.fixture
def data_file(tmp_path, tables):
    """A data file holding the "Work" board (lists Todo, Doing, Done)."""
    path = tmp_path / "boards.json"
    path.write_text(json.dumps(tables))
    return path


@pytest.fixture
def saved(data_file):
    """Read back what the commands wrote, as {table: {id: row}}."""

    def read():
        data = json.loads(data_file.read_text())
        return {table: {row["id"]: row for row in rows} for table, rows in data.items()}

    return read
