"""Fixtures for UI tests."""

import pytest

from martrello.config import load_config
from martrello.ui.app import MartrelloApp


@pytest.fixture
def config(tmp_path):
    return load_config(tmp_path / "absent.yaml", env={}, timeout=1.0)


@pytest.fixture
def app(config, flaky):
    """The app over the "Work" board; flaky can be told to fail saves."""
    return MartrelloApp(config, persistence=flaky)
