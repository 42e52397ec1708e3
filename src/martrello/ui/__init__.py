"""Textual UI for martrello."""

from martrello.ui.app import MartrelloApp
from martrello.ui.board import BoardScreen
from martrello.ui.boards import BoardListScreen

__all__ = [
    "BoardListScreen",
    "BoardScreen",
    "MartrelloApp",
]
