"""Kanban boards with drag-and-drop reordering and optimistic sync."""

__version__ = "0.1.0"
