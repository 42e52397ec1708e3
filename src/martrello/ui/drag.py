"""Mouse drag sensing for the board screen.

Two mixins:
- DraggableMixin: on cards and lists, detects the press-and-move that
  starts a drag and hands over to the screen
- DragSensor: on the screen, turns pointer movement into DragEvents for
  the DragAdapter and keeps a ghost label under the pointer
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from textual.geometry import Offset
from textual.widgets import Static

from martrello.drag import DragAdapter, DragEvent, DragPhase
from martrello.errors import MartrelloError

if TYPE_CHECKING:
    from textual.widget import Widget

logger = logging.getLogger(__name__)


class DraggableMixin:
    """Mixin for widgets that can be dragged.

    Subclasses should:
    - Call _init_draggable() in __init__
    - Implement drag_id() and drag_label()
    - Implement draggable_clicked() for click-without-drag behavior
    """

    DRAG_THRESHOLD = 2

    def _init_draggable(self) -> None:
        self._drag_start_pos: Offset | None = None

    def on_mouse_down(self, event) -> None:
        if event.button != 1:
            return
        event.stop()
        event.prevent_default()
        self._drag_start_pos = Offset(event.screen_x, event.screen_y)
        self.capture_mouse()

    def on_mouse_move(self, event) -> None:
        if self._drag_start_pos is None:
            return
        event.stop()
        event.prevent_default()
        dx = abs(event.screen_x - self._drag_start_pos.x)
        dy = abs(event.screen_y - self._drag_start_pos.y)
        if dx > self.DRAG_THRESHOLD or dy > self.DRAG_THRESHOLD:
            self.release_mouse()
            self._drag_start_pos = None
            self.screen.begin_drag(self, event.screen_x, event.screen_y)

    def on_mouse_up(self, event) -> None:
        event.stop()
        event.prevent_default()
        self.release_mouse()
        if self._drag_start_pos is not None:
            self._drag_start_pos = None
            self.draggable_clicked()

    def drag_id(self) -> str:
        raise NotImplementedError

    def drag_label(self) -> str:
        raise NotImplementedError

    def draggable_clicked(self) -> None:
        """Called when mouse released without dragging."""


class DragGhost(Static):
    """Floating label following the pointer while dragging."""

    DEFAULT_CSS = """
    DragGhost {
        layer: overlay;
        width: auto;
        max-width: 30;
        height: 1;
        padding: 0 1;
        background: $primary;
        color: $text;
    }
    """


class DragSensor:
    """Mixin for the screen that owns drags.

    Subclasses should:
    - Call _init_drag_sensor(adapter) in __init__
    - Implement drag_hit_test(x, y) returning (list_id, card_id)
    """

    def _init_drag_sensor(self, adapter: DragAdapter) -> None:
        self.drag_adapter = adapter
        self._ghost: Widget | None = None

    @property
    def dragged_id(self) -> str | None:
        return self.drag_adapter.dragged_id

    def begin_drag(self, widget: DraggableMixin, x: int, y: int) -> None:
        if not self._send(DragPhase.START, widget.drag_id()):
            return
        self.set_focus(None)
        self._ghost = DragGhost(widget.drag_label())
        self._ghost.styles.offset = (x, y)
        self.mount(self._ghost)
        self.capture_mouse()
        self._mark_dragging()

    def on_mouse_move(self, event) -> None:
        if not self.drag_adapter.dragging:
            return
        if self._ghost is not None:
            self._ghost.styles.offset = (event.screen_x, event.screen_y)
        list_id, card_id = self.drag_hit_test(event.screen_x, event.screen_y)
        if list_id is None and card_id is None:
            return
        self._send(DragPhase.OVER, self.dragged_id, list_id, card_id)
        if not self.drag_adapter.dragging:
            # The dragged card or list went away under the pointer.
            self._end_drag()

    def on_mouse_up(self, event) -> None:
        if not self.drag_adapter.dragging:
            return
        list_id, card_id = self.drag_hit_test(event.screen_x, event.screen_y)
        self._send(DragPhase.END, self.dragged_id, list_id, card_id)
        self._end_drag()

    def action_cancel_drag(self) -> None:
        if self.drag_adapter.dragging:
            self._send(DragPhase.CANCEL, self.dragged_id)
            self._end_drag()

    def _send(self, phase: DragPhase, dragged_id: str, list_id: str | None = None, card_id: str | None = None) -> bool:
        try:
            self.drag_adapter.handle(DragEvent(phase, dragged_id, list_id, card_id))
        except MartrelloError as e:
            logger.warning("drag %s of %s rejected: %s", phase.value, dragged_id, e)
            self.drag_adapter.cancel()
            self._end_drag()
            self.notify(str(e), severity="error")
            return False
        return True

    def _end_drag(self) -> None:
        self.release_mouse()
        if self._ghost is not None:
            self._ghost.remove()
            self._ghost = None
        self._mark_dragging()

    def _mark_dragging(self) -> None:
        """Flag the widget of the dragged entity, unflag every other."""
        dragged = self.dragged_id
        for widget in self.query(".draggable"):
            widget.set_class(dragged is not None and widget.drag_id() == dragged, "dragging")

    def drag_hit_test(self, x: int, y: int) -> tuple[str | None, str | None]:
        raise NotImplementedError
