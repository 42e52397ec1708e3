"""Board screen showing lists and cards."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import Footer, Static

from martrello.drag import DragAdapter
from martrello.model.node import Node
from martrello.ui.card import CardWidget
from martrello.ui.drag import DragSensor
from martrello.ui.lists import AddList, ListWidget
from martrello.ui.modals import TitleScreen
from martrello.ui.watcher import NodeWatcherMixin


class BoardScreen(NodeWatcherMixin, DragSensor, Screen):
    """One board: its lists side by side, each with its cards."""

    BINDINGS = [
        Binding("escape", "cancel_drag", "Cancel drag", show=False),
        ("b", "close", "Boards"),
        ("ctrl+t", "rename_board", "Rename board"),
        Binding("up", "focus_card(0, -1)", show=False),
        Binding("down", "focus_card(0, 1)", show=False),
        Binding("left", "focus_card(-1, 0)", show=False),
        Binding("right", "focus_card(1, 0)", show=False),
        Binding("shift+up", "move_card(0, -1)", "Move up", show=False),
        Binding("shift+down", "move_card(0, 1)", "Move down", show=False),
        Binding("shift+left", "move_card(-1, 0)", "Move left", show=False),
        Binding("shift+right", "move_card(1, 0)", "Move right", show=False),
        Binding("ctrl+left", "move_list(-1)", "List left", show=False),
        Binding("ctrl+right", "move_list(1)", "List right", show=False),
    ]

    DEFAULT_CSS = """
    BoardScreen #board-header {
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    BoardScreen #board-title {
        text-style: bold;
    }
    BoardScreen #lists {
        height: 1fr;
        overflow-x: auto;
    }
    """

    def __init__(self, board: Node, controller):
        self._init_watcher()
        super().__init__()
        self.board = board
        self.controller = controller
        self.store = controller.store
        self._init_drag_sensor(DragAdapter(self.store, controller, board.id))

    def compose(self) -> ComposeResult:
        with Horizontal(id="board-header"):
            yield Static(self.board.title, id="board-title")
        with Horizontal(id="lists"):
            for lst in self.board.lists:
                yield ListWidget(lst, self.controller)
            yield AddList(self.board, self.controller)
        yield Footer()

    def on_mount(self) -> None:
        self.node_watch(self.board, "title", self._on_title_changed)
        self.node_watch(self.board, "lists", self._on_lists_changed)
        self.store_watch(self.store, self._on_store_changed)
        self.call_after_refresh(self._focus_first_card)

    # -- keeping widgets in step with the store --

    def _on_title_changed(self, node, key, old, new) -> None:
        self.query_one("#board-title", Static).update(self.board.title)

    def _on_store_changed(self, version: int) -> None:
        """Leave the screen if the board disappeared."""
        if self.store.boards[self.board.id] is not self.board and self.is_current:
            self.drag_adapter.cancel()
            self.notify(f'Board "{self.board.title}" no longer exists')
            self.app.pop_screen()

    def _on_lists_changed(self, node, key, old, new) -> None:
        """Sync list widgets to match board.lists."""
        if node is not self.board.lists:
            return
        container = self.query_one("#lists", Horizontal)
        existing = {w.lst.id: w for w in container.children if isinstance(w, ListWidget)}

        for list_id, widget in list(existing.items()):
            if self.board.lists[list_id] is not widget.lst:
                widget.remove()
                del existing[list_id]

        add_list = container.query_one(AddList)
        for lst in self.board.lists:
            if lst.id not in existing:
                widget = ListWidget(lst, self.controller)
                container.mount(widget, before=add_list)
                existing[lst.id] = widget

        insert_before = add_list
        for lst in reversed(list(self.board.lists)):
            container.move_child(existing[lst.id], before=insert_before)
            insert_before = existing[lst.id]

    # -- drag sensing --

    def drag_hit_test(self, x: int, y: int) -> tuple[str | None, str | None]:
        """(list id, card id) under the screen position, ignoring the ghost."""
        card_id = None
        for widget, _region in self.get_widgets_at(x, y):
            if widget is self._ghost:
                continue
            candidate = widget
            while candidate is not None and candidate is not self:
                if card_id is None and isinstance(candidate, CardWidget):
                    card_id = candidate.card.id
                if isinstance(candidate, ListWidget):
                    return candidate.lst.id, card_id
                candidate = candidate.parent
        return None, card_id

    def on_mouse_up(self, event) -> None:
        dragged = self.dragged_id
        super().on_mouse_up(event)
        if dragged is not None:
            self.call_after_refresh(self.focus_entity, dragged)

    # -- focus --

    def _list_widgets(self) -> list[ListWidget]:
        return [w for w in self.query_one("#lists", Horizontal).children if isinstance(w, ListWidget)]

    def _focus_first_card(self) -> None:
        for widget in self._list_widgets():
            cards = [c for c in widget.children if isinstance(c, CardWidget)]
            if cards:
                cards[0].focus()
                return

    def focus_entity(self, entity_id: str) -> None:
        """Focus the card with this id, or the first card of the list with this id."""
        for widget in self._list_widgets():
            card = widget.card_widget(entity_id)
            if card is not None:
                card.focus()
                return
            if widget.lst.id == entity_id:
                cards = [c for c in widget.children if isinstance(c, CardWidget)]
                if cards:
                    cards[0].focus()
                return

    def action_focus_card(self, dx: int, dy: int) -> None:
        focused = self.focused
        if not isinstance(focused, CardWidget):
            self._focus_first_card()
            return
        widgets = self._list_widgets()
        list_id = self.store.find_card_list(focused.card.id).id
        column = next(i for i, w in enumerate(widgets) if w.lst.id == list_id)
        cards = [c for c in widgets[column].children if isinstance(c, CardWidget)]
        row = cards.index(focused)
        if dx:
            column += dx
            if not 0 <= column < len(widgets):
                return
            cards = [c for c in widgets[column].children if isinstance(c, CardWidget)]
            if cards:
                cards[min(row, len(cards) - 1)].focus()
        elif 0 <= row + dy < len(cards):
            cards[row + dy].focus()

    # -- keyboard moves --

    def action_move_card(self, dx: int, dy: int) -> None:
        """Move the focused card one step, like a one-step drag."""
        focused = self.focused
        if not isinstance(focused, CardWidget):
            return
        card_id = focused.card.id
        lst = self.store.find_card_list(card_id)
        index = lst.cards.index(card_id)
        if dx:
            keys = self.board.lists.keys()
            column = keys.index(lst.id) + dx
            if not 0 <= column < len(keys):
                return
            target = self.board.lists[keys[column]]
            self.controller.submit_move_card(card_id, target.id, min(index, len(target.cards)))
        else:
            if not 0 <= index + dy < len(lst.cards):
                return
            self.controller.submit_move_card(card_id, lst.id, index + dy)
        self.call_after_refresh(self.focus_entity, card_id)

    def action_move_list(self, dx: int) -> None:
        """Move the list holding the focused widget one step left or right."""
        focused = self.focused
        widget = next((a for a in focused.ancestors_with_self if isinstance(a, ListWidget)), None) if focused else None
        if widget is None:
            return
        from_index = self.board.lists.index(widget.lst.id)
        to_index = from_index + dx
        if not 0 <= to_index < len(self.board.lists):
            return
        self.controller.submit_move_list(self.board.id, from_index, to_index)
        self.call_after_refresh(self.focus_entity, focused.card.id if isinstance(focused, CardWidget) else widget.lst.id)

    # -- board actions --

    def action_rename_board(self) -> None:
        self.app.push_screen(TitleScreen("Board title", self.board.title or ""), self._on_title_entered)

    def _on_title_entered(self, title: str | None) -> None:
        if title and title != self.board.title:
            self.controller.submit(self.controller.update_board(self.board.id, title=title))

    def action_close(self) -> None:
        self.action_cancel_drag()
        self.app.pop_screen()
