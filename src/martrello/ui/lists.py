"""List (column) widgets for martrello UI."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, Rule, Static

from martrello.model.node import Node
from martrello.ui.card import AddCard, CardWidget
from martrello.ui.drag import DraggableMixin
from martrello.ui.modals import ConfirmScreen, TitleScreen
from martrello.ui.watcher import NodeWatcherMixin


class ListWidget(NodeWatcherMixin, DraggableMixin, Vertical):
    """A single list on the board, drawn as a column of cards."""

    BINDINGS = [
        ("ctrl+e", "rename_list", "Rename list"),
        ("ctrl+d", "delete_list", "Delete list"),
    ]

    DEFAULT_CSS = """
    ListWidget {
        width: 1fr;
        height: auto;
        min-height: 100%;
        min-width: 25;
        max-width: 30;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    ListWidget.dragging {
        background: $primary-darken-3;
    }
    ListWidget > #list-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    ListWidget > Rule.-horizontal {
        margin: 0;
    }
    """

    def __init__(self, lst: Node, controller):
        self._init_watcher()
        Vertical.__init__(self, classes="draggable")
        self._init_draggable()
        self.lst = lst
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Static(self.lst.title, id="list-title")
        yield Rule()
        for card in self.lst.cards:
            yield CardWidget(card, self.controller)
        yield AddCard(self.lst, self.controller)

    def on_mount(self) -> None:
        self.node_watch(self.lst, "title", self._on_title_changed)
        self.node_watch(self.lst, "cards", self._on_cards_changed)
        self.set_class(getattr(self.screen, "dragged_id", None) == self.lst.id, "dragging")

    def _on_title_changed(self, node, key, old, new) -> None:
        self.query_one("#list-title", Static).update(self.lst.title)

    def _on_cards_changed(self, node, key, old, new) -> None:
        """Sync card children to match lst.cards."""
        if node is not self.lst.cards:
            return  # a card's own field; the card widget handles it
        cards = list(self.lst.cards)
        existing = {c.card.id: c for c in self.children if isinstance(c, CardWidget)}

        # Remove widgets whose card left this list or was replaced
        for card_id, widget in list(existing.items()):
            if self.lst.cards[card_id] is not widget.card:
                widget.remove()
                del existing[card_id]

        add_card = self.query_one(AddCard)
        for card in cards:
            if card.id not in existing:
                widget = CardWidget(card, self.controller)
                self.mount(widget, before=add_card)
                existing[card.id] = widget

        # Reorder to match the model
        for card in reversed(cards):
            self.move_child(existing[card.id], before=add_card)
            add_card = existing[card.id]

    def card_widget(self, card_id: str) -> CardWidget | None:
        for child in self.children:
            if isinstance(child, CardWidget) and child.card.id == card_id:
                return child
        return None

    def on_mouse_down(self, event) -> None:
        """Lists are dragged by their title."""
        title = self.query_one("#list-title", Static)
        if title.region.contains(event.screen_x, event.screen_y):
            super().on_mouse_down(event)

    def drag_id(self) -> str:
        return self.lst.id

    def drag_label(self) -> str:
        return self.lst.title or self.lst.id

    def action_rename_list(self) -> None:
        self.app.push_screen(TitleScreen("List title", self.lst.title or ""), self._on_title_entered)

    def _on_title_entered(self, title: str | None) -> None:
        if title and title != self.lst.title:
            self.controller.submit(self.controller.update_list(self.lst.id, title))

    def action_delete_list(self) -> None:
        count = len(self.lst.cards)
        message = f'Delete list "{self.lst.title}" and its {count} cards?'
        self.app.push_screen(ConfirmScreen(message), self._on_delete_confirmed)

    def _on_delete_confirmed(self, confirmed: bool) -> None:
        if confirmed:
            self.controller.submit(self.controller.delete_list(self.lst.id))


class AddList(Vertical):
    """Column at the end of the board that creates a list."""

    DEFAULT_CSS = """
    AddList {
        width: 1fr;
        height: 100%;
        min-width: 25;
        max-width: 30;
        padding: 0 1;
    }
    AddList > Input {
        border: none;
        height: 1;
    }
    """

    def __init__(self, board: Node, controller):
        super().__init__()
        self.board = board
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Input(placeholder="+ list")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        title = event.value.strip()
        if title:
            self.controller.submit(self.controller.create_list(self.board.id, title))
        event.input.value = ""
