"""Card widgets for martrello UI."""

from rich.text import Text
from textual.widgets import Input, Static

from martrello.model.node import Node
from martrello.ui.drag import DraggableMixin
from martrello.ui.modals import ConfirmScreen, TitleScreen
from martrello.ui.watcher import NodeWatcherMixin


def card_text(card: Node) -> Text:
    """Title in bold, then the description dimmed."""
    text = Text(card.title or card.id, style="bold")
    if card.description:
        text.append("\n")
        text.append(card.description, style="dim")
    return text


class CardWidget(NodeWatcherMixin, DraggableMixin, Static, can_focus=True):
    """A single card in a list."""

    BINDINGS = [
        ("e", "edit", "Edit"),
        ("delete", "delete", "Delete"),
    ]

    DEFAULT_CSS = """
    CardWidget {
        width: 100%;
        height: auto;
        padding: 0 1;
        margin-bottom: 1;
        background: $surface;
    }
    CardWidget:focus {
        background: $primary;
    }
    CardWidget.dragging {
        background: $primary-darken-3;
        text-style: italic;
    }
    """

    def __init__(self, card: Node, controller):
        self._init_watcher()
        Static.__init__(self, classes="draggable")
        self._init_draggable()
        self.card = card
        self.controller = controller

    def on_mount(self) -> None:
        self.node_watch(self.card, "title", self._on_card_changed)
        self.node_watch(self.card, "description", self._on_card_changed)
        self.set_class(getattr(self.screen, "dragged_id", None) == self.card.id, "dragging")
        self.update(card_text(self.card))

    def _on_card_changed(self, node, key, old, new) -> None:
        self.update(card_text(self.card))

    def drag_id(self) -> str:
        return self.card.id

    def drag_label(self) -> str:
        return self.card.title or self.card.id

    def draggable_clicked(self) -> None:
        self.focus()

    def action_edit(self) -> None:
        self.app.push_screen(TitleScreen("Card title", self.card.title or ""), self._on_title_entered)

    def _on_title_entered(self, title: str | None) -> None:
        if title and title != self.card.title:
            self.controller.submit(self.controller.update_card(self.card.id, title=title))

    def action_delete(self) -> None:
        self.app.push_screen(ConfirmScreen(f'Delete card "{self.card.title}"?'), self._on_delete_confirmed)

    def _on_delete_confirmed(self, confirmed: bool) -> None:
        if confirmed:
            self.controller.submit(self.controller.delete_card(self.card.id))


class AddCard(Input):
    """Input at the bottom of a list that creates a card."""

    DEFAULT_CSS = """
    AddCard {
        width: 100%;
        border: none;
        height: 1;
        padding: 0 1;
    }
    """

    def __init__(self, lst: Node, controller):
        super().__init__(placeholder="+ card")
        self.lst = lst
        self.controller = controller

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        title = event.value.strip()
        if title:
            self.controller.submit(self.controller.create_card(self.lst.id, title))
        self.value = ""
