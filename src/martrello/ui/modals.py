"""Modal dialogs: confirmations and title entry."""

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class DialogScreen(ModalScreen):
    """Centered bordered dialog."""

    DEFAULT_CSS = """
    DialogScreen {
        align: center middle;
    }
    DialogScreen #dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    DialogScreen #message {
        text-align: center;
        margin-bottom: 1;
    }
    DialogScreen #buttons {
        width: 100%;
        height: 3;
        align: center middle;
    }
    DialogScreen Button {
        margin: 0 2;
    }
    """


class ConfirmScreen(DialogScreen, ModalScreen[bool]):
    """Yes/no question."""

    BINDINGS = [("escape", "dismiss(False)", "Cancel")]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self.message, id="message")
            with Horizontal(id="buttons"):
                yield Button("Yes", id="yes", variant="primary")
                yield Button("No", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")


class TitleScreen(DialogScreen, ModalScreen[str | None]):
    """Ask for a title. Dismisses with the stripped text, or None if cancelled or empty."""

    BINDINGS = [("escape", "dismiss(None)", "Cancel")]

    def __init__(self, prompt: str, value: str = ""):
        super().__init__()
        self.prompt = prompt
        self.value = value

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self.prompt, id="message")
            yield Input(self.value, id="title")
            with Horizontal(id="buttons"):
                yield Button("OK", id="ok", variant="primary")
                yield Button("Cancel", id="cancel")

    def _submit(self) -> None:
        self.dismiss(self.query_one("#title", Input).value.strip() or None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ok":
            self._submit()
        else:
            self.dismiss(None)
