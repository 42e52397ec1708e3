"""Main Textual application for martrello."""

from textual.app import App

from martrello.config import build_persistence, load_config
from martrello.controller import MoveController
from martrello.errors import PersistenceFailure
from martrello.model.store import BoardStore
from martrello.persistence.base import Persistence
from martrello.ui.boards import BoardListScreen


class MartrelloApp(App):
    """Kanban board TUI."""

    CSS = """
    Tooltip {
        padding: 0 1;
        margin: 0;
    }
    """

    TITLE = "martrello"
    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("r", "retry", "Retry"),
        ("ctrl+r", "refresh", "Reload"),
    ]

    def __init__(self, config: dict | None = None, persistence: Persistence | None = None):
        super().__init__()
        self.config = config if config is not None else load_config()
        self.persistence = persistence if persistence is not None else build_persistence(self.config)
        self.store = BoardStore()
        self.controller = MoveController(self.store, self.persistence, timeout=self.config["timeout"])
        self.controller.on_failure(self._on_failure)

    async def on_mount(self) -> None:
        await self._load()
        self.push_screen(BoardListScreen(self.controller))

    async def _load(self) -> bool:
        try:
            await self.controller.refresh()
        except PersistenceFailure as e:
            self.notify(f"Could not load boards: {e}", severity="error")
            return False
        return True

    def _on_failure(self, failure: PersistenceFailure) -> None:
        if failure.move is not None:
            self.notify(f"{failure.move} not saved: {failure.reason}. Press r to retry.", severity="error")
        else:
            self.notify(f"Not saved: {failure.reason}", severity="error")

    def action_retry(self) -> None:
        """Re-issue the last move whose save failed."""
        failure = self.controller.last_failure
        if failure is None or failure.move is None:
            self.notify("Nothing to retry")
            return
        self.controller.last_failure = None
        self.controller.submit(self.controller.retry(failure.move))

    async def action_refresh(self) -> None:
        """Reload every board from the backend."""
        if await self._load():
            self.notify("Reloaded")

    async def action_quit(self) -> None:
        """Wait for pending saves, close the backend and quit."""
        await self.controller.drain()
        await self.persistence.close()
        self.exit()
