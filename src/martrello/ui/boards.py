"""Board picker screen."""

from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import Footer, Input, Label, ListItem, ListView, Static

from martrello.model.node import Node
from martrello.ui.board import BoardScreen
from martrello.ui.modals import ConfirmScreen, TitleScreen
from martrello.ui.watcher import NodeWatcherMixin


class BoardItem(ListItem):
    """One row of the board picker."""

    def __init__(self, board: Node):
        lists = len(board.lists)
        cards = sum(len(lst.cards) for lst in board.lists)
        super().__init__(Label(f"{board.title}  ({lists} lists, {cards} cards)"))
        self.board = board


class BoardListScreen(NodeWatcherMixin, Screen):
    """Every board, with keys to open, add, rename and delete."""

    BINDINGS = [
        ("e", "rename_board", "Rename"),
        ("delete", "delete_board", "Delete"),
        ("n", "new_board", "New board"),
    ]

    DEFAULT_CSS = """
    BoardListScreen #heading {
        padding: 0 1;
        text-style: bold;
        background: $panel;
    }
    BoardListScreen #boards {
        height: 1fr;
    }
    BoardListScreen #add-board {
        border: none;
        height: 1;
    }
    """

    def __init__(self, controller):
        self._init_watcher()
        super().__init__()
        self.controller = controller
        self.store = controller.store

    def compose(self) -> ComposeResult:
        yield Static("Boards", id="heading")
        yield ListView(*(BoardItem(board) for board in self.store.boards), id="boards")
        yield Input(placeholder="+ board", id="add-board")
        yield Footer()

    def on_mount(self) -> None:
        self.store_watch(self.store, self._on_store_changed)

    def on_screen_resume(self) -> None:
        self.call_later(self.rebuild)

    def _on_store_changed(self, version: int) -> None:
        if self.is_current:
            self.call_later(self.rebuild)

    async def rebuild(self) -> None:
        """Redraw the rows from the store, keeping the highlighted row."""
        view = self.query_one("#boards", ListView)
        index = view.index
        await view.clear()
        await view.extend(BoardItem(board) for board in self.store.boards)
        if len(view.children):
            view.index = min(index or 0, len(view.children) - 1)

    def _highlighted(self) -> Node | None:
        item = self.query_one("#boards", ListView).highlighted_child
        return item.board if isinstance(item, BoardItem) else None

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, BoardItem):
            self.app.push_screen(BoardScreen(event.item.board, self.controller))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        title = event.value.strip()
        if title:
            self.controller.submit(self.controller.create_board(title))
        event.input.value = ""

    def action_new_board(self) -> None:
        self.query_one("#add-board", Input).focus()

    def action_rename_board(self) -> None:
        board = self._highlighted()
        if board is None:
            return

        def renamed(title: str | None) -> None:
            if title and title != board.title:
                self.controller.submit(self.controller.update_board(board.id, title=title))

        self.app.push_screen(TitleScreen("Board title", board.title or ""), renamed)

    def action_delete_board(self) -> None:
        board = self._highlighted()
        if board is None:
            return

        def confirmed(yes: bool) -> None:
            if yes:
                self.controller.submit(self.controller.delete_board(board.id))

        self.app.push_screen(ConfirmScreen(f'Delete board "{board.title}" with all its lists and cards?'), confirmed)
