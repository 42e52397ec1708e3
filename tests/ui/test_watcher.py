"""Tests for NodeWatcherMixin."""

from martrello.model.node import Node
from martrello.model.store import BoardStore
from martrello.ui.watcher import NodeWatcherMixin


class FakeWidget(NodeWatcherMixin):
    """Minimal stand-in for a Textual widget."""

    def __init__(self):
        self._init_watcher()
        self.is_attached = True


def test_watch_fires_callback():
    widget = FakeWidget()
    node = Node(title="A")
    calls = []
    widget.node_watch(node, "title", lambda src, key, old, new: calls.append((old, new)))

    node.title = "B"
    assert calls == [("A", "B")]


def test_detached_widget_skips_callback():
    widget = FakeWidget()
    node = Node(title="A")
    calls = []
    widget.node_watch(node, "title", lambda src, key, old, new: calls.append(new))

    widget.is_attached = False
    node.title = "B"
    assert calls == []


def test_on_unmount_cleans_up():
    widget = FakeWidget()
    node = Node(title="A")
    store = BoardStore()
    calls = []
    widget.node_watch(node, "title", lambda src, key, old, new: calls.append(new))
    widget.store_watch(store, calls.append)

    widget.on_unmount()

    node.title = "B"
    store.add_board({"id": 1, "title": "Work"})
    assert calls == []


def test_store_watch_receives_version():
    widget = FakeWidget()
    store = BoardStore()
    versions = []
    widget.store_watch(store, versions.append)

    store.add_board({"id": 1, "title": "Work"})
    assert versions == [store.version]
