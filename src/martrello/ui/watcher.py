"""Mixin that ties model watches to a widget's lifetime."""

from __future__ import annotations

from typing import Callable

from martrello.model.node import Callback, ListNode, Node


class NodeWatcherMixin:
    """Mixin for widgets that watch the board tree or the store.

    Subclasses should:
    - Call ``_init_watcher()`` in ``__init__``
    - Use ``self.node_watch(node, key, callback)`` instead of ``node.watch(...)``
    - Use ``self.store_watch(store, callback)`` for whole-store changes
    - Skip writing ``on_unmount`` -- the mixin handles cleanup

    Callbacks are dropped while the widget is detached from the DOM, so a
    watcher never touches a widget that is being removed.
    """

    def _init_watcher(self) -> None:
        self._unwatchers: list[Callable[[], None]] = []

    def node_watch(self, node: Node | ListNode, key: str, callback: Callback) -> None:
        """Watch key on node until this widget unmounts."""

        def guarded(source, key, old, new) -> None:
            if self.is_attached:
                callback(source, key, old, new)

        self._unwatchers.append(node.watch(key, guarded))

    def store_watch(self, store, callback: Callable[[int], None]) -> None:
        """Watch every store change until this widget unmounts."""

        def guarded(version: int) -> None:
            if self.is_attached:
                callback(version)

        self._unwatchers.append(store.watch(guarded))

    def unwatch_all(self) -> None:
        for unwatch in self._unwatchers:
            unwatch()
        self._unwatchers.clear()

    def on_unmount(self) -> None:
        self.unwatch_all()
