"""Reactive board tree: attribute records and ordered id-keyed collections.

A change is reported to the watchers registered for the changed key, then
to each ancestor's watchers for the branch the change came through. A board
watching ``lists`` therefore hears about a card retitled three levels down.
Callbacks receive ``(source, key, old, new)`` where ``source`` is the
container that actually changed.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

Callback = Callable[[Any, str, Any, Any], None]

# Key reported when a collection changes order. old/new are the key lists.
REORDER = "*"


class _Reactive:
    """Parent link, watcher registry and change propagation."""

    def _setup(self, parent: _Reactive | None, key: str | None) -> None:
        object.__setattr__(self, "_watchers", {})
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_key", key)
        object.__setattr__(self, "_version", 0)

    def watch(self, key: str, callback: Callback) -> Callable[[], None]:
        """Call callback on changes at or below key. Returns an unwatch callable."""
        callbacks = self._watchers.setdefault(str(key), [])
        callbacks.append(callback)

        def unwatch() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unwatch

    def _adopt(self, value: Any, key: str) -> Any:
        if isinstance(value, dict):
            return Node(_parent=self, _key=key, **value)
        if isinstance(value, _Reactive):
            object.__setattr__(value, "_parent", self)
            object.__setattr__(value, "_key", key)
        return value

    def _changed(self, key: str, old: Any, new: Any) -> None:
        object.__setattr__(self, "_version", self._version + 1)
        # Copies, so a callback may unwatch itself.
        for callback in list(self._watchers.get(key, ())):
            callback(self, key, old, new)
        branch, ancestor = self, self._parent
        while ancestor is not None:
            for callback in list(ancestor._watchers.get(branch._key, ())):
                callback(self, key, old, new)
            branch, ancestor = ancestor, ancestor._parent

    @property
    def path(self) -> str:
        """Dotted keys from the root, e.g. ``lists.10.cards``."""
        parts = []
        node = self
        while node is not None and node._key is not None:
            parts.append(node._key)
            node = node._parent
        return ".".join(reversed(parts))


def _same_kind(old: Any, new: Any) -> bool:
    return isinstance(old, _Reactive) and type(old) is type(new)


class Node(_Reactive):
    """A board, list or card record with attribute access.

    Missing attributes read as None and assigning None removes the field.
    """

    def __init__(self, _parent: _Reactive | None = None, _key: str | None = None, **fields: Any) -> None:
        self._setup(_parent, _key)
        object.__setattr__(self, "_fields", {})
        for name, value in fields.items():
            if value is not None:
                self._fields[name] = self._adopt(value, name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._fields.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        old = self._fields.get(name)
        if value is None:
            if name not in self._fields:
                return
            del self._fields[name]
        else:
            value = self._adopt(value, name)
            self._fields[name] = value
        if old is not value and old != value:
            self._changed(name, old, value)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def update(self, other: Node) -> None:
        """Make this node equal to other without replacing shared children.

        Nested nodes and collections are updated in place, so their watchers
        and any widget holding them stay valid.
        """
        for name in [n for n in self._fields if n not in other._fields]:
            setattr(self, name, None)
        for name, new in list(other._fields.items()):
            old = self._fields.get(name)
            if _same_kind(old, new):
                old.update(new)
            else:
                setattr(self, name, new)

    def __repr__(self) -> str:
        shown = ", ".join(f"{k}={v!r}" for k, v in self._fields.items() if not isinstance(v, _Reactive))
        return f"Node({shown})"


class ListNode(_Reactive):
    """Lists of a board or cards of a list, in display order, keyed by id.

    Integer keys are accepted and stored as strings. Iteration yields the
    items in order over a copy, so the collection may change mid-loop.
    """

    def __init__(self, _parent: _Reactive | None = None, _key: str | None = None) -> None:
        self._setup(_parent, _key)
        self._entries: dict[str, Any] = {}

    def __getitem__(self, key: str | int) -> Any:
        return self._entries.get(str(key))

    def __setitem__(self, key: str | int, value: Any) -> None:
        """Add at the end, or replace in place. None removes."""
        key = str(key)
        if value is None:
            if key in self._entries:
                self.pop(key)
            return
        old = self._entries.get(key)
        value = self._adopt(value, key)
        self._entries[key] = value
        if old is not value and old != value:
            self._changed(key, old, value)

    def __contains__(self, key: str | int) -> bool:
        return str(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._entries.values()))

    def keys(self) -> list[str]:
        return list(self._entries)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._entries.items())

    def index(self, key: str | int) -> int:
        try:
            return self.keys().index(str(key))
        except ValueError:
            raise KeyError(key) from None

    def insert(self, key: str | int, value: Any, index: int | None = None) -> Any:
        """Insert a new item at index (clamped, default the end) and return it."""
        key = str(key)
        if key in self._entries:
            raise KeyError(f"duplicate key {key!r}")
        value = self._adopt(value, key)
        ordered = list(self._entries.items())
        at = len(ordered) if index is None else max(0, min(index, len(ordered)))
        ordered.insert(at, (key, value))
        self._entries = dict(ordered)
        self._changed(key, None, value)
        return value

    def pop(self, key: str | int) -> Any:
        """Remove and return an item, detached from this collection."""
        key = str(key)
        if key not in self._entries:
            raise KeyError(key)
        old = self._entries.pop(key)
        if isinstance(old, _Reactive):
            object.__setattr__(old, "_parent", None)
        self._changed(key, old, None)
        return old

    def move(self, key: str | int, index: int) -> None:
        """Move an existing item to index (clamped). One reorder event, or none."""
        key = str(key)
        if key not in self._entries:
            raise KeyError(key)
        order = [k for k in self._entries if k != key]
        order.insert(max(0, min(index, len(order))), key)
        self._reorder(order)

    def _reorder(self, order: list[str]) -> None:
        before = self.keys()
        if order == before:
            return
        self._entries = {k: self._entries[k] for k in order}
        self._changed(REORDER, before, order)

    def update(self, other: ListNode) -> None:
        """Match other's items and order, updating shared ids in place."""
        for key in [k for k in self._entries if k not in other._entries]:
            self.pop(key)
        for key, new in other.items():
            old = self._entries.get(key)
            if _same_kind(old, new):
                old.update(new)
            else:
                self[key] = new
        self._reorder(other.keys())

    def __repr__(self) -> str:
        return f"ListNode({self.keys()})"
