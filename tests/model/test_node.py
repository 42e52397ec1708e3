"""Tests for the reactive Node and ListNode tree."""

import pytest

from martrello.model.node import ListNode, Node


def _cards(*titles):
    cards = ListNode()
    for i, title in enumerate(titles):
        cards[str(100 + i)] = {"id": str(100 + i), "title": title, "position": i}
    return cards


# --- Node basics ---


def test_node_set_and_get():
    card = Node()
    card.title = "Write report"
    assert card.title == "Write report"


def test_node_get_missing_returns_none():
    assert Node().description is None


def test_node_set_none_deletes():
    card = Node(description="long text")
    card.description = None
    assert "description" not in card


def test_node_zero_is_kept():
    card = Node(position=0)
    assert card.position == 0
    assert "position" in card


def test_node_auto_wrap_sets_parent():
    board = Node()
    board.settings = {"background": "#0079bf"}
    assert isinstance(board.settings, Node)
    assert board.settings._parent is board
    assert board.settings._key == "settings"


def test_node_version_only_bumps_on_change():
    card = Node()
    card.title = "A"
    card.title = "A"
    assert card._version == 1


def test_node_path_nested():
    board = Node()
    board.lists = ListNode()
    board.lists["10"] = {"title": "Todo"}
    assert board.lists["10"].path == "lists.10"


# --- Watchers ---


def test_watch_fires_on_change():
    events = []
    card = Node(title="A")
    card.watch("title", lambda n, k, old, new: events.append((n, k, old, new)))
    card.title = "B"
    assert events == [(card, "title", "A", "B")]


def test_unwatch():
    events = []
    card = Node()
    unwatch = card.watch("title", lambda n, k, old, new: events.append(1))
    card.title = "A"
    unwatch()
    card.title = "B"
    assert len(events) == 1


def test_unwatch_twice_is_harmless():
    card = Node()
    unwatch = card.watch("title", lambda n, k, old, new: None)
    unwatch()
    unwatch()


def test_watcher_not_called_on_no_change():
    events = []
    card = Node(title="A")
    card.watch("title", lambda n, k, old, new: events.append(1))
    card.title = "A"
    assert events == []


# --- Bubbling ---


def test_bubble_through_list_node():
    events = []
    board = Node()
    board.lists = ListNode()
    board.lists["10"] = {"title": "Todo"}
    board.watch("lists", lambda n, k, old, new: events.append((k, old, new)))
    board.lists["10"].title = "Backlog"
    assert events == [("title", "Todo", "Backlog")]


def test_bubble_node_arg_is_source():
    received = []
    lst = Node(cards=_cards("A"))
    lst.watch("cards", lambda n, k, old, new: received.append(n))
    lst.cards["100"].title = "Z"
    assert received == [lst.cards["100"]]


def test_deep_bubble_from_card_to_board():
    events = []
    board = Node(lists=ListNode())
    board.lists["10"] = {"title": "Todo", "cards": _cards("A")}
    board.watch("lists", lambda n, k, old, new: events.append((k, new)))
    board.lists["10"].cards["100"].title = "Z"
    assert events == [("title", "Z")]


# --- ListNode basics ---


def test_list_node_iter_order():
    cards = _cards("A", "B", "C")
    assert [c.title for c in cards] == ["A", "B", "C"]
    assert cards.keys() == ["100", "101", "102"]


def test_list_node_int_keys_are_strings():
    cards = _cards("A")
    assert cards[100] is cards["100"]
    assert 100 in cards


def test_list_node_index():
    cards = _cards("A", "B", "C")
    assert cards.index("102") == 2
    with pytest.raises(KeyError):
        cards.index("999")


def test_list_node_replace_keeps_position():
    cards = _cards("A", "B", "C")
    cards["101"] = {"id": "101", "title": "B2"}
    assert cards.keys() == ["100", "101", "102"]
    assert cards["101"].title == "B2"


def test_list_node_set_none_deletes():
    cards = _cards("A", "B")
    cards["100"] = None
    assert cards.keys() == ["101"]


def test_list_node_iteration_is_a_copy():
    cards = _cards("A", "B", "C")
    for card in cards:
        cards.pop(card.id)
    assert len(cards) == 0


# --- insert / pop / move ---


def test_insert_at_index():
    cards = _cards("A", "B")
    cards.insert("200", {"id": "200", "title": "X"}, 1)
    assert [c.title for c in cards] == ["A", "X", "B"]
    assert cards["200"]._parent is cards


def test_insert_clamps_index():
    cards = _cards("A")
    cards.insert("200", {"title": "X"}, 99)
    cards.insert("201", {"title": "Y"}, -5)
    assert [c.title for c in cards] == ["Y", "A", "X"]


def test_insert_appends_without_index():
    cards = _cards("A")
    cards.insert("200", {"title": "X"})
    assert cards.keys() == ["100", "200"]


def test_insert_duplicate_raises():
    cards = _cards("A")
    with pytest.raises(KeyError):
        cards.insert("100", {"title": "again"})
    assert len(cards) == 1


def test_insert_emits_add():
    events = []
    cards = _cards("A")
    cards.watch("200", lambda n, k, old, new: events.append((old, new.title)))
    cards.insert("200", {"title": "X"}, 0)
    assert events == [(None, "X")]


def test_pop_returns_detached_item():
    cards = _cards("A", "B")
    card = cards.pop("100")
    assert card.title == "A"
    assert card._parent is None
    assert cards.keys() == ["101"]


def test_pop_emits_remove():
    events = []
    cards = _cards("A", "B")
    cards.watch("100", lambda n, k, old, new: events.append((old.title, new)))
    cards.pop("100")
    assert events == [("A", None)]


def test_pop_missing_raises():
    with pytest.raises(KeyError):
        _cards("A").pop("999")


def test_move_reorders_as_one_event():
    events = []
    cards = _cards("A", "B", "C")
    cards.watch("*", lambda n, k, old, new: events.append((old, new)))
    cards.move("100", 2)
    assert [c.title for c in cards] == ["B", "C", "A"]
    assert events == [(["100", "101", "102"], ["101", "102", "100"])]


def test_move_to_same_place_is_silent():
    events = []
    cards = _cards("A", "B")
    cards.watch("*", lambda n, k, old, new: events.append(1))
    cards.move("101", 1)
    assert events == []


def test_move_missing_raises():
    with pytest.raises(KeyError):
        _cards("A").move("999", 0)


# --- update ---


def test_node_update_preserves_identity_and_watchers():
    events = []
    board = Node(title="Work", lists=ListNode())
    board.lists["10"] = {"title": "Todo"}
    todo = board.lists["10"]
    todo.watch("title", lambda n, k, old, new: events.append((old, new)))

    other = Node(title="Work", lists=ListNode())
    other.lists["10"] = {"title": "Backlog"}
    board.update(other)

    assert board.lists["10"] is todo
    assert events == [("Todo", "Backlog")]


def test_node_update_deletes_keys():
    card = Node(title="A", description="old")
    card.update(Node(title="A"))
    assert "description" not in card


def test_list_node_update_adds_deletes_and_reorders():
    cards = _cards("A", "B", "C")
    other = ListNode()
    other["102"] = {"id": "102", "title": "C", "position": 0}
    other["300"] = {"id": "300", "title": "N", "position": 1}
    other["100"] = {"id": "100", "title": "A", "position": 2}
    cards.update(other)
    assert cards.keys() == ["102", "300", "100"]
    assert [c.position for c in cards] == [0, 1, 2]


def test_list_node_update_emits_on_reorder():
    events = []
    lst = Node(cards=_cards("A", "B"))
    lst.watch("cards", lambda n, k, old, new: events.append(k))
    other = ListNode()
    other["101"] = {"id": "101", "title": "B", "position": 1}
    other["100"] = {"id": "100", "title": "A", "position": 0}
    lst.cards.update(other)
    assert lst.cards.keys() == ["101", "100"]
    assert events == ["*"]
