from __future__ import annotations

from typing import Any

from pyfiresync.changes import ChangeOp, get_changes, is_directive, unwrap, wrap
from pyfiresync.store.memory import MemoryStore


def _apply(store: MemoryStore, changes: list[ChangeOp]) -> None:
    for change in changes:
        store.write(change.location, change.value)


def test_snapshot_scenario_change_sequence() -> None:
    snapshots: list[dict[str, Any]] = [{}, {"a": 1}, {"a": 1, "b": 2}, {"a": {"$set": {"c": 3}}}]

    sequences = [get_changes(prev, nxt) for prev, nxt in zip(snapshots, snapshots[1:])]

    assert sequences == [
        [ChangeOp("a", 1)],
        [ChangeOp("b", 2)],
        [ChangeOp("a", {"c": 3})],
    ]


def test_identical_snapshots_yield_no_changes() -> None:
    tree = {
        "a": {"b": {"c": 1}, "d": [1, 2]},
        "e": wrap({"f": {"g": 2}}),
        "h": None,
        "$user": wrap({"provider": "anonymous"}),
    }

    assert get_changes(tree, tree) == []


def test_nested_changes_do_not_overwrite_parents() -> None:
    prev = {"todos": {"1": {"title": "a", "done": False}}}
    nxt = {"todos": {"1": {"title": "a", "done": True}, "2": {"title": "b"}}}

    assert get_changes(prev, nxt) == [
        ChangeOp("todos/1/done", True),
        ChangeOp("todos/2/title", "b"),
    ]


def test_explicit_none_deletes_and_missing_keys_are_untouched() -> None:
    prev = {"a": 1, "b": {"c": 2}, "keep": 3}
    nxt = {"a": None, "b": None}

    assert get_changes(prev, nxt) == [ChangeOp("a", None), ChangeOp("b", None)]


def test_none_for_unknown_location_is_not_written() -> None:
    assert get_changes({}, {"a": None}) == []


def test_directive_payload_is_opaque() -> None:
    payload = {"x": {"$set": 1}, "y": None}

    assert get_changes({}, {"a": wrap(payload)}) == [ChangeOp("a", payload)]


def test_same_directive_payload_is_not_rewritten() -> None:
    prev = {"a": wrap({"c": 3})}
    nxt = {"a": wrap({"c": 3})}
    changed = {"a": wrap({"c": 4})}

    assert get_changes(prev, nxt) == []
    assert get_changes(prev, changed) == [ChangeOp("a", {"c": 4})]


def test_plain_mapping_after_directive_diffs_against_payload() -> None:
    prev = {"a": wrap({"c": 3, "d": 4})}
    nxt = {"a": {"c": 3, "d": 5}}

    assert get_changes(prev, nxt) == [ChangeOp("a/d", 5)]


def test_scalar_replacing_subtree_is_a_single_write() -> None:
    assert get_changes({"a": {"b": 1}}, {"a": 7}) == [ChangeOp("a", 7)]


def test_lists_are_written_whole() -> None:
    assert get_changes({"tags": ["a"]}, {"tags": ["a", "b"]}) == [ChangeOp("tags", ["a", "b"])]


def test_directive_helpers() -> None:
    assert wrap(1) == {"$set": 1}
    assert is_directive({"$set": None})
    assert not is_directive({"$set": 1, "other": 2})
    assert not is_directive(1)
    assert unwrap(wrap({"a": 1})) == {"a": 1}
    assert unwrap({"a": 1}) == {"a": 1}


def test_applying_changes_reaches_next_snapshot() -> None:
    prev = {"a": {"b": 1, "c": 2}, "d": 5, "f": {"g": 1}}
    nxt = {
        "a": {"b": 3, "c": None},
        "d": wrap({"x": 1}),
        "e": [1, 2],
        "f": {"g": 1, "h": {"i": True}},
    }
    store = MemoryStore()
    store.write("", prev)

    _apply(store, get_changes(prev, nxt))

    assert store.get() == {
        "a": {"b": 3},
        "d": {"x": 1},
        "e": [1, 2],
        "f": {"g": 1, "h": {"i": True}},
    }


def test_directive_replaces_previous_subtree_in_store() -> None:
    prev = {"a": {"old": 1, "keep": 2}}
    nxt = {"a": wrap({"new": 3})}
    store = MemoryStore()
    store.write("", prev)

    _apply(store, get_changes(prev, nxt))

    assert store.get("a") == {"new": 3}


def test_empty_keys_do_not_collapse_onto_parent() -> None:
    assert get_changes({}, {"a": {"": 5, "b": 1}}) == [ChangeOp("a/b", 1)]
    assert get_changes({"a": {"b": 1}}, {"": {"a": 2}}) == []
