from __future__ import annotations

from typing import Any

import pytest
import reactivex as rx

from pyfiresync.accessor import DriverContext, PathAccessor, create_accessor
from pyfiresync.exceptions import InvalidArgumentError, UnknownReservedPathError
from pyfiresync.paths import ReservedPrefix
from pyfiresync.resolver import VirtualNamespaceResolver
from pyfiresync.store.base import DataSnapshot
from pyfiresync.store.memory import MemoryStore


def _root(store: MemoryStore) -> PathAccessor:
    context = DriverContext(
        ref=store.root,
        resolver=VirtualNamespaceResolver(
            {
                ReservedPrefix.USER: rx.just({"uid": "u1"}),
                ReservedPrefix.LAST_ERROR: rx.empty(),
            }
        ),
        uid_stream=rx.just("u1"),
        push_id_stream=rx.just("push-1"),
    )
    return create_accessor("", context)


def _first(stream: rx.Observable[Any]) -> list[Any]:
    seen: list[Any] = []
    stream.subscribe(seen.append).dispose()
    return seen


def test_child_composition_is_path_based() -> None:
    root = _root(MemoryStore())

    assert root.child("a").child("b") == root.child("a/b")
    assert root.child("/a//b/").path == "a/b"
    assert root.child("").path == ""


def test_child_rejects_non_string() -> None:
    root = _root(MemoryStore())

    with pytest.raises(InvalidArgumentError):
        root.child(1)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        root.child(None)  # type: ignore[arg-type]


def test_get_reads_store_values() -> None:
    store = MemoryStore()
    store.write("a/b", 1)
    root = _root(store)

    assert _first(root.get()) == [{"a": {"b": 1}}]
    assert _first(root.get("")) == _first(root.get())
    assert _first(root.child("a").get("b")) == [1]
    assert _first(root.child("a/b").get()) == [1]
    assert _first(root.get("missing")) == [None]


def test_get_follows_later_writes_until_disposed() -> None:
    store = MemoryStore()
    seen: list[Any] = []
    subscription = _root(store).child("counter").get().subscribe(seen.append)

    store.write("counter", 1)
    store.write("counter", 2)
    subscription.dispose()
    store.write("counter", 3)

    assert seen == [None, 1, 2]


def test_get_routes_reserved_locations_to_resolver() -> None:
    root = _root(MemoryStore())

    assert _first(root.get("$user")) == [{"uid": "u1"}]
    assert _first(root.get("$user/uid")) == ["u1"]
    assert _first(root.child("$user").get("uid")) == ["u1"]


def test_get_unknown_reserved_prefix() -> None:
    root = _root(MemoryStore())

    with pytest.raises(UnknownReservedPathError):
        root.get("$nope")


def test_ref_returns_store_handles() -> None:
    store = MemoryStore()
    root = _root(store)

    assert root.ref() is root.context.ref
    assert root.child("a").child("b").ref() == store.root.child("a/b")


def test_path_independent_members() -> None:
    store = MemoryStore()
    store.write("x", 5)
    root = _root(store)

    assert _first(root.child("deep/path").uid_stream) == ["u1"]
    assert _first(root.push_id_stream) == ["push-1"]
    assert PathAccessor.wrap(1) == {"$set": 1}
    assert _first(root.value(store.root.child("x"))) == [5]
    assert _first(root.observe(store.root.child("x"), "value")) == [DataSnapshot("x", 5)]
