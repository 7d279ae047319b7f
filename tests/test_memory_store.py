from __future__ import annotations

from typing import Any

from pyfiresync.exceptions import StoreAuthenticationError, StorePermissionError
from pyfiresync.store.base import DataSnapshot
from pyfiresync.store.memory import MemoryStore


def _listen(store: MemoryStore, path: str, event: str) -> tuple[list[DataSnapshot], list[Exception]]:
    seen: list[DataSnapshot] = []
    errors: list[Exception] = []
    store.root.child(path).on(event, seen.append, errors.append)
    return seen, errors


class TestWrites:
    def test_set_replaces_subtree(self) -> None:
        store = MemoryStore()
        store.write("a", {"b": 1, "c": 2})
        store.write("a", {"d": 3})

        assert store.get() == {"a": {"d": 3}}

    def test_none_deletes_and_prunes_empty_parents(self) -> None:
        store = MemoryStore()
        store.write("a/b/c", 1)
        store.write("a/b/c", None)

        assert store.get() is None

    def test_empty_mappings_are_not_stored(self) -> None:
        store = MemoryStore()
        store.write("a", {"b": {}, "c": 1})

        assert store.get() == {"a": {"c": 1}}

    def test_write_below_scalar_replaces_it(self) -> None:
        store = MemoryStore()
        store.write("a", 1)
        store.write("a/b", 2)

        assert store.get("a") == {"b": 2}

    def test_get_returns_detached_copies(self) -> None:
        store = MemoryStore()
        store.write("a", {"b": [1]})
        copy = store.get("a")
        copy["b"].append(2)

        assert store.get("a") == {"b": [1]}

    def test_bound_ref_set(self) -> None:
        store = MemoryStore()
        store.root.child("x").child("y").set(1)

        assert store.get("x/y") == 1
        assert store.root.child("x/y").key == "y"
        assert store.root.child("x/y").root == store.root


class TestListeners:
    def test_value_fires_initially_and_on_change(self) -> None:
        store = MemoryStore()
        seen, _ = _listen(store, "a", "value")
        store.write("a/b", 1)
        store.write("other", 1)
        store.write("a/b", 1)

        assert seen == [DataSnapshot("a", None), DataSnapshot("a", {"b": 1})]

    def test_child_events(self) -> None:
        store = MemoryStore()
        store.write("list", {"one": 1})
        added, _ = _listen(store, "list", "child_added")
        changed, _ = _listen(store, "list", "child_changed")
        removed, _ = _listen(store, "list", "child_removed")

        store.write("list/two", 2)
        store.write("list/one", 10)
        store.write("list/two", None)

        assert added == [DataSnapshot("one", 1), DataSnapshot("two", 2)]
        assert changed == [DataSnapshot("one", 10)]
        assert removed == [DataSnapshot("two", 2)]

    def test_off_matches_callback_identity(self) -> None:
        store = MemoryStore()
        seen: list[Any] = []
        callback = store.root.child("a").on("value", seen.append)
        store.root.child("a").off("value", lambda _s: None)
        assert store.listener_count == 1

        store.root.child("a").off("value", callback)
        store.write("a", 1)

        assert store.listener_count == 0
        assert seen == [DataSnapshot("a", None)]

    def test_cancel_fails_listeners_below_path(self) -> None:
        store = MemoryStore()
        _, inside = _listen(store, "secret/a", "value")
        _, outside = _listen(store, "public", "value")
        denied = StorePermissionError("permission denied", code="cancel")

        assert store.cancel("secret", denied) == 1
        assert inside == [denied]
        assert outside == []
        assert store.listener_count == 1


class TestAuth:
    def test_password_sign_in(self) -> None:
        store = MemoryStore()
        uid = store.add_user("a@b.com", "pw")

        state = store.root.auth_with_password({"email": "a@b.com", "password": "pw"}).result()

        assert state.uid == uid
        assert state.provider == "password"
        assert store.auth == state

    def test_password_failures(self) -> None:
        store = MemoryStore()
        store.add_user("a@b.com", "pw")

        unknown = store.auth_with_password({"email": "x@b.com", "password": "pw"}).exception()
        wrong = store.auth_with_password({"email": "a@b.com", "password": "nope"}).exception()

        assert isinstance(unknown, StoreAuthenticationError)
        assert unknown.code == "EMAIL_NOT_FOUND"
        assert isinstance(wrong, StoreAuthenticationError)
        assert wrong.code == "INVALID_PASSWORD"
        assert store.auth is None

    def test_token_sign_ins_are_stable(self) -> None:
        store = MemoryStore()

        custom = store.auth_with_custom_token("user-7").result()
        first = store.auth_with_oauth_token("github", "gho").result()
        second = store.auth_with_oauth_token("github", "gho").result()

        assert custom.uid == "user-7"
        assert first.uid == second.uid
        assert first.provider == "github"

    def test_auth_callbacks(self) -> None:
        store = MemoryStore()
        states: list[Any] = []
        store.root.on_auth(states.append)
        store.auth_anonymously()
        store.root.off_auth(states.append)
        store.unauth()

        assert states[0] is None
        assert states[1].provider == "anonymous"
        assert len(states) == 2
