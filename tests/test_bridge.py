from __future__ import annotations

from typing import Any

import pytest

from pyfiresync._bridge import auth_to_observable, get_value, observe
from pyfiresync.store.base import DataSnapshot
from pyfiresync.store.memory import MemoryStore


class _FakeRef:
    """Listener registry that records every on/off call."""

    path = "items"

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.on_calls: list[str] = []
        self.off_calls: list[tuple[str, Any]] = []
        self.callback: Any = None
        self.error_callback: Any = None

    def on(self, event: str, callback: Any, error_callback: Any = None) -> Any:
        if self.fail_with is not None:
            raise self.fail_with
        self.on_calls.append(event)
        self.callback = callback
        self.error_callback = error_callback
        return callback

    def off(self, event: str, callback: Any) -> None:
        self.off_calls.append((event, callback))


def test_observe_registers_on_subscribe_and_deregisters_once() -> None:
    ref = _FakeRef()
    received: list[DataSnapshot] = []
    stream = observe(ref, "child_added")

    assert ref.on_calls == []
    subscription = stream.subscribe(on_next=received.append)
    assert ref.on_calls == ["child_added"]

    ref.callback(DataSnapshot("a", 1))
    subscription.dispose()
    subscription.dispose()

    assert received == [DataSnapshot("a", 1)]
    assert ref.off_calls == [("child_added", ref.callback)]


def test_observe_store_error_terminates_and_deregisters() -> None:
    ref = _FakeRef()
    errors: list[Exception] = []
    subscription = observe(ref, "value").subscribe(on_next=lambda _s: None, on_error=errors.append)

    failure = RuntimeError("permission denied")
    ref.error_callback(failure)
    subscription.dispose()

    assert errors == [failure]
    assert len(ref.off_calls) == 1


def test_observe_registration_failure_is_a_stream_error() -> None:
    failure = ValueError("bad event")
    ref = _FakeRef(fail_with=failure)
    errors: list[Exception] = []

    subscription = observe(ref, "value").subscribe(on_error=errors.append)
    subscription.dispose()

    assert errors == [failure]
    assert ref.off_calls == []


def test_get_value_unpacks_snapshots() -> None:
    store = MemoryStore()
    values: list[Any] = []

    subscription = get_value(store.root.child("a")).subscribe(values.append)
    store.write("a", 1)
    store.write("a/b", 2)
    store.write("other", 3)
    subscription.dispose()
    store.write("a", 4)

    assert values == [None, 1, {"b": 2}]
    assert store.listener_count == 0


def test_observe_rejects_unknown_event_through_error_path() -> None:
    store = MemoryStore()
    errors: list[Exception] = []

    observe(store.root, "child_moved").subscribe(on_error=errors.append)

    assert len(errors) == 1
    assert isinstance(errors[0], ValueError)
    assert store.listener_count == 0


def test_auth_to_observable_follows_sign_in_and_out() -> None:
    store = MemoryStore()
    states: list[Any] = []

    subscription = auth_to_observable(store.root).subscribe(states.append)
    store.auth_anonymously()
    store.unauth()
    subscription.dispose()
    store.auth_anonymously()

    assert len(states) == 3
    assert states[0] is None
    assert states[1].provider == "anonymous"
    assert states[2] is None


@pytest.mark.parametrize("event", ["value", "child_added", "child_changed", "child_removed"])
def test_observe_each_event_cleans_up(event: str) -> None:
    store = MemoryStore()

    subscription = observe(store.root.child("list"), event).subscribe(lambda _s: None)
    assert store.listener_count == 1
    subscription.dispose()

    assert store.listener_count == 0
