"""Callback-registration APIs turned into disposable reactive streams.

A listener is registered when the stream is subscribed and deregistered
exactly once when the subscription ends: explicit dispose, completion, or
error all go through the same :class:`~reactivex.disposable.Disposable`,
which ignores repeated disposal.
"""

from __future__ import annotations

import logging
from typing import Any

import reactivex as rx
from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase, ObserverBase, SchedulerBase
from reactivex.disposable import Disposable

from pyfiresync._constants import EVENT_VALUE
from pyfiresync.models.auth import AuthState
from pyfiresync.store.base import DataSnapshot, StoreRef

_logger = logging.getLogger(__name__)


def observe(ref: StoreRef, event: str) -> Observable[DataSnapshot]:
    """Observe *event* on *ref*; emits raw :class:`DataSnapshot` envelopes."""

    def subscribe(observer: ObserverBase[DataSnapshot], scheduler: SchedulerBase | None = None) -> DisposableBase:
        def on_snapshot(snapshot: DataSnapshot) -> None:
            observer.on_next(snapshot)

        try:
            callback = ref.on(event, on_snapshot, observer.on_error)
        except Exception as exc:
            _logger.debug("Listener registration failed event=%s path=%r", event, ref.path, exc_info=True)
            observer.on_error(exc)
            return Disposable()

        def unbind() -> None:
            _logger.debug("Removing listener event=%s path=%r", event, ref.path)
            ref.off(event, callback)

        return Disposable(unbind)

    return rx.create(subscribe)


def get_value(ref: StoreRef) -> Observable[Any]:
    """Observe the value at *ref*, unpacked from its snapshot envelope."""
    return observe(ref, EVENT_VALUE).pipe(ops.map(lambda snapshot: snapshot.value))


def auth_to_observable(ref: StoreRef) -> Observable[AuthState | None]:
    """Observe the authentication state of the store behind *ref*."""

    def subscribe(
        observer: ObserverBase[AuthState | None], scheduler: SchedulerBase | None = None
    ) -> DisposableBase:
        def on_auth(state: AuthState | None) -> None:
            observer.on_next(state)

        ref.on_auth(on_auth)
        return Disposable(lambda: ref.off_auth(on_auth))

    return rx.create(subscribe)
