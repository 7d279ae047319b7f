"""Reconciliation of snapshot streams against the store.

Consecutive snapshots are diffed and every resulting change is applied
verbatim: a full set at its location, except ``$user`` which is routed to
the store's authentication operations instead of being written.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase

from pyfiresync._redact import redact_for_log
from pyfiresync.auth import handle_authentication
from pyfiresync.changes import ChangeOp, get_changes
from pyfiresync.error_channel import ErrorChannel
from pyfiresync.exceptions import ProtocolViolationError
from pyfiresync.paths import ReservedPrefix, normalize_path
from pyfiresync.store.base import StoreRef, child_ref

_logger = logging.getLogger(__name__)

DiffFn = Callable[[Mapping[str, Any], Mapping[str, Any]], Iterable[ChangeOp]]
AuthDispatchFn = Callable[[Any], tuple[Any, ...]]


class ChangeDispatcher:
    """Applies snapshot differences to a store."""

    def __init__(
        self,
        ref: StoreRef,
        errors: ErrorChannel,
        *,
        diff: DiffFn = get_changes,
        auth_dispatch: AuthDispatchFn = handle_authentication,
    ) -> None:
        self._ref = ref
        self._errors = errors
        self._diff = diff
        self._auth_dispatch = auth_dispatch

    def attach(self, snapshots: Observable[Mapping[str, Any]]) -> DisposableBase:
        """Start reconciling *snapshots*; the first one is compared against ``{}``."""
        return snapshots.pipe(
            ops.start_with({}),
            ops.pairwise(),
            ops.map(lambda pair: list(self._diff(pair[0], pair[1]))),
        ).subscribe(on_next=self.apply_all)

    def apply_all(self, changes: Iterable[ChangeOp]) -> None:
        for change in changes:
            self.apply(change)

    def apply(self, change: ChangeOp) -> None:
        """Apply one change.

        Raises
        ------
        ProtocolViolationError
            If the change targets a location that starts with ``$user`` but is
            not exactly ``$user`` (``$user/name``, ``$username``).
        UnsupportedAuthMethodError
            If a ``$user`` assignment holds an unrecognized login descriptor.
        """
        location = normalize_path(change.location)
        if location.startswith(ReservedPrefix.USER):
            self._authenticate(location, change.value)
            return

        _logger.debug("Applying change location=%r value=%s", location, redact_for_log(change.value))
        result = child_ref(self._ref, location).set(change.value)
        self._watch(result, f"write to {location!r}")

    def _authenticate(self, location: str, descriptor: Any) -> None:
        if location != ReservedPrefix.USER:
            raise ProtocolViolationError(
                f"Only whole assignment is allowed on {ReservedPrefix.USER!s}, got {location!r}",
                location=location,
            )

        method_name, *args = self._auth_dispatch(descriptor)
        _logger.debug("Authenticating method=%s descriptor=%s", method_name, redact_for_log(descriptor))
        method = getattr(self._ref, method_name)
        self._watch(method(*args), f"{method_name}()")

    def _watch(self, result: Any, operation: str) -> None:
        """Route the eventual failure of an asynchronous result to the error channel."""
        if inspect.iscoroutine(result):
            result = asyncio.ensure_future(result)
        if not hasattr(result, "add_done_callback"):
            return

        def on_done(future: Any) -> None:
            if future.cancelled():
                _logger.debug("%s cancelled", operation)
                return
            error = future.exception()
            if error is not None:
                self._errors.push(error)

        result.add_done_callback(on_done)
