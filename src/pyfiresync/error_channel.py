"""Multicast channel for asynchronous failures (rejected logins, failed writes)."""

from __future__ import annotations

import logging

from reactivex import Observable
from reactivex import operators as ops
from reactivex.subject import Subject

_logger = logging.getLogger(__name__)


class ErrorChannel:
    """Broadcast channel owned by one driver for its whole lifetime.

    Failures are pushed as values, so observing the channel never terminates
    it; subscribers only see errors pushed after they subscribed.
    """

    def __init__(self) -> None:
        self._subject: Subject[BaseException] = Subject()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, error: BaseException) -> None:
        if self._closed:
            _logger.debug("Dropping error on closed channel: %r", error)
            return
        _logger.warning("Asynchronous store operation failed: %s", error)
        self._subject.on_next(error)

    def as_observable(self) -> Observable[BaseException]:
        return self._subject.pipe(ops.as_observable())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._subject.on_completed()
