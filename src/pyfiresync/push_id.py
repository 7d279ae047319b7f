"""Chronologically ordered unique keys for optimistic child creation.

Each id is 20 characters: 8 characters encoding the millisecond timestamp
followed by 12 random characters. Ids minted within the same millisecond
reuse the previous random part incremented by one, so ids generated by one
process are unique and sort in creation order. Uniqueness across processes
is advisory only; no coordination with the store happens here.
"""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable

from pyfiresync._constants import PUSH_CHARS, PUSH_ID_RANDOM_CHARS, PUSH_ID_TIME_CHARS

_BASE = len(PUSH_CHARS)


def _now_ms() -> int:
    return int(time.time() * 1000)


class PushIdGenerator:
    """Stateful generator of push ids."""

    def __init__(self, *, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_timestamp = -1
        self._last_random: list[int] = [0] * PUSH_ID_RANDOM_CHARS

    def __call__(self) -> str:
        with self._lock:
            now = self._clock()
            if now == self._last_timestamp:
                self._increment_random()
            else:
                self._last_timestamp = now
                self._last_random = [secrets.randbelow(_BASE) for _ in range(PUSH_ID_RANDOM_CHARS)]
            random_part = "".join(PUSH_CHARS[index] for index in self._last_random)
        return _encode_timestamp(now) + random_part

    def _increment_random(self) -> None:
        index = PUSH_ID_RANDOM_CHARS - 1
        while index >= 0 and self._last_random[index] == _BASE - 1:
            self._last_random[index] = 0
            index -= 1
        if index >= 0:
            self._last_random[index] += 1


def _encode_timestamp(timestamp_ms: int) -> str:
    if timestamp_ms < 0:
        raise ValueError(f"timestamp must be non-negative, got {timestamp_ms}")
    chars: list[str] = []
    for _ in range(PUSH_ID_TIME_CHARS):
        chars.append(PUSH_CHARS[timestamp_ms % _BASE])
        timestamp_ms //= _BASE
    return "".join(reversed(chars))


_default_generator = PushIdGenerator()


def generate_push_id() -> str:
    """Return a new push id from the process-wide generator."""
    return _default_generator()
