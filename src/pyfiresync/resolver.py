"""Virtual namespaces layered over the store.

``$user`` resolves to the authentication-state stream and ``$lastError`` to
the driver's error channel. Deeper segments (``$user/uid``,
``$lastError/code``) pick a field out of each emitted value.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel
from reactivex import Observable
from reactivex import operators as ops

from pyfiresync.exceptions import UnknownReservedPathError
from pyfiresync.paths import ReservedPath, classify_path


def _field(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(value, BaseModel):
        return value.model_dump().get(key)
    if key.startswith("_"):
        # Private and dunder attributes are not data.
        return None
    return getattr(value, key, None)


def pluck(value: Any, segments: Sequence[str]) -> Any:
    """Walk *segments* through *value*; a missing intermediate yields ``None``."""
    for segment in segments:
        if value is None:
            return None
        value = _field(value, segment)
    return value


class VirtualNamespaceResolver:
    """Maps reserved prefixes to the streams backing them."""

    def __init__(self, namespaces: Mapping[str, Observable[Any]]) -> None:
        self._namespaces = dict(namespaces)

    @property
    def prefixes(self) -> frozenset[str]:
        return frozenset(self._namespaces)

    def resolve(self, location: str | ReservedPath) -> Observable[Any]:
        """Return the stream for a reserved location.

        Raises
        ------
        UnknownReservedPathError
            If the location's prefix names no known namespace.
        """
        target = classify_path(location) if isinstance(location, str) else location
        if not isinstance(target, ReservedPath):
            raise UnknownReservedPathError(
                f"{target.path!r} is not a reserved location",
                prefix="",
            )

        stream = self._namespaces.get(target.prefix)
        if stream is None:
            raise UnknownReservedPathError(
                f"No reserved namespace called {target.prefix!r}",
                prefix=target.prefix,
            )

        segments = target.segments
        if not segments:
            return stream
        return stream.pipe(ops.map(lambda value: pluck(value, segments)))
