"""Path normalization and classification.

Locations are ``/``-separated strings; ``""`` is the root. A location whose
first character is ``$`` belongs to a virtual namespace instead of the
store. The read path (accessor, resolver) classifies a location once and
then dispatches on the variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ReservedPrefix(StrEnum):
    USER = "$user"
    LAST_ERROR = "$lastError"


@dataclass(frozen=True, slots=True)
class StorePath:
    """A location backed by store data."""

    path: str

    @property
    def segments(self) -> tuple[str, ...]:
        return split_path(self.path)


@dataclass(frozen=True, slots=True)
class ReservedPath:
    """A location inside a virtual namespace (``$user/uid``, ``$lastError``)."""

    prefix: str
    segments: tuple[str, ...] = ()

    @property
    def path(self) -> str:
        return "/".join((self.prefix, *self.segments))


def normalize_path(path: str) -> str:
    """Strip leading/trailing slashes and collapse repeated slashes."""
    return "/".join(segment for segment in path.split("/") if segment)


def join_path(base: str, sub_path: str) -> str:
    return normalize_path(f"{base}/{sub_path}")


def split_path(path: str) -> tuple[str, ...]:
    return tuple(segment for segment in path.split("/") if segment)


def classify_path(location: str) -> StorePath | ReservedPath:
    """Classify a location as store data or a virtual namespace."""
    normalized = normalize_path(location)
    if not normalized.startswith("$"):
        return StorePath(normalized)
    prefix, *segments = normalized.split("/")
    return ReservedPath(prefix, tuple(segments))
