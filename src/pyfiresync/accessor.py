"""Path-scoped read handles.

A :class:`PathAccessor` is an immutable view bound to one normalized
location. It owns nothing but its path and a reference to the context
shared by every accessor of a driver, so accessors are free to create,
share and compare.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reactivex import Observable

from pyfiresync._bridge import get_value, observe
from pyfiresync.changes import wrap
from pyfiresync.exceptions import InvalidArgumentError
from pyfiresync.paths import ReservedPath, classify_path, join_path, normalize_path
from pyfiresync.resolver import VirtualNamespaceResolver
from pyfiresync.store.base import DataSnapshot, StoreRef, child_ref


@dataclass(eq=False, slots=True)
class DriverContext:
    """State shared by all accessors created from one driver call."""

    ref: StoreRef
    resolver: VirtualNamespaceResolver
    uid_stream: Observable[str | None]
    push_id_stream: Observable[str]


@dataclass(frozen=True, slots=True)
class PathAccessor:
    path: str
    context: DriverContext = field(repr=False)

    # ------------------------------------------------------------------
    # Path-scoped operations
    # ------------------------------------------------------------------

    def child(self, sub_path: str) -> PathAccessor:
        """Return an accessor scoped to *sub_path* below this one."""
        if not isinstance(sub_path, str):
            raise InvalidArgumentError(
                f"Required argument to child() has to be a string, got {type(sub_path).__name__}"
            )
        return create_accessor(join_path(self.path, sub_path), self.context)

    def get(self, sub_path: str = "") -> Observable[Any]:
        """Observe the value at this location or at *sub_path* below it.

        Store locations emit their current value and every later change.
        Reserved locations (``$user``, ``$lastError``) emit from their
        virtual namespace.

        Raises
        ------
        UnknownReservedPathError
            If the location starts with an unknown ``$`` prefix.
        """
        target = classify_path(join_path(self.path, sub_path))
        if isinstance(target, ReservedPath):
            return self.context.resolver.resolve(target)
        return get_value(child_ref(self.context.ref, target.path))

    def ref(self) -> StoreRef:
        """Return the raw store handle at this location."""
        return child_ref(self.context.ref, self.path)

    # ------------------------------------------------------------------
    # Path-independent members
    # ------------------------------------------------------------------

    @property
    def uid_stream(self) -> Observable[str | None]:
        return self.context.uid_stream

    @property
    def push_id_stream(self) -> Observable[str]:
        return self.context.push_id_stream

    @staticmethod
    def wrap(value: Any) -> dict[str, Any]:
        return wrap(value)

    @staticmethod
    def value(ref: StoreRef) -> Observable[Any]:
        return get_value(ref)

    @staticmethod
    def observe(ref: StoreRef, event: str) -> Observable[DataSnapshot]:
        return observe(ref, event)


def create_accessor(path: str, context: DriverContext) -> PathAccessor:
    return PathAccessor(normalize_path(path), context)

