"""Change computation between consecutive state snapshots.

A snapshot is a nested mapping. :func:`get_changes` walks the next
snapshot and emits one :class:`ChangeOp` per location whose value differs
from the previous snapshot:

- scalars, lists and ``None`` are written as-is (``None`` deletes);
- nested mappings are compared key by key, so a change deep in the tree
  never overwrites its parents;
- an overwrite directive (``{"$set": value}``) is emitted as a single
  change carrying its payload, which replaces the whole subtree.

Keys missing from the next snapshot mean "no update"; deleting a location
requires an explicit ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pyfiresync._constants import OVERWRITE_KEY
from pyfiresync.paths import join_path

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class ChangeOp:
    """A single location-scoped write."""

    location: str
    value: Any


def wrap(value: Any) -> dict[str, Any]:
    """Wrap *value* in an overwrite directive."""
    return {OVERWRITE_KEY: value}


def is_directive(value: Any) -> bool:
    """Return ``True`` when *value* is an overwrite directive."""
    return isinstance(value, Mapping) and len(value) == 1 and OVERWRITE_KEY in value


def unwrap(value: Any) -> Any:
    """Return the payload of a directive, or *value* unchanged."""
    if is_directive(value):
        return value[OVERWRITE_KEY]
    return value


def get_changes(prev: Mapping[str, Any] | None, next_: Mapping[str, Any]) -> list[ChangeOp]:
    """Compute the ordered list of writes turning *prev* into *next_*."""
    changes: list[ChangeOp] = []
    _diff_mapping(prev if isinstance(prev, Mapping) else {}, next_, "", changes)
    return changes


def _diff_mapping(
    prev: Mapping[str, Any],
    next_: Mapping[str, Any],
    path: str,
    changes: list[ChangeOp],
) -> None:
    for key, value in next_.items():
        if str(key) == "":
            # An empty key has no location of its own.
            continue
        _diff_value(prev.get(key, _MISSING), value, join_path(path, str(key)), changes)


def _diff_value(old: Any, new: Any, location: str, changes: list[ChangeOp]) -> None:
    if is_directive(new):
        if is_directive(old) and old[OVERWRITE_KEY] == new[OVERWRITE_KEY]:
            return
        changes.append(ChangeOp(location, new[OVERWRITE_KEY]))
        return

    old = unwrap(old)

    if isinstance(new, Mapping):
        _diff_mapping(old if isinstance(old, Mapping) else {}, new, location, changes)
        return

    if old is _MISSING:
        # Nothing to delete at a location the previous snapshot never had.
        if new is not None:
            changes.append(ChangeOp(location, new))
        return

    if old != new:
        changes.append(ChangeOp(location, new))
