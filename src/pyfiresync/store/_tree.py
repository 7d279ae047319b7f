"""Copy-on-write helpers for JSON-like trees with realtime database semantics.

- ``None`` means "no data"; writing ``None`` deletes a location.
- Empty mappings are never stored; removing the last child removes the
  parent as well.
- Writing below a scalar replaces the scalar with a mapping.

:func:`set_in` never mutates its input, so callers can keep the previous
root around and compare listener locations before/after a write.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

from pyfiresync._constants import (
    EVENT_CHILD_ADDED,
    EVENT_CHILD_CHANGED,
    EVENT_CHILD_REMOVED,
    EVENT_VALUE,
)
from pyfiresync.store.base import DataSnapshot


def normalize_value(value: Any) -> Any:
    """Return a detached copy of *value* with empty branches pruned."""
    if isinstance(value, Mapping):
        cleaned: dict[str, Any] = {}
        for key, child in value.items():
            normalized = normalize_value(child)
            if normalized is not None:
                cleaned[str(key)] = normalized
        return cleaned or None
    return copy.deepcopy(value)


def get_in(tree: Any, segments: Sequence[str]) -> Any:
    node = tree
    for segment in segments:
        if not isinstance(node, Mapping):
            return None
        node = node.get(segment)
    return node


def set_in(tree: Any, segments: Sequence[str], value: Any) -> Any:
    """Return a new tree with *value* stored at *segments*."""
    if not segments:
        return normalize_value(value)
    key, rest = segments[0], segments[1:]
    node = dict(tree) if isinstance(tree, Mapping) else {}
    child = set_in(node.get(key), rest, value)
    if child is None:
        node.pop(key, None)
    else:
        node[key] = child
    return node or None


def _children(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def listener_events(event: str, key: str | None, before: Any, after: Any) -> list[DataSnapshot]:
    """Snapshots a listener for *event* receives when its location changes."""
    if event == EVENT_VALUE:
        if before == after:
            return []
        return [DataSnapshot(key, copy.deepcopy(after))]

    old, new = _children(before), _children(after)
    if event == EVENT_CHILD_ADDED:
        return [DataSnapshot(k, copy.deepcopy(v)) for k, v in new.items() if k not in old]
    if event == EVENT_CHILD_REMOVED:
        return [DataSnapshot(k, copy.deepcopy(v)) for k, v in old.items() if k not in new]
    if event == EVENT_CHILD_CHANGED:
        return [DataSnapshot(k, copy.deepcopy(v)) for k, v in new.items() if k in old and old[k] != v]
    return []


def initial_events(event: str, key: str | None, value: Any) -> list[DataSnapshot]:
    """Snapshots a freshly registered listener receives for the current data."""
    if event == EVENT_VALUE:
        return [DataSnapshot(key, copy.deepcopy(value))]
    if event == EVENT_CHILD_ADDED:
        return listener_events(EVENT_CHILD_ADDED, key, None, value)
    return []
