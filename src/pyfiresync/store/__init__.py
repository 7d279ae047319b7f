"""Store backends and the capability surface the driver consumes."""

from __future__ import annotations

from urllib.parse import urlsplit

from pyfiresync._constants import MEMORY_SCHEME
from pyfiresync.config import FireSyncConfig
from pyfiresync.exceptions import FireSyncConfigError
from pyfiresync.store.base import AuthStoreRef, BoundRef, DataSnapshot, StoreRef, child_ref
from pyfiresync.store.memory import MemoryStore
from pyfiresync.store.rest import RestStore


def open_store(url: str, config: FireSyncConfig | None = None) -> BoundRef:
    """Create a backend for *url* and return its root handle.

    ``memory://`` creates a fresh in-process store, ``http(s)://`` a REST
    backend for a Firebase realtime database.
    """
    scheme = urlsplit(url).scheme.lower()
    if scheme == MEMORY_SCHEME:
        return MemoryStore().root
    if scheme in {"http", "https"}:
        return RestStore(url, config).root
    raise FireSyncConfigError(f"Unsupported store URL: {url!r}")


__all__ = [
    "AuthStoreRef",
    "BoundRef",
    "DataSnapshot",
    "MemoryStore",
    "RestStore",
    "StoreRef",
    "child_ref",
    "open_store",
]
