"""pyfiresync - Reactive snapshot synchronization for Firebase-style realtime databases."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfiresync")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfiresync.accessor import DriverContext, PathAccessor, create_accessor
from pyfiresync.auth import handle_authentication
from pyfiresync.changes import ChangeOp, get_changes, is_directive, wrap
from pyfiresync.config import FireSyncConfig
from pyfiresync.dispatcher import ChangeDispatcher
from pyfiresync.driver import StoreDriver, make_store_driver
from pyfiresync.error_channel import ErrorChannel
from pyfiresync.exceptions import (
    FireSyncConfigError,
    FireSyncError,
    InvalidArgumentError,
    ProtocolViolationError,
    StoreApiError,
    StoreAuthenticationError,
    StorePermissionError,
    StoreTransportError,
    UnknownReservedPathError,
    UnsupportedAuthMethodError,
)
from pyfiresync.models import AuthState
from pyfiresync.paths import ReservedPath, ReservedPrefix, StorePath, classify_path, normalize_path
from pyfiresync.push_id import PushIdGenerator, generate_push_id
from pyfiresync.resolver import VirtualNamespaceResolver
from pyfiresync.store import DataSnapshot, MemoryStore, RestStore, StoreRef, open_store

__all__ = [
    "__version__",
    "AuthState",
    "ChangeDispatcher",
    "ChangeOp",
    "DataSnapshot",
    "DriverContext",
    "ErrorChannel",
    "FireSyncConfig",
    "FireSyncConfigError",
    "FireSyncError",
    "InvalidArgumentError",
    "MemoryStore",
    "PathAccessor",
    "ProtocolViolationError",
    "PushIdGenerator",
    "ReservedPath",
    "ReservedPrefix",
    "RestStore",
    "StoreApiError",
    "StoreAuthenticationError",
    "StoreDriver",
    "StorePath",
    "StorePermissionError",
    "StoreRef",
    "StoreTransportError",
    "UnknownReservedPathError",
    "UnsupportedAuthMethodError",
    "VirtualNamespaceResolver",
    "classify_path",
    "create_accessor",
    "generate_push_id",
    "get_changes",
    "handle_authentication",
    "is_directive",
    "make_store_driver",
    "normalize_path",
    "open_store",
    "wrap",
]
