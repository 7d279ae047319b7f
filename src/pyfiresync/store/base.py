"""Store capability surface consumed by the driver.

Having protocols here makes it easy to pass test doubles while keeping the
production backends (:class:`~pyfiresync.store.memory.MemoryStore`,
:class:`~pyfiresync.store.rest.RestStore`) concrete.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from pyfiresync._constants import STORE_EVENTS
from pyfiresync.exceptions import InvalidArgumentError
from pyfiresync.models.auth import AuthState
from pyfiresync.paths import join_path, split_path

TRef = TypeVar("TRef", bound="StoreRef")


@dataclass(frozen=True, slots=True)
class DataSnapshot:
    """Raw event envelope delivered to store listeners."""

    key: str | None
    value: Any

    def val(self) -> Any:
        return self.value


SnapshotCallback = Callable[[DataSnapshot], None]
ErrorCallback = Callable[[Exception], None]
AuthCallback = Callable[[AuthState | None], None]


class StoreRef(Protocol):
    """Handle to one location of a hierarchical store."""

    @property
    def path(self) -> str: ...

    def child(self, path: str) -> StoreRef: ...

    def set(self, value: Any) -> Any:
        """Replace the subtree at this location.

        Returns ``None`` for synchronous stores, or a future/task that
        completes once the store acknowledged the write.
        """
        ...

    def on(
        self,
        event: str,
        callback: SnapshotCallback,
        error_callback: ErrorCallback | None = None,
    ) -> SnapshotCallback: ...

    def off(self, event: str, callback: SnapshotCallback) -> None: ...

    def on_auth(self, callback: AuthCallback) -> None: ...

    def off_auth(self, callback: AuthCallback) -> None: ...


class AuthStoreRef(StoreRef, Protocol):
    """Store handle able to perform the operations named by login descriptors."""

    def auth_with_password(self, credentials: dict[str, str]) -> Any: ...

    def auth_anonymously(self) -> Any: ...

    def auth_with_custom_token(self, token: str) -> Any: ...

    def auth_with_oauth_token(self, provider: str, token: str) -> Any: ...

    def unauth(self) -> Any: ...


def child_ref(ref: TRef, location: str) -> TRef:
    """Return the handle at *location* below *ref*; the empty location is *ref* itself."""
    if location == "":
        return ref
    return ref.child(location)  # type: ignore[return-value]


class StoreBackend(Protocol):
    """Operations a backend provides to :class:`BoundRef`."""

    def write(self, path: str, value: Any) -> Any: ...

    def listen(
        self,
        path: str,
        event: str,
        callback: SnapshotCallback,
        error_callback: ErrorCallback | None,
    ) -> None: ...

    def unlisten(self, path: str, event: str, callback: SnapshotCallback) -> None: ...

    def add_auth_callback(self, callback: AuthCallback) -> None: ...

    def remove_auth_callback(self, callback: AuthCallback) -> None: ...

    def auth_with_password(self, credentials: dict[str, str]) -> Any: ...

    def auth_anonymously(self) -> Any: ...

    def auth_with_custom_token(self, token: str) -> Any: ...

    def auth_with_oauth_token(self, provider: str, token: str) -> Any: ...

    def unauth(self) -> Any: ...


@dataclass(frozen=True, slots=True)
class BoundRef:
    """A backend bound to one normalized location."""

    backend: StoreBackend
    path: str = ""

    @property
    def key(self) -> str | None:
        segments = split_path(self.path)
        return segments[-1] if segments else None

    @property
    def root(self) -> BoundRef:
        return BoundRef(self.backend)

    def child(self, path: str) -> BoundRef:
        if not isinstance(path, str):
            raise InvalidArgumentError(f"child path must be a string, got {type(path).__name__}")
        return BoundRef(self.backend, join_path(self.path, path))

    def set(self, value: Any) -> Any:
        return self.backend.write(self.path, value)

    def on(
        self,
        event: str,
        callback: SnapshotCallback,
        error_callback: ErrorCallback | None = None,
    ) -> SnapshotCallback:
        if event not in STORE_EVENTS:
            raise ValueError(f"Unsupported store event: {event!r}")
        self.backend.listen(self.path, event, callback, error_callback)
        return callback

    def off(self, event: str, callback: SnapshotCallback) -> None:
        self.backend.unlisten(self.path, event, callback)

    def on_auth(self, callback: AuthCallback) -> None:
        self.backend.add_auth_callback(callback)

    def off_auth(self, callback: AuthCallback) -> None:
        self.backend.remove_auth_callback(callback)

    def auth_with_password(self, credentials: dict[str, str]) -> Any:
        return self.backend.auth_with_password(credentials)

    def auth_anonymously(self) -> Any:
        return self.backend.auth_anonymously()

    def auth_with_custom_token(self, token: str) -> Any:
        return self.backend.auth_with_custom_token(token)

    def auth_with_oauth_token(self, provider: str, token: str) -> Any:
        return self.backend.auth_with_oauth_token(provider, token)

    def unauth(self) -> Any:
        return self.backend.unauth()
