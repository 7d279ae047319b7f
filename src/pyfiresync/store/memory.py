"""In-process store with realtime database semantics.

Used for local development, tests, and the ``memory://`` driver URL.
Listeners fire synchronously on the writing thread; auth operations return
already-completed :class:`concurrent.futures.Future` objects so the driver
treats them exactly like asynchronous backends.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any

from pyfiresync.exceptions import StoreAuthenticationError
from pyfiresync.models.auth import AuthState
from pyfiresync.paths import split_path
from pyfiresync.push_id import generate_push_id
from pyfiresync.store._tree import get_in, initial_events, listener_events, set_in
from pyfiresync.store.base import AuthCallback, BoundRef, ErrorCallback, SnapshotCallback

_logger = logging.getLogger(__name__)


@dataclass(eq=False, slots=True)
class _Listener:
    segments: tuple[str, ...]
    event: str
    callback: SnapshotCallback
    error_callback: ErrorCallback | None

    @property
    def key(self) -> str | None:
        return self.segments[-1] if self.segments else None


def _resolved(value: Any) -> Future[Any]:
    future: Future[Any] = Future()
    future.set_result(value)
    return future


def _failed(error: BaseException) -> Future[Any]:
    future: Future[Any] = Future()
    future.set_exception(error)
    return future


class MemoryStore:
    """In-memory tree shared by all :class:`BoundRef` handles of one store."""

    def __init__(self, *, id_factory: Callable[[], str] = generate_push_id) -> None:
        self._id_factory = id_factory
        self._data: Any = None
        self._listeners: list[_Listener] = []
        self._auth: AuthState | None = None
        self._auth_callbacks: list[AuthCallback] = []
        self._passwords: dict[str, str] = {}
        self._uids: dict[str, str] = {}

    @property
    def root(self) -> BoundRef:
        return BoundRef(self)

    @property
    def auth(self) -> AuthState | None:
        return self._auth

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def get(self, path: str = "") -> Any:
        """Synchronously read a detached copy of the data at *path*."""
        return copy.deepcopy(get_in(self._data, split_path(path)))

    def add_user(self, email: str, password: str) -> str:
        """Register a password account and return its uid."""
        self._passwords[email] = password
        return self._uid_for(f"password:{email}")

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def write(self, path: str, value: Any) -> None:
        new_root = set_in(self._data, split_path(path), value)
        _logger.debug("Memory store write path=%r", path)
        self._commit(new_root)

    def _commit(self, new_root: Any) -> None:
        old_root = self._data
        self._data = new_root
        for listener in list(self._listeners):
            before = get_in(old_root, listener.segments)
            after = get_in(new_root, listener.segments)
            for snapshot in listener_events(listener.event, listener.key, before, after):
                # An earlier callback may have unsubscribed this listener.
                if listener not in self._listeners:
                    break
                listener.callback(snapshot)

    def listen(
        self,
        path: str,
        event: str,
        callback: SnapshotCallback,
        error_callback: ErrorCallback | None,
    ) -> None:
        listener = _Listener(split_path(path), event, callback, error_callback)
        self._listeners.append(listener)
        for snapshot in initial_events(event, listener.key, get_in(self._data, listener.segments)):
            if listener not in self._listeners:
                break
            callback(snapshot)

    def unlisten(self, path: str, event: str, callback: SnapshotCallback) -> None:
        segments = split_path(path)
        for listener in self._listeners:
            if listener.segments == segments and listener.event == event and listener.callback is callback:
                self._listeners.remove(listener)
                return

    def cancel(self, path: str, error: Exception) -> int:
        """Fail and drop every listener at or below *path*.

        Mirrors the store revoking read permission on a location. Returns the
        number of cancelled listeners.
        """
        segments = split_path(path)
        cancelled = [
            listener for listener in self._listeners if listener.segments[: len(segments)] == segments
        ]
        for listener in cancelled:
            self._listeners.remove(listener)
        for listener in cancelled:
            if listener.error_callback is not None:
                listener.error_callback(error)
        return len(cancelled)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def add_auth_callback(self, callback: AuthCallback) -> None:
        self._auth_callbacks.append(callback)
        callback(self._auth)

    def remove_auth_callback(self, callback: AuthCallback) -> None:
        if callback in self._auth_callbacks:
            self._auth_callbacks.remove(callback)

    def _uid_for(self, identity: str) -> str:
        uid = self._uids.get(identity)
        if uid is None:
            uid = self._id_factory()
            self._uids[identity] = uid
        return uid

    def _set_auth(self, state: AuthState | None) -> None:
        self._auth = state
        for callback in list(self._auth_callbacks):
            callback(state)

    def _sign_in(self, state: AuthState) -> Future[AuthState]:
        self._set_auth(state)
        return _resolved(state)

    def auth_with_password(self, credentials: dict[str, str]) -> Future[AuthState]:
        email = credentials.get("email", "")
        expected = self._passwords.get(email)
        if expected is None:
            return _failed(StoreAuthenticationError("EMAIL_NOT_FOUND", code="EMAIL_NOT_FOUND"))
        if credentials.get("password") != expected:
            return _failed(StoreAuthenticationError("INVALID_PASSWORD", code="INVALID_PASSWORD"))
        uid = self._uid_for(f"password:{email}")
        return self._sign_in(AuthState(uid=uid, provider="password", email=email, token=self._id_factory()))

    def auth_anonymously(self) -> Future[AuthState]:
        uid = self._id_factory()
        return self._sign_in(AuthState(uid=uid, provider="anonymous", token=self._id_factory()))

    def auth_with_custom_token(self, token: str) -> Future[AuthState]:
        # Custom tokens minted for the memory store carry the uid directly.
        return self._sign_in(AuthState(uid=token, provider="custom", token=token))

    def auth_with_oauth_token(self, provider: str, token: str) -> Future[AuthState]:
        uid = self._uid_for(f"{provider}:{token}")
        return self._sign_in(AuthState(uid=uid, provider=provider, token=token))

    def unauth(self) -> None:
        self._set_auth(None)

    async def close(self) -> None:
        self._listeners.clear()
        self._auth_callbacks.clear()
