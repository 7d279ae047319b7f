"""Realtime database backend over the Firebase REST API.

Writes are ``PUT {url}/{path}.json`` requests scheduled as asyncio tasks.
Each listener keeps its own Server-Sent-Events stream on its location and a
local copy of the data there; ``put``/``patch`` events update the copy and
fire the same ``value``/``child_*`` events as the memory store. Sign-in goes
through the Identity Toolkit ``accounts:*`` endpoints and the resulting id
token authorizes subsequent requests.

Every operation that performs I/O must be called from a running event loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import ValidationError

from pyfiresync._constants import (
    SSE_AUTH_REVOKED,
    SSE_CANCEL,
    SSE_KEEP_ALIVE,
    SSE_PATCH,
    SSE_PUT,
)
from pyfiresync.config import FireSyncConfig
from pyfiresync.exceptions import (
    FireSyncConfigError,
    StoreApiError,
    StoreAuthenticationError,
    StorePermissionError,
    StoreTransportError,
)
from pyfiresync.models.auth import AuthState, SignInResponse
from pyfiresync.models.stream import ServerSentEvent, StreamPayload
from pyfiresync.paths import normalize_path, split_path
from pyfiresync.store._transport import RestTransport
from pyfiresync.store._tree import initial_events, listener_events, set_in
from pyfiresync.store.base import AuthCallback, BoundRef, ErrorCallback, SnapshotCallback

_logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _StreamListener:
    path: str
    event: str
    callback: SnapshotCallback
    error_callback: ErrorCallback | None
    cache: Any = None
    primed: bool = False
    task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def key(self) -> str | None:
        segments = split_path(self.path)
        return segments[-1] if segments else None


class RestStore:
    """Firebase realtime database reached through its REST API."""

    def __init__(
        self,
        url: str,
        config: FireSyncConfig | None = None,
        *,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._config = config or FireSyncConfig()
        self._http = http_session
        self._external_session = http_session is not None
        self._transport: RestTransport | None = None
        self._auth: AuthState | None = None
        self._auth_callbacks: list[AuthCallback] = []
        self._listeners: list[_StreamListener] = []

    @property
    def root(self) -> BoundRef:
        return BoundRef(self)

    @property
    def auth(self) -> AuthState | None:
        return self._auth

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> RestTransport:
        if self._transport is None:
            if self._http is None:
                self._http = aiohttp.ClientSession()
            self._transport = RestTransport(self._config, self._http)
        return self._transport

    def node_url(self, path: str) -> str:
        normalized = normalize_path(path)
        return f"{self._url}/{normalized}.json" if normalized else f"{self._url}/.json"

    def _auth_params(self) -> dict[str, str]:
        if self._auth is not None and self._auth.token:
            return {"auth": self._auth.token}
        return {}

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def write(self, path: str, value: Any) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._put(path, value), name=f"pyfiresync-set:{path}")

    async def _put(self, path: str, value: Any) -> None:
        await self._require_transport().request_json(
            "PUT",
            self.node_url(path),
            payload=value,
            params=self._auth_params(),
        )

    def listen(
        self,
        path: str,
        event: str,
        callback: SnapshotCallback,
        error_callback: ErrorCallback | None,
    ) -> None:
        listener = _StreamListener(normalize_path(path), event, callback, error_callback)
        # Start first so a missing event loop leaves nothing registered.
        self._start_stream(listener)
        self._listeners.append(listener)

    def unlisten(self, path: str, event: str, callback: SnapshotCallback) -> None:
        normalized = normalize_path(path)
        for listener in self._listeners:
            if listener.path == normalized and listener.event == event and listener.callback is callback:
                self._listeners.remove(listener)
                if listener.task is not None:
                    listener.task.cancel()
                return

    def _start_stream(self, listener: _StreamListener) -> None:
        loop = asyncio.get_running_loop()
        listener.task = loop.create_task(self._run_stream(listener), name=f"pyfiresync-stream:{listener.path}")

    async def _run_stream(self, listener: _StreamListener) -> None:
        url = self.node_url(listener.path)
        while True:
            try:
                events = self._require_transport().stream_events(url, params=self._auth_params())
                async with contextlib.aclosing(events):
                    async for sse in events:
                        if not self._handle_event(listener, sse):
                            return
            except StorePermissionError as exc:
                self._fail(listener, exc)
                return
            except (StoreTransportError, StoreApiError) as exc:
                _logger.warning("Stream for %r dropped: %s", listener.path, exc)
            else:
                _logger.debug("Stream for %r closed by server", listener.path)
            await asyncio.sleep(self._config.stream_retry_delay)

    def _handle_event(self, listener: _StreamListener, sse: ServerSentEvent) -> bool:
        """Apply one stream event; return ``False`` when the stream must stop."""
        if sse.event in (SSE_PUT, SSE_PATCH):
            try:
                payload = StreamPayload.model_validate_json(sse.data)
            except ValidationError:
                _logger.debug("Unparseable %s event on %r", sse.event, listener.path, exc_info=True)
                return True
            self._apply_payload(listener, sse.event, payload)
            return True

        if sse.event in (SSE_CANCEL, SSE_AUTH_REVOKED):
            reason = "auth token revoked" if sse.event == SSE_AUTH_REVOKED else "permission denied"
            self._fail(
                listener,
                StorePermissionError(
                    f"Listener on {listener.path!r} cancelled: {reason}",
                    code=sse.event,
                    endpoint=self.node_url(listener.path),
                ),
            )
            return False

        if sse.event != SSE_KEEP_ALIVE:
            _logger.debug("Ignoring stream event %r on %r", sse.event, listener.path)
        return True

    def _apply_payload(self, listener: _StreamListener, kind: str, payload: StreamPayload) -> None:
        before = listener.cache
        base = split_path(payload.path)
        if kind == SSE_PUT:
            after = set_in(before, base, payload.data)
        else:
            after = before
            patch = payload.data if isinstance(payload.data, dict) else {}
            for child_path, value in patch.items():
                after = set_in(after, base + split_path(child_path), value)
        listener.cache = after

        if listener.primed:
            snapshots = listener_events(listener.event, listener.key, before, after)
        else:
            listener.primed = True
            snapshots = initial_events(listener.event, listener.key, after)
        for snapshot in snapshots:
            if listener not in self._listeners:
                break
            listener.callback(snapshot)

    def _fail(self, listener: _StreamListener, error: Exception) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
        _logger.debug("Listener on %r failed: %s", listener.path, error)
        if listener.error_callback is not None:
            listener.error_callback(error)

    def _restart_streams(self) -> None:
        for listener in list(self._listeners):
            if listener.task is not None:
                listener.task.cancel()
            self._start_stream(listener)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def add_auth_callback(self, callback: AuthCallback) -> None:
        self._auth_callbacks.append(callback)
        callback(self._auth)

    def remove_auth_callback(self, callback: AuthCallback) -> None:
        if callback in self._auth_callbacks:
            self._auth_callbacks.remove(callback)

    def _set_auth(self, state: AuthState | None) -> None:
        self._auth = state
        for callback in list(self._auth_callbacks):
            callback(state)
        # Listener streams carry the token in their URL.
        self._restart_streams()

    async def _sign_in(self, endpoint: str, payload: dict[str, Any], provider: str) -> AuthState:
        if not self._config.api_key:
            raise FireSyncConfigError("api_key is required to sign in against the REST backend")

        url = f"{self._config.auth_base_url.rstrip('/')}/{endpoint}"
        try:
            body = await self._require_transport().request_json(
                "POST",
                url,
                payload={**payload, "returnSecureToken": True},
                params={"key": self._config.api_key},
            )
        except StoreApiError as exc:
            message = str(exc)
            raise StoreAuthenticationError(
                f"Sign-in failed: {message}",
                code=message.split(" ", 1)[0],
                endpoint=endpoint,
            ) from exc

        try:
            response = SignInResponse.model_validate(body)
        except ValidationError as exc:
            raise StoreAuthenticationError(
                "Sign-in response missing token fields",
                endpoint=endpoint,
            ) from exc

        state = response.to_auth_state(provider)
        _logger.debug("Signed in provider=%s uid=%s", provider, state.uid)
        self._set_auth(state)
        return state

    def auth_with_password(self, credentials: dict[str, str]) -> asyncio.Task[AuthState]:
        loop = asyncio.get_running_loop()
        return loop.create_task(
            self._sign_in(
                "accounts:signInWithPassword",
                {"email": credentials.get("email", ""), "password": credentials.get("password", "")},
                "password",
            )
        )

    def auth_anonymously(self) -> asyncio.Task[AuthState]:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._sign_in("accounts:signUp", {}, "anonymous"))

    def auth_with_custom_token(self, token: str) -> asyncio.Task[AuthState]:
        loop = asyncio.get_running_loop()
        return loop.create_task(self._sign_in("accounts:signInWithCustomToken", {"token": token}, "custom"))

    def auth_with_oauth_token(self, provider: str, token: str) -> asyncio.Task[AuthState]:
        loop = asyncio.get_running_loop()
        payload = {
            "postBody": f"access_token={token}&providerId={provider}.com",
            "requestUri": "http://localhost",
            "returnIdpCredential": True,
        }
        return loop.create_task(self._sign_in("accounts:signInWithIdp", payload, provider))

    def unauth(self) -> None:
        self._set_auth(None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel listener streams and close an owned HTTP session."""
        tasks = [listener.task for listener in self._listeners if listener.task is not None]
        self._listeners.clear()
        self._auth_callbacks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None
        self._transport = None
