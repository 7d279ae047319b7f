"""HTTP transport for the realtime database and Identity Toolkit REST APIs."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

import aiohttp

from pyfiresync._constants import PERMISSION_DENIED_STATUSES, USER_AGENT
from pyfiresync._redact import redact_for_log
from pyfiresync.config import FireSyncConfig
from pyfiresync.exceptions import StoreApiError, StorePermissionError, StoreTransportError
from pyfiresync.models.stream import ServerSentEvent

_logger = logging.getLogger(__name__)


def _error_detail(text: str) -> str | None:
    """Extract the error message of a JSON error body.

    The database answers ``{"error": "Permission denied"}``; Identity Toolkit
    answers ``{"error": {"code": 400, "message": "INVALID_PASSWORD"}}``.
    """
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _raise_for_status(status: int, text: str, endpoint: str) -> None:
    if status == 200:
        return
    detail = _error_detail(text)
    if status in PERMISSION_DENIED_STATUSES:
        raise StorePermissionError(
            detail or f"HTTP {status} from {endpoint}",
            code=str(status),
            endpoint=endpoint,
        )
    if detail is not None:
        raise StoreApiError(detail, code=str(status), endpoint=endpoint)
    raise StoreTransportError(
        f"HTTP {status} from {endpoint}: {text[:200]}",
        status_code=status,
        endpoint=endpoint,
    )


class SseDecoder:
    """Incremental ``text/event-stream`` decoder fed one line at a time."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> ServerSentEvent | None:
        if line == "":
            if not self._event and not self._data:
                return None
            event = ServerSentEvent(event=self._event or "message", data="\n".join(self._data))
            self._event = ""
            self._data = []
            return event

        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None


class RestTransport:
    """JSON-over-HTTP transport shared by the data and auth endpoints."""

    def __init__(self, config: FireSyncConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        payload: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Send *payload* as JSON and return the decoded JSON answer."""
        headers = {
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        body = json.dumps(payload, separators=(",", ":"))

        _logger.debug("%s %s", method, url)
        if self._config.payload_trace_enabled:
            _logger.debug("%s %s payload=%s", method, url, redact_for_log(payload))

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.request(
                method,
                url,
                data=body,
                params=dict(params or {}),
                headers=headers,
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                _raise_for_status(resp.status, text, url)
        except (StoreTransportError, StoreApiError):
            raise
        except aiohttp.ClientError as exc:
            raise StoreTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc
        except TimeoutError as exc:
            raise StoreTransportError(f"Request to {url} timed out", endpoint=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreTransportError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc

    async def stream_events(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
    ) -> AsyncIterator[ServerSentEvent]:
        """Open a streaming GET and yield decoded server-sent events."""
        headers = {
            "accept": "text/event-stream",
            "user-agent": USER_AGENT,
        }
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self._config.request_timeout)

        _logger.debug("STREAM %s", url)
        try:
            async with self._http.get(url, params=dict(params or {}), headers=headers, timeout=timeout) as resp:
                if resp.status != 200:
                    _raise_for_status(resp.status, await resp.text(), url)
                decoder = SseDecoder()
                async for raw_line in resp.content:
                    event = decoder.feed(raw_line.decode("utf-8").rstrip("\r\n"))
                    if event is None:
                        continue
                    if self._config.payload_trace_enabled:
                        _logger.debug("STREAM %s event=%s data=%s", url, event.event, event.data[:512])
                    yield event
        except (StoreTransportError, StoreApiError):
            raise
        except aiohttp.ClientError as exc:
            raise StoreTransportError(f"Stream from {url} failed: {exc}", endpoint=url) from exc
