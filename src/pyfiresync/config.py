"""Driver configuration for pyfiresync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfiresync._constants import IDENTITY_TOOLKIT_URL


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FireSyncConfig:
    """Driver configuration.

    Parameters
    ----------
    database_url : str
        Store location used when the driver is built without an explicit
        base. ``https://<db>.firebaseio.com`` selects the REST backend,
        ``memory://`` an in-process store.
    api_key : str or None
        Web API key used by the Identity Toolkit sign-in endpoints. Only
        required when the snapshot stream assigns ``$user``.
    auth_base_url : str
        Identity Toolkit base URL.
    request_timeout : float
        Total timeout in seconds for non-streaming HTTP requests.
    stream_retry_delay : float
        Seconds to wait before reopening a dropped listener stream.
    payload_trace_enabled : bool
        Log (redacted) request payloads and stream events at DEBUG level.
    """

    database_url: str = ""
    api_key: str | None = None
    auth_base_url: str = IDENTITY_TOOLKIT_URL
    request_timeout: float = 30.0
    stream_retry_delay: float = 5.0
    payload_trace_enabled: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> FireSyncConfig:
        """Create configuration from ``FIRESYNC_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FIRESYNC_DATABASE_URL": "database_url",
            "FIRESYNC_API_KEY": "api_key",
            "FIRESYNC_AUTH_BASE_URL": "auth_base_url",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        timeout_env = env.get("FIRESYNC_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        retry_env = env.get("FIRESYNC_STREAM_RETRY_DELAY")
        if retry_env is not None and "stream_retry_delay" not in overrides:
            config_kwargs["stream_retry_delay"] = float(retry_env)

        if "payload_trace_enabled" not in overrides:
            config_kwargs["payload_trace_enabled"] = _env_bool(
                env.get("FIRESYNC_PAYLOAD_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
