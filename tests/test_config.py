from __future__ import annotations

from pyfiresync._constants import IDENTITY_TOOLKIT_URL
from pyfiresync.config import FireSyncConfig


def test_config_defaults() -> None:
    config = FireSyncConfig()

    assert config.database_url == ""
    assert config.api_key is None
    assert config.auth_base_url == IDENTITY_TOOLKIT_URL
    assert config.payload_trace_enabled is False


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("FIRESYNC_DATABASE_URL", "https://demo.firebaseio.com")
    monkeypatch.setenv("FIRESYNC_API_KEY", "key-123")
    monkeypatch.setenv("FIRESYNC_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("FIRESYNC_STREAM_RETRY_DELAY", "0.5")
    monkeypatch.setenv("FIRESYNC_PAYLOAD_TRACE_ENABLED", "yes")

    config = FireSyncConfig.from_env()

    assert config.database_url == "https://demo.firebaseio.com"
    assert config.api_key == "key-123"
    assert config.request_timeout == 2.5
    assert config.stream_retry_delay == 0.5
    assert config.payload_trace_enabled is True


def test_config_overrides_win_over_env(monkeypatch) -> None:
    monkeypatch.setenv("FIRESYNC_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("FIRESYNC_PAYLOAD_TRACE_ENABLED", "true")

    config = FireSyncConfig.from_env(request_timeout=9.0, payload_trace_enabled=False)

    assert config.request_timeout == 9.0
    assert config.payload_trace_enabled is False
