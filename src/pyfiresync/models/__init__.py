"""Pydantic models for pyfiresync."""

from pyfiresync.models._base import FireSyncBaseModel
from pyfiresync.models.auth import AuthState, SignInResponse
from pyfiresync.models.stream import ServerSentEvent, StreamPayload

__all__ = [
    "AuthState",
    "FireSyncBaseModel",
    "ServerSentEvent",
    "SignInResponse",
    "StreamPayload",
]
