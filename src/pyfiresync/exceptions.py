"""Custom exception hierarchy for pyfiresync."""

from __future__ import annotations


class FireSyncError(Exception):
    """Base exception for all pyfiresync errors."""


class FireSyncConfigError(FireSyncError):
    """Invalid or missing configuration."""


class ProtocolViolationError(FireSyncError):
    """A change tried to write below a reserved location.

    Only whole-object assignment is permitted on ``$user``; a change
    targeting e.g. ``$user/name`` is a programming error in the snapshot
    producer, not a runtime store condition.
    """

    def __init__(self, message: str, *, location: str = "") -> None:
        self.location = location
        super().__init__(message)


class UnknownReservedPathError(FireSyncError, LookupError):
    """A ``$``-prefixed path did not match any virtual namespace."""

    def __init__(self, message: str, *, prefix: str = "") -> None:
        self.prefix = prefix
        super().__init__(message)


class InvalidArgumentError(FireSyncError, TypeError):
    """A path argument had the wrong type."""


class UnsupportedAuthMethodError(FireSyncError, ValueError):
    """A login descriptor could not be mapped to a store auth operation."""


class StoreTransportError(FireSyncError):
    """HTTP-level failure (network, unexpected status, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class StoreApiError(FireSyncError):
    """The store answered with an error body (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class StoreAuthenticationError(StoreApiError):
    """Sign-in was rejected (wrong credentials, disabled provider, ...)."""


class StorePermissionError(StoreApiError):
    """The store refused or revoked access to a location.

    Raised for HTTP 401/403 answers and delivered to listeners whose stream
    was cancelled by the server (``cancel`` / ``auth_revoked`` events).
    """
