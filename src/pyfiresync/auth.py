"""Mapping of ``$user`` login descriptors to store auth operations.

A snapshot assigns ``$user`` with an overwrite directive holding a login
descriptor, e.g.::

    {"$user": {"$set": {"provider": "password", "email": "a@b.com", "password": "x"}}}

:func:`handle_authentication` turns the descriptor into
``(method_name, *args)``; the dispatcher calls that method on the base
store handle. Assigning ``None`` signs out.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pyfiresync.exceptions import UnsupportedAuthMethodError

OAUTH_PROVIDERS: frozenset[str] = frozenset({"google", "facebook", "github", "twitter"})


def _require(descriptor: Mapping[str, Any], provider: str, *fields: str) -> list[Any]:
    values: list[Any] = []
    for name in fields:
        value = descriptor.get(name)
        if not isinstance(value, str) or not value:
            raise UnsupportedAuthMethodError(f"'{provider}' login requires a non-empty '{name}' field")
        values.append(value)
    return values


def handle_authentication(descriptor: Any) -> tuple[Any, ...]:
    """Describe which store auth operation a login descriptor asks for.

    Raises
    ------
    UnsupportedAuthMethodError
        If the descriptor names an unknown provider or lacks required fields.
    """
    if descriptor is None:
        return ("unauth",)

    if not isinstance(descriptor, Mapping):
        raise UnsupportedAuthMethodError(
            f"Login descriptor must be a mapping or None, got {type(descriptor).__name__}"
        )

    provider = descriptor.get("provider")
    if provider == "password":
        email, password = _require(descriptor, "password", "email", "password")
        return ("auth_with_password", {"email": email, "password": password})
    if provider == "anonymous":
        return ("auth_anonymously",)
    if provider == "custom":
        (token,) = _require(descriptor, "custom", "token")
        return ("auth_with_custom_token", token)
    if isinstance(provider, str) and provider in OAUTH_PROVIDERS:
        (token,) = _require(descriptor, provider, "token")
        return ("auth_with_oauth_token", provider, token)

    raise UnsupportedAuthMethodError(f"Unsupported login provider: {provider!r}")
