"""Authentication state models."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

from pyfiresync.models._base import FireSyncBaseModel


class AuthState(BaseModel):
    """Identity of the currently signed-in user.

    ``None`` stands for "signed out" wherever an auth state is expected.

    Parameters
    ----------
    uid : str
        Unique subject identifier.
    provider : str
        Login provider (``password``, ``anonymous``, ``custom``, ``google``...).
    token : str or None
        Token authorizing store requests for this user.
    email : str or None
        E-mail address, for password and some OAuth logins.
    expires : float or None
        Epoch seconds after which ``token`` is no longer valid.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    uid: str
    provider: str
    token: str | None = Field(default=None, repr=False)
    email: str | None = None
    expires: float | None = None


class SignInResponse(FireSyncBaseModel):
    """Answer of the Identity Toolkit ``accounts:*`` sign-in endpoints."""

    local_id: str
    id_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    email: str | None = None

    def to_auth_state(self, provider: str) -> AuthState:
        expires = time.time() + self.expires_in if self.expires_in is not None else None
        return AuthState(
            uid=self.local_id,
            provider=provider,
            token=self.id_token,
            email=self.email,
            expires=expires,
        )
