"""Realtime database streaming models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    """One decoded ``text/event-stream`` message."""

    event: str
    data: str


class StreamPayload(BaseModel):
    """Data of a ``put`` or ``patch`` stream event.

    ``path`` is relative to the listened location; for ``put`` the
    ``data`` replaces that path, for ``patch`` it is a mapping of child
    paths to new values.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str = "/"
    data: Any = None
