"""Per-request state shared by the pipeline stages and their post-hooks."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastapi import Request
from pydantic import BaseModel

if TYPE_CHECKING:
    from catalog_api.main import ServiceContainer


@dataclass(frozen=True)
class Identity:
    """Caller identity decoded from a verified access token."""

    user_id: str
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    claims: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class RequestContext:
    """View over a request handed to validation and authorization post-hooks."""

    request: Request
    identity: Identity | None
    validated: dict[str, BaseModel]

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            request=request,
            identity=getattr(request.state, "identity", None),
            validated=validated_sections(request),
        )

    @property
    def services(self) -> "ServiceContainer":
        return self.request.app.state.services


PostHook = Callable[[RequestContext], Awaitable[None]]


def validated_sections(request: Request) -> dict[str, BaseModel]:
    """Return (creating on first use) the normalized sections of ``request``."""

    sections = getattr(request.state, "validated", None)
    if sections is None:
        sections = {}
        request.state.validated = sections
    return sections


__all__ = [
    "Identity",
    "PostHook",
    "RequestContext",
    "validated_sections",
]
