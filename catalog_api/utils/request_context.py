"""Request-scoped context metadata shared by middleware, handlers and logging.

Each inbound HTTP call receives a request identifier, and once the
authorization gate resolves a caller its user id is recorded next to it.  Both
values live in ``ContextVar`` instances so concurrent requests never observe
each other's metadata.
"""

from __future__ import annotations

from contextvars import ContextVar, Token

__all__ = [
    "REQUEST_ID_CONTEXT",
    "USER_ID_CONTEXT",
    "clear_request_id",
    "get_request_id",
    "get_user_id",
    "set_request_id",
    "set_user_id",
]

REQUEST_ID_CONTEXT: ContextVar[str] = ContextVar("request_id", default="")
USER_ID_CONTEXT: ContextVar[str | None] = ContextVar("user_id", default=None)


def set_request_id(request_id: str) -> Token[str]:
    """Persist the request identifier and return the token for ``reset``."""

    return REQUEST_ID_CONTEXT.set(request_id)


def get_request_id() -> str:
    """Return the active request identifier or an empty string."""

    return REQUEST_ID_CONTEXT.get()


def clear_request_id(token: Token[str] | None = None) -> None:
    """Reset the request identifier, restoring the prior value when possible."""

    if token is not None:
        REQUEST_ID_CONTEXT.reset(token)
    else:
        REQUEST_ID_CONTEXT.set("")


def set_user_id(user_id: str | None) -> Token[str | None]:
    """Record the authenticated caller for the active request."""

    return USER_ID_CONTEXT.set(user_id)


def get_user_id() -> str | None:
    """Return the authenticated caller of the active request, if any."""

    return USER_ID_CONTEXT.get()
