"""Authorization gate: bearer token verification and identity resolution.

Tokens are issued elsewhere; this module only decodes and verifies them.
:func:`resolve_identity` never raises for credential problems.  It returns
either an :class:`~catalog_api.context.Identity` or an :class:`AuthFailure`,
and :func:`authorize` decides per mode what a failure means:

``AuthMode.REQUIRED``
    every failure becomes a 401 ``auth`` error located in the headers.
``AuthMode.OPTIONAL``
    a missing header means "anonymous"; a present but unusable token is
    discarded and the request continues anonymously.  Endpoints that mutate
    user data must use ``REQUIRED``.

A post-hook runs only when an identity was attached, in either mode, and its
errors always propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import Depends, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from catalog_api.context import Identity, PostHook, RequestContext
from catalog_api.errors import ApiError
from catalog_api.utils.request_context import set_user_id

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
ACCESS_TOKEN_TYPE = "access"

__all__ = [
    "AuthFailure",
    "AuthMode",
    "FailureReason",
    "TokenVerificationError",
    "TokenVerifier",
    "authorize",
    "extract_bearer_token",
    "get_token_verifier",
    "resolve_identity",
]


class AuthMode(str, Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"


class FailureReason(str, Enum):
    """Why a credential could not be turned into an identity."""

    MISSING = "missing"
    MALFORMED_HEADER = "malformed_header"
    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    INVALID_CLAIMS = "invalid_claims"


class TokenVerificationError(Exception):
    """Raised by :class:`TokenVerifier` with a classified reason."""

    def __init__(
        self, reason: FailureReason, message: str, *, name: str | None = None
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.name = name or type(self).__name__


@dataclass(frozen=True)
class AuthFailure:
    """Failure branch of :func:`resolve_identity`."""

    reason: FailureReason
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_error(self) -> ApiError:
        return ApiError.auth(
            self.message,
            location="headers",
            details={"reason": self.reason.value, **self.details},
        )


def _capitalize(message: str) -> str:
    message = message.strip().rstrip(".")
    return message[:1].upper() + message[1:]


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    return None


class TokenVerifier:
    """Decode HMAC-signed access tokens with python-jose."""

    def __init__(self, secret: str, *, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("A token secret is required")
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, token: str) -> Identity:
        """Return the identity encoded in ``token`` or raise a classified error."""

        try:
            jwt.get_unverified_header(token)
        except JWTError as exc:
            raise TokenVerificationError(
                FailureReason.MALFORMED,
                _capitalize(str(exc)) or "Token is malformed",
                name=type(exc).__name__,
            ) from exc

        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenVerificationError(
                FailureReason.EXPIRED,
                _capitalize(str(exc)) or "Token has expired",
                name=type(exc).__name__,
            ) from exc
        except JWTClaimsError as exc:
            raise TokenVerificationError(
                FailureReason.INVALID_CLAIMS,
                _capitalize(str(exc)) or "Token claims are invalid",
                name=type(exc).__name__,
            ) from exc
        except JWTError as exc:
            raise TokenVerificationError(
                FailureReason.INVALID_SIGNATURE,
                _capitalize(str(exc)) or "Token signature is invalid",
                name=type(exc).__name__,
            ) from exc

        token_type = claims.get("token_type")
        if token_type is not None and token_type != ACCESS_TOKEN_TYPE:
            raise TokenVerificationError(
                FailureReason.INVALID_CLAIMS, "Token is not an access token"
            )

        user_id = claims.get("user_id") or claims.get("sub")
        if not user_id:
            raise TokenVerificationError(
                FailureReason.INVALID_CLAIMS, "Token does not identify a user"
            )

        return Identity(
            user_id=str(user_id),
            issued_at=_timestamp(claims.get("iat")),
            expires_at=_timestamp(claims.get("exp")),
            claims=claims,
        )


def extract_bearer_token(header: str | None) -> str | AuthFailure:
    """Pull the token out of an ``Authorization`` header value."""

    if header is None or not header.strip():
        return AuthFailure(FailureReason.MISSING, "Access token is required")
    if not header.startswith(BEARER_PREFIX):
        return AuthFailure(
            FailureReason.MALFORMED_HEADER,
            "Authorization header must use the Bearer scheme",
        )
    token = header[len(BEARER_PREFIX) :].strip()
    if not token:
        return AuthFailure(FailureReason.MISSING, "Access token is required")
    return token


def resolve_identity(header: str | None, verifier: TokenVerifier) -> Identity | AuthFailure:
    """Turn an ``Authorization`` header into an identity or a failure value."""

    token = extract_bearer_token(header)
    if isinstance(token, AuthFailure):
        return token

    try:
        return verifier.verify(token)
    except TokenVerificationError as exc:
        return AuthFailure(exc.reason, exc.message, details={"name": exc.name})


def get_token_verifier(request: Request) -> TokenVerifier:
    """FastAPI dependency returning the verifier wired at application startup."""

    return request.app.state.services.token_verifier


def authorize(
    mode: AuthMode,
    post_hook: PostHook | None = None,
) -> Callable[..., Awaitable[Identity | None]]:
    """Build the dependency enforcing ``mode`` for a route."""

    async def dependency(
        request: Request,
        verifier: TokenVerifier = Depends(get_token_verifier),
    ) -> Identity | None:
        header = request.headers.get("Authorization")
        if mode is AuthMode.OPTIONAL and header is None:
            return None

        outcome = resolve_identity(header, verifier)
        if isinstance(outcome, AuthFailure):
            if mode is AuthMode.OPTIONAL:
                # Optional mode discards the failure and continues anonymously.
                logger.debug(
                    "Ignoring unusable credential on %s (%s)",
                    request.url.path,
                    outcome.reason.value,
                )
                return None
            logger.info(
                "Rejected credential on %s %s: %s",
                request.method,
                request.url.path,
                outcome.reason.value,
            )
            raise outcome.to_error()

        request.state.identity = outcome
        set_user_id(outcome.user_id)

        if post_hook is not None:
            await post_hook(RequestContext.from_request(request))

        return outcome

    dependency.__name__ = f"authorize_{mode.value}"
    return dependency
