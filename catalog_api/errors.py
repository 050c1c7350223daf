"""Error taxonomy shared by the request pipeline and the favorites domain.

Every failure that reaches the terminal exception handler is an
:class:`ApiError`.  Instead of one subclass per failure the exception carries a
discriminant (:class:`ErrorKind`) plus the fixed payload fields that kind
uses; :mod:`catalog_api.utils.error_responses` maps each kind to its response
body.

=============  ======  ==============================================
kind           status  payload
=============  ======  ==============================================
validation     400     ``location`` + one violation per failed rule
entity         422     one violation per failed rule (body only)
auth           401*    optional ``location`` and diagnostic info
not_found      404     message only
unclassified   500     the original exception's class name
=============  ======  ==============================================

``*`` post-authorization checks may pick a different status (403, 404).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Literal

from fastapi import status

RequestLocation = Literal["body", "params", "query", "headers"]

__all__ = [
    "ApiError",
    "ErrorKind",
    "FieldViolation",
    "RequestLocation",
]


class ErrorKind(str, Enum):
    """Discriminant identifying which payload shape an :class:`ApiError` carries."""

    VALIDATION = "validation_error"
    ENTITY = "entity_error"
    AUTH = "authentication_error"
    NOT_FOUND = "not_found"
    UNCLASSIFIED = "internal_error"


@dataclass(frozen=True)
class FieldViolation:
    """A single failed constraint inside one request section."""

    code: str
    message: str
    path: str
    location: RequestLocation

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


class ApiError(Exception):
    """Exception raised by pipeline stages and services, tagged with a kind.

    Use the named constructors rather than ``__init__`` so each kind always
    receives the payload fields it is serialized with.
    """

    def __init__(
        self,
        *,
        kind: ErrorKind,
        message: str,
        status_code: int,
        location: RequestLocation | None = None,
        violations: Iterable[FieldViolation] = (),
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.location = location
        self.violations: tuple[FieldViolation, ...] = tuple(violations)
        self.details: dict[str, Any] | None = dict(details) if details else None

    def __repr__(self) -> str:
        return (
            f"ApiError(kind={self.kind.value!r}, status_code={self.status_code},"
            f" message={self.message!r})"
        )

    @property
    def error_info(self) -> list[dict[str, str]] | dict[str, Any] | None:
        """Structured diagnostics exposed to clients for this error."""

        if self.kind in (ErrorKind.VALIDATION, ErrorKind.ENTITY):
            return [violation.as_dict() for violation in self.violations]
        return self.details

    # -- named constructors -------------------------------------------------

    @classmethod
    def validation(
        cls,
        violations: Iterable[FieldViolation],
        *,
        location: RequestLocation,
        message: str | None = None,
    ) -> "ApiError":
        """A params/query/headers section failed schema validation."""

        return cls(
            kind=ErrorKind.VALIDATION,
            message=message or f"Error occurred in {location}",
            status_code=status.HTTP_400_BAD_REQUEST,
            location=location,
            violations=violations,
        )

    @classmethod
    def entity(
        cls,
        violations: Iterable[FieldViolation],
        *,
        message: str | None = None,
    ) -> "ApiError":
        """The request body failed schema validation."""

        return cls(
            kind=ErrorKind.ENTITY,
            message=message or "Validation error occurred in body",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            location="body",
            violations=violations,
        )

    @classmethod
    def auth(
        cls,
        message: str,
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        location: RequestLocation | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> "ApiError":
        """Credential problems, or a failed post-authorization business check."""

        return cls(
            kind=ErrorKind.AUTH,
            message=message,
            status_code=status_code,
            location=location,
            details=details,
        )

    @classmethod
    def not_found(cls, message: str) -> "ApiError":
        """The targeted resource does not exist or is not visible to the caller."""

        return cls(
            kind=ErrorKind.NOT_FOUND,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )

    @classmethod
    def unclassified(cls, exc: BaseException) -> "ApiError":
        """Wrap an unexpected failure, keeping only its class name."""

        return cls(
            kind=ErrorKind.UNCLASSIFIED,
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"name": type(exc).__name__},
        )
