"""Helper functions for constructing structured API error responses.

Each :class:`~catalog_api.errors.ErrorKind` has exactly one serializer below.
:func:`build_error_response` picks it from ``_SERIALIZERS`` using the error's
discriminant, so a kind can only ever expose the fields its serializer names.
Request id and a timezone-aware timestamp are embedded automatically.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from catalog_api.errors import ApiError, ErrorKind
from catalog_api.schemas.error import (
    AuthErrorResponse,
    EntityErrorResponse,
    ErrorResponse,
    InternalErrorResponse,
    ValidationErrorResponse,
    ViolationDetail,
)
from catalog_api.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "error_response_content",
]


def _current_timestamp() -> datetime:
    """Return a timezone-aware timestamp for error payloads.

    Tests monkeypatch this helper to assert against deterministic values.
    """

    return datetime.now(UTC)


def _metadata(error: ApiError, path: str, request_id: str | None) -> dict[str, object]:
    return {
        "message": error.message,
        "status_code": error.status_code,
        "timestamp": _current_timestamp(),
        "request_id": request_id or get_request_id() or None,
        "path": path,
    }


def _violations(error: ApiError) -> list[ViolationDetail]:
    return [
        ViolationDetail(
            code=violation.code,
            message=violation.message,
            path=violation.path,
            location=violation.location,
        )
        for violation in error.violations
    ]


def _serialize_validation(
    error: ApiError, path: str, request_id: str | None
) -> ValidationErrorResponse:
    return ValidationErrorResponse(
        **_metadata(error, path, request_id),
        location=error.location or "query",
        error_info=_violations(error),
    )


def _serialize_entity(
    error: ApiError, path: str, request_id: str | None
) -> EntityErrorResponse:
    return EntityErrorResponse(
        **_metadata(error, path, request_id),
        errors=_violations(error),
    )


def _serialize_auth(
    error: ApiError, path: str, request_id: str | None
) -> AuthErrorResponse:
    return AuthErrorResponse(
        **_metadata(error, path, request_id),
        location=error.location,
        error_info=error.error_info,
    )


def _serialize_not_found(
    error: ApiError, path: str, request_id: str | None
) -> ErrorResponse:
    return ErrorResponse(
        error_type=ErrorKind.NOT_FOUND,
        **_metadata(error, path, request_id),
    )


def _serialize_unclassified(
    error: ApiError, path: str, request_id: str | None
) -> InternalErrorResponse:
    name = (error.error_info or {}).get("name", "Exception")
    return InternalErrorResponse(
        **_metadata(error, path, request_id),
        error_info={"name": str(name)},
    )


_SERIALIZERS: dict[ErrorKind, Callable[[ApiError, str, str | None], ErrorResponse]] = {
    ErrorKind.VALIDATION: _serialize_validation,
    ErrorKind.ENTITY: _serialize_entity,
    ErrorKind.AUTH: _serialize_auth,
    ErrorKind.NOT_FOUND: _serialize_not_found,
    ErrorKind.UNCLASSIFIED: _serialize_unclassified,
}


def build_error_response(
    error: ApiError,
    *,
    path: str,
    request_id: str | None = None,
) -> ErrorResponse:
    """Construct the response model matching ``error.kind``."""

    serializer = _SERIALIZERS[error.kind]
    return serializer(error, path, request_id)


def error_response_content(
    error: ApiError,
    *,
    path: str,
    request_id: str | None = None,
) -> dict[str, object]:
    """Return the JSON-ready camelCase body for ``error``."""

    response = build_error_response(error, path=path, request_id=request_id)
    return response.model_dump(mode="json", by_alias=True, exclude_none=True)
