"""Error response schemas for consistent error handling."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from catalog_api.errors import ErrorKind
from catalog_api.schemas.base import CamelModel


class ErrorResponse(CamelModel):
    """Standardized error envelope shared by every error kind."""

    error_type: ErrorKind = Field(..., description="Category of error")
    message: str = Field(..., description="Human-readable error message")
    status_code: int = Field(..., description="HTTP status code")
    timestamp: datetime = Field(..., description="When error occurred")
    request_id: str | None = Field(None, description="Unique request identifier for tracking")
    path: str | None = Field(None, description="Request path that caused the error")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "errorType": "not_found",
                "message": "Favorite not found or does not belong to you.",
                "statusCode": 404,
                "timestamp": "2025-11-03T10:30:00Z",
                "requestId": "5f0c6c7e-8f1f-4c83-8d61-2b8f0c4d1e9a",
                "path": "/favorites/42",
            }
        }
    )


class ViolationDetail(CamelModel):
    """One failed constraint reported by the schema validation stage."""

    code: str = Field(..., description="Machine-readable constraint identifier")
    message: str = Field(..., description="Validation error message")
    path: str = Field(..., description="Dotted path of the offending field")
    location: str = Field(..., description="Request section: body, params, query or headers")


class ValidationErrorResponse(ErrorResponse):
    """Malformed params, query string or headers (HTTP 400)."""

    error_type: ErrorKind = Field(default=ErrorKind.VALIDATION)
    location: str = Field(..., description="Request section that failed validation")
    error_info: list[ViolationDetail] = Field(default_factory=list)


class EntityErrorResponse(ErrorResponse):
    """Malformed request body (HTTP 422)."""

    error_type: ErrorKind = Field(default=ErrorKind.ENTITY)
    errors: list[ViolationDetail] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "errorType": "entity_error",
                "message": "Validation error occurred in body",
                "statusCode": 422,
                "timestamp": "2025-11-03T10:30:00Z",
                "requestId": "5f0c6c7e-8f1f-4c83-8d61-2b8f0c4d1e9a",
                "path": "/favorites",
                "errors": [
                    {
                        "code": "missing",
                        "message": "Field required",
                        "path": "mediaTitle",
                        "location": "body",
                    }
                ],
            }
        }
    )


class AuthErrorResponse(ErrorResponse):
    """Credential or post-authorization failure."""

    error_type: ErrorKind = Field(default=ErrorKind.AUTH)
    location: str | None = Field(None)
    error_info: dict[str, Any] | None = Field(None)


class InternalErrorResponse(ErrorResponse):
    """Unexpected failure; exposes nothing beyond the exception class name."""

    error_type: ErrorKind = Field(default=ErrorKind.UNCLASSIFIED)
    error_info: dict[str, str] = Field(default_factory=dict)
