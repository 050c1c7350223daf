"""Schema validation stage for individual request sections.

``validate(schema, location)`` produces a FastAPI dependency that parses one
section of the request (JSON body, path params, query string or headers) with
a pydantic model.  Parsing is all-or-nothing: either the normalized model is
recorded for the section and returned to the handler, or an
:class:`~catalog_api.errors.ApiError` listing every violated constraint is
raised and the handler never runs.

Body failures are reported as ``entity`` errors (422); failures anywhere else
are ``validation`` errors (400).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_snake

from catalog_api.context import PostHook, RequestContext, validated_sections
from catalog_api.errors import ApiError, FieldViolation, RequestLocation

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# FastAPI names request sections slightly differently in its error locations.
_FASTAPI_LOCATIONS: dict[str, RequestLocation] = {
    "body": "body",
    "path": "params",
    "query": "query",
    "header": "headers",
    "cookie": "headers",
}

_OPENAPI_PARAMETER_LOCATIONS: dict[RequestLocation, str] = {
    "params": "path",
    "query": "query",
    "headers": "header",
}

__all__ = [
    "ModelT",
    "failure_for_location",
    "from_request_validation_errors",
    "openapi_extra",
    "validate",
    "violations_from_errors",
]


def _format_path(loc: Sequence[Any], location: RequestLocation) -> str:
    path = ".".join(str(part) for part in loc)
    return path or location


def violations_from_errors(
    errors: Iterable[Mapping[str, Any]], location: RequestLocation
) -> list[FieldViolation]:
    """Convert pydantic error dictionaries into field violations."""

    return [
        FieldViolation(
            code=str(error.get("type", "value_error")),
            message=str(error.get("msg", "Invalid value")),
            path=_format_path(error.get("loc", ()), location),
            location=location,
        )
        for error in errors
    ]


def failure_for_location(
    violations: Sequence[FieldViolation], location: RequestLocation
) -> ApiError:
    """Return the taxonomy error matching the section that failed."""

    if location == "body":
        return ApiError.entity(violations)
    return ApiError.validation(violations, location=location)


def from_request_validation_errors(errors: Iterable[Mapping[str, Any]]) -> ApiError:
    """Classify FastAPI's ``RequestValidationError`` payload.

    FastAPI prefixes each ``loc`` with the section name.  The error is an
    entity error as soon as one violation concerns the body; otherwise it is a
    validation error reported against the first failing section.
    """

    violations: list[FieldViolation] = []
    for error in errors:
        loc = tuple(error.get("loc", ()))
        section = _FASTAPI_LOCATIONS.get(str(loc[0]) if loc else "", "query")
        violations.extend(
            violations_from_errors([{**error, "loc": loc[1:]}], section)
        )

    body_violations = [v for v in violations if v.location == "body"]
    if body_violations:
        return ApiError.entity(body_violations)
    location: RequestLocation = violations[0].location if violations else "query"
    return ApiError.validation(violations, location=location)


async def _parse_section(
    request: Request, schema: type[ModelT], location: RequestLocation
) -> ModelT:
    if location == "body":
        return schema.model_validate_json(await request.body())
    if location == "params":
        raw: Mapping[str, Any] = dict(request.path_params)
    elif location == "query":
        raw = dict(request.query_params)
    else:
        # Header names are lowercase and hyphenated; fields are snake_case.
        raw = {key.replace("-", "_"): value for key, value in request.headers.items()}
    return schema.model_validate(raw)


def validate(
    schema: type[ModelT],
    location: RequestLocation,
    post_hook: PostHook | None = None,
) -> Callable[[Request], Awaitable[ModelT]]:
    """Build a dependency that validates ``location`` against ``schema``.

    ``post_hook`` runs after a successful parse with the full request context
    and may raise any :class:`ApiError` for checks a static schema cannot
    express.
    """

    async def dependency(request: Request) -> ModelT:
        try:
            normalized = await _parse_section(request, schema, location)
        except ValidationError as exc:
            violations = violations_from_errors(exc.errors(), location)
            logger.debug(
                "Rejected %s %s: %d violation(s) in %s",
                request.method,
                request.url.path,
                len(violations),
                location,
            )
            raise failure_for_location(violations, location) from None

        validated_sections(request)[location] = normalized

        if post_hook is not None:
            await post_hook(RequestContext.from_request(request))

        return normalized

    dependency.__name__ = f"validate_{location}_{schema.__name__}"
    return dependency


def _inline_refs(node: Any, defs: Mapping[str, Any]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            return _inline_refs(defs[ref.removeprefix("#/$defs/")], defs)
        return {key: _inline_refs(value, defs) for key, value in node.items()}
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    return node


def openapi_extra(schema: type[BaseModel], location: RequestLocation) -> dict[str, Any]:
    """Describe a section parsed by :func:`validate` for the OpenAPI document.

    The validation stage reads the raw request itself, so FastAPI cannot infer
    the request body or parameters.  Pass the result as a route's
    ``openapi_extra``.
    """

    json_schema = schema.model_json_schema(by_alias=True, mode="validation")
    defs = json_schema.pop("$defs", {})
    json_schema = _inline_refs(json_schema, defs)

    if location == "body":
        return {
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": json_schema}},
            }
        }

    parameter_in = _OPENAPI_PARAMETER_LOCATIONS[location]
    required = set(json_schema.get("required", ()))
    parameters = []
    for name, property_schema in json_schema.get("properties", {}).items():
        parameter = {
            "name": to_snake(name).replace("_", "-") if location == "headers" else name,
            "in": parameter_in,
            "required": parameter_in == "path" or name in required,
            "schema": property_schema,
        }
        if "description" in property_schema:
            parameter["description"] = property_schema["description"]
        parameters.append(parameter)
    return {"parameters": parameters}
