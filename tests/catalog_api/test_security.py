"""Tests for bearer token verification and the authorization gate."""

from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI, status
from httpx import ASGITransport, AsyncClient

from catalog_api.context import Identity, RequestContext
from catalog_api.errors import ApiError, ErrorKind
from catalog_api.main import api_error_handler
from catalog_api.security import (
    AuthFailure,
    AuthMode,
    FailureReason,
    TokenVerificationError,
    TokenVerifier,
    authorize,
    extract_bearer_token,
    resolve_identity,
)
from tests.catalog_api.support import TEST_SECRET, mint_token


def test_verify_returns_identity_for_valid_token(token_verifier: TokenVerifier) -> None:
    identity = token_verifier.verify(mint_token("user-42"))

    assert identity.user_id == "user-42"
    assert identity.expires_at is not None
    assert identity.claims["token_type"] == "access"


def test_verify_accepts_subject_claim(token_verifier: TokenVerifier) -> None:
    identity = token_verifier.verify(mint_token(None, sub="user-sub"))

    assert identity.user_id == "user-sub"


@pytest.mark.parametrize(
    ("token", "reason"),
    [
        (mint_token("user-1", expires_in=-60), FailureReason.EXPIRED),
        (mint_token("user-1", secret="another-secret"), FailureReason.INVALID_SIGNATURE),
        ("definitely.not-a.jwt", FailureReason.MALFORMED),
        (mint_token("user-1", token_type="refresh"), FailureReason.INVALID_CLAIMS),
        (mint_token(None), FailureReason.INVALID_CLAIMS),
    ],
)
def test_verify_classifies_failures(
    token_verifier: TokenVerifier, token: str, reason: FailureReason
) -> None:
    with pytest.raises(TokenVerificationError) as excinfo:
        token_verifier.verify(token)

    assert excinfo.value.reason is reason
    assert excinfo.value.message


def test_verifier_requires_a_secret() -> None:
    with pytest.raises(ValueError):
        TokenVerifier("")


@pytest.mark.parametrize(
    ("header", "reason"),
    [
        (None, FailureReason.MISSING),
        ("   ", FailureReason.MISSING),
        ("Bearer ", FailureReason.MISSING),
        ("Basic dXNlcjpwYXNz", FailureReason.MALFORMED_HEADER),
    ],
)
def test_extract_bearer_token_failures(header: str | None, reason: FailureReason) -> None:
    outcome = extract_bearer_token(header)

    assert isinstance(outcome, AuthFailure)
    assert outcome.reason is reason


def test_resolve_identity_returns_failure_value_instead_of_raising(
    token_verifier: TokenVerifier,
) -> None:
    outcome = resolve_identity(
        f"Bearer {mint_token('user-1', expires_in=-5)}", token_verifier
    )

    assert isinstance(outcome, AuthFailure)
    assert outcome.reason is FailureReason.EXPIRED
    error = outcome.to_error()
    assert error.kind is ErrorKind.AUTH
    assert error.status_code == status.HTTP_401_UNAUTHORIZED
    assert error.location == "headers"
    assert error.details == {"reason": "expired", "name": "ExpiredSignatureError"}


def test_resolve_identity_success(token_verifier: TokenVerifier) -> None:
    outcome = resolve_identity(f"Bearer {mint_token('user-7')}", token_verifier)

    assert isinstance(outcome, Identity)
    assert outcome.user_id == "user-7"


@pytest.fixture
def hook_calls() -> list[str]:
    return []


@pytest.fixture
def gate_app(hook_calls: list[str]) -> FastAPI:
    async def record_or_ban(context: RequestContext) -> None:
        assert context.identity is not None
        hook_calls.append(context.identity.user_id)
        if context.identity.user_id == "banned-user":
            raise ApiError.auth("User is banned", status_code=status.HTTP_403_FORBIDDEN)

    app = FastAPI()
    app.state.services = SimpleNamespace(token_verifier=TokenVerifier(TEST_SECRET))
    app.add_exception_handler(ApiError, api_error_handler)

    @app.get("/required")
    async def required(identity: Identity = Depends(authorize(AuthMode.REQUIRED))):
        return {"userId": identity.user_id}

    @app.get("/optional")
    async def optional(identity: Identity | None = Depends(authorize(AuthMode.OPTIONAL))):
        return {"userId": identity.user_id if identity else None}

    @app.get("/hooked")
    async def hooked(
        identity: Identity = Depends(authorize(AuthMode.REQUIRED, post_hook=record_or_ban)),
    ):
        return {"userId": identity.user_id}

    @app.get("/optional-hooked")
    async def optional_hooked(
        identity: Identity | None = Depends(
            authorize(AuthMode.OPTIONAL, post_hook=record_or_ban)
        ),
    ):
        return {"userId": identity.user_id if identity else None}

    return app


@pytest_asyncio.fixture
async def gate_client(gate_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=gate_app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_required_mode_attaches_identity(gate_client: AsyncClient) -> None:
    response = await gate_client.get("/required", headers=_bearer(mint_token("user-1")))

    assert response.status_code == 200
    assert response.json() == {"userId": "user-1"}


@pytest.mark.asyncio
async def test_required_mode_rejects_missing_header(gate_client: AsyncClient) -> None:
    response = await gate_client.get("/required")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    payload = response.json()
    assert payload["errorType"] == "authentication_error"
    assert payload["location"] == "headers"
    assert payload["errorInfo"]["reason"] == "missing"


@pytest.mark.asyncio
async def test_required_mode_rejects_expired_token(gate_client: AsyncClient) -> None:
    response = await gate_client.get(
        "/required", headers=_bearer(mint_token("user-1", expires_in=-30))
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["errorInfo"]["reason"] == "expired"


@pytest.mark.asyncio
async def test_optional_mode_without_header_is_anonymous(gate_client: AsyncClient) -> None:
    response = await gate_client.get("/optional")

    assert response.status_code == 200
    assert response.json() == {"userId": None}


@pytest.mark.asyncio
async def test_optional_mode_discards_unusable_credentials(gate_client: AsyncClient) -> None:
    expired = await gate_client.get(
        "/optional", headers=_bearer(mint_token("user-1", expires_in=-30))
    )
    malformed = await gate_client.get("/optional", headers={"Authorization": "Token abc"})

    assert expired.status_code == 200
    assert expired.json() == {"userId": None}
    assert malformed.status_code == 200
    assert malformed.json() == {"userId": None}


@pytest.mark.asyncio
async def test_optional_mode_attaches_valid_identity(gate_client: AsyncClient) -> None:
    response = await gate_client.get("/optional", headers=_bearer(mint_token("user-3")))

    assert response.json() == {"userId": "user-3"}


@pytest.mark.asyncio
async def test_post_hook_runs_after_identity_and_propagates_errors(
    gate_client: AsyncClient, hook_calls: list[str]
) -> None:
    allowed = await gate_client.get("/hooked", headers=_bearer(mint_token("user-1")))
    banned = await gate_client.get("/hooked", headers=_bearer(mint_token("banned-user")))
    anonymous = await gate_client.get("/hooked")

    assert allowed.status_code == 200
    assert banned.status_code == status.HTTP_403_FORBIDDEN
    assert banned.json()["message"] == "User is banned"
    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED
    assert hook_calls == ["user-1", "banned-user"]


@pytest.mark.asyncio
async def test_optional_post_hook_skipped_for_anonymous_callers(
    gate_client: AsyncClient, hook_calls: list[str]
) -> None:
    anonymous = await gate_client.get("/optional-hooked")
    banned = await gate_client.get(
        "/optional-hooked", headers=_bearer(mint_token("banned-user"))
    )

    assert anonymous.status_code == 200
    assert banned.status_code == status.HTTP_403_FORBIDDEN
    assert hook_calls == ["banned-user"]
