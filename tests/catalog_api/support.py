"""Helpers shared by the catalog API tests: token minting and request payloads."""

from __future__ import annotations

import time
from typing import Any

from jose import jwt

from catalog_api.db.models import MediaType
from catalog_api.schemas.favorites import AddFavoriteBody

TEST_SECRET = "test-access-secret"
TEST_PAGE_SIZE = 3


def mint_token(
    user_id: str | None = "user-1",
    *,
    secret: str = TEST_SECRET,
    expires_in: int = 600,
    **claims: Any,
) -> str:
    """Sign an access token the same way the identity service does."""

    now = int(time.time())
    payload: dict[str, Any] = {
        "token_type": "access",
        "iat": now,
        "exp": now + expires_in,
    }
    if user_id is not None:
        payload["user_id"] = user_id
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: str = "user-1", **claims: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id, **claims)}"}


def favorite_json(
    media_id: int = 550, media_type: str = "movie", **overrides: Any
) -> dict[str, Any]:
    """Wire-format (camelCase) body for ``POST /favorites``."""

    body: dict[str, Any] = {
        "mediaId": media_id,
        "mediaType": media_type,
        "mediaTitle": f"Title {media_id}",
        "mediaPoster": f"/posters/{media_id}.jpg",
        "mediaReleaseDate": "1999-10-15",
    }
    body.update(overrides)
    return body


def favorite_payload(
    media_id: int = 550,
    media_type: MediaType = MediaType.MOVIE,
    **overrides: Any,
) -> AddFavoriteBody:
    values: dict[str, Any] = {
        "media_id": media_id,
        "media_type": media_type,
        "media_title": f"Title {media_id}",
        "media_poster": f"/posters/{media_id}.jpg",
        "media_release_date": "1999-10-15",
    }
    values.update(overrides)
    return AddFavoriteBody(**values)
