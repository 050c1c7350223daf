"""Business logic powering the favorites API endpoints.

:class:`FavoritesService` coordinates the store primitives exposed by
:class:`~catalog_api.services.favorites.FavoritesPersistence`:

* ``add_favorite`` – idempotent add backed by a single conditional insert.
* ``get_favorites_page`` – keyset pagination over the caller's favorites.
* ``get_favorite`` / ``check_is_favorite`` – point lookups that never raise.
* ``delete_by_id`` / ``delete_by_media`` – ownership-scoped deletes that report
  "missing" and "owned by someone else" identically.
* ``batch_favorite_status`` / ``annotate`` – favorite flags for catalog
  listings, computed with one query per listing.

The service is built once at application startup and shared by every request;
it holds no per-request state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from fastapi import Request

from catalog_api.db.models import Favorite, MediaType
from catalog_api.errors import ApiError
from catalog_api.schemas.favorites import AddFavoriteBody
from catalog_api.services.favorites import FavoritesPersistence

logger = logging.getLogger(__name__)

FAVORITE_NOT_FOUND_MESSAGE = "Favorite not found or does not belong to you."

FavoriteStatusMap = dict[int, set[MediaType]]


@dataclass(frozen=True)
class FavoritesPage:
    """A page of favorites and the information needed to request the next one."""

    records: list[Favorite]
    has_next_page: bool

    @property
    def next_cursor(self) -> str | None:
        """Identifier of the last record when another page exists."""

        if not self.has_next_page or not self.records:
            return None
        return str(self.records[-1].id)


class FavoritesService:
    """Consistency layer between the HTTP handlers and the favorites store."""

    def __init__(self, persistence: FavoritesPersistence, *, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self._persistence = persistence
        self._page_size = page_size

    async def add_favorite(
        self, payload: AddFavoriteBody, user_id: str
    ) -> tuple[Favorite, bool]:
        """Favorite a media item, returning the stored row and whether it is new.

        Repeating the call (even concurrently) never creates a second row: the
        store resolves duplicates with one atomic insert keyed on
        ``(user_id, media_id)``.
        """

        record, was_created = await self._persistence.insert_if_absent(
            payload, user_id=user_id
        )
        logger.info(
            "Favorite %s for user %s media %s/%s (%s)",
            record.id,
            user_id,
            payload.media_type.value,
            payload.media_id,
            "created" if was_created else "already present",
        )
        return record, was_created

    async def get_favorites_page(
        self, user_id: str, cursor: int | None = None
    ) -> FavoritesPage:
        scan = await self._persistence.scan_page(
            user_id=user_id, before_id=cursor, limit=self._page_size
        )
        return FavoritesPage(records=scan.records, has_next_page=scan.has_more)

    async def get_favorite(
        self, media_id: int, media_type: MediaType, user_id: str
    ) -> Favorite | None:
        return await self._persistence.find_one(
            user_id=user_id, media_id=media_id, media_type=media_type
        )

    async def check_is_favorite(
        self, media_id: int, media_type: MediaType, user_id: str
    ) -> bool:
        return await self.get_favorite(media_id, media_type, user_id) is not None

    async def delete_by_id(self, favorite_id: int, user_id: str) -> None:
        """Delete a favorite the caller owns, or raise a not-found error.

        The delete is conditioned on both the id and the owner, so a favorite
        belonging to another user is indistinguishable from a missing one.
        """

        deleted = await self._persistence.delete_owned_by_id(
            favorite_id=favorite_id, user_id=user_id
        )
        if deleted == 0:
            raise ApiError.not_found(FAVORITE_NOT_FOUND_MESSAGE)

    async def delete_by_media(
        self, media_id: int, media_type: MediaType, user_id: str
    ) -> None:
        deleted = await self._persistence.delete_owned_by_media(
            media_id=media_id, media_type=media_type, user_id=user_id
        )
        if deleted == 0:
            raise ApiError.not_found(FAVORITE_NOT_FOUND_MESSAGE)

    async def batch_favorite_status(
        self,
        media: Iterable[tuple[int, MediaType]],
        user_id: str | None = None,
    ) -> FavoriteStatusMap:
        """Map ``media_id`` to the media types the user has favorited.

        Anonymous callers get an empty map without touching the store; callers
        must read that as "unknown" rather than "not favorited".
        """

        if not user_id:
            return {}

        pairs = list(dict.fromkeys(media))
        if not pairs:
            return {}

        status_map: FavoriteStatusMap = {}
        for media_id, media_type in await self._persistence.find_memberships(
            user_id=user_id, media=pairs
        ):
            status_map.setdefault(media_id, set()).add(MediaType(media_type))
        return status_map

    @staticmethod
    def annotate(
        media: Sequence[tuple[int, MediaType]],
        status_map: FavoriteStatusMap,
        user_id: str | None,
    ) -> list[bool | None]:
        """Tri-state favorite flag for each listed item, in input order."""

        if not user_id:
            return [None for _ in media]
        return [
            media_type in status_map.get(media_id, set())
            for media_id, media_type in media
        ]


def get_favorites_service(request: Request) -> FavoritesService:
    """FastAPI dependency returning the service wired at application startup."""

    return request.app.state.services.favorites


__all__ = [
    "FAVORITE_NOT_FOUND_MESSAGE",
    "FavoriteStatusMap",
    "FavoritesPage",
    "FavoritesService",
    "get_favorites_service",
]
