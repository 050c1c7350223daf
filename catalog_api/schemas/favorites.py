"""Pydantic schemas that power the favorites API surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, ConfigDict, Field

from catalog_api.db.models import MediaType
from catalog_api.schemas.base import CamelModel

# Ids are stored in 32-bit signed integer columns.
MAX_COLUMN_ID = 2**31 - 1


# -- request sections ---------------------------------------------------------


class AddFavoriteBody(CamelModel):
    """Payload for favoriting a catalog item.

    Display fields are copied from the catalog by the client so the favorites
    list can be rendered without another catalog lookup.
    """

    model_config = ConfigDict(extra="forbid")

    media_id: int = Field(
        ..., gt=0, le=MAX_COLUMN_ID, description="Identifier in the catalog's namespace"
    )
    media_title: str = Field(..., min_length=1, max_length=512)
    media_type: MediaType = Field(..., description="Either ``movie`` or ``tv``")
    media_poster: str | None = Field(
        ..., max_length=1024, description="Poster URL or ``null`` when the catalog has none."
    )
    media_release_date: str = Field(..., max_length=32)


class FavoritesPageQuery(CamelModel):
    """Query string accepted by ``GET /favorites/me``."""

    cursor: int | None = Field(
        None,
        gt=0,
        le=MAX_COLUMN_ID,
        validation_alias=AliasChoices("cursor", "page"),
        description=(
            "Opaque continuation token returned as ``pagination.nextCursor``."
            " ``page`` is accepted as a legacy spelling."
        ),
    )


class FavoriteIdParams(CamelModel):
    """Path parameters of ``DELETE /favorites/{favoriteId}``."""

    favorite_id: int = Field(..., gt=0, le=MAX_COLUMN_ID)


class MediaParams(CamelModel):
    """Path parameters addressing a favorite by its catalog identity."""

    media_id: int = Field(..., gt=0, le=MAX_COLUMN_ID)
    media_type: MediaType


class MediaRef(CamelModel):
    """A catalog item surfaced by a listing."""

    media_id: int = Field(..., gt=0, le=MAX_COLUMN_ID)
    media_type: MediaType


class FavoriteStatusBody(CamelModel):
    """Batch of listed items whose favorite status should be annotated."""

    model_config = ConfigDict(extra="forbid")

    medias: list[MediaRef] = Field(..., max_length=100)


# -- responses ----------------------------------------------------------------


class FavoriteListItem(CamelModel):
    """A favorite as shown in the owner's own list."""

    id: int = Field(..., description="Store-assigned favorite identifier")
    media_id: int
    media_title: str
    media_type: MediaType
    media_poster: str | None
    media_release_date: str
    created_at: datetime


class FavoriteRecord(FavoriteListItem):
    """A favorite including its owner, returned after mutations."""

    user_id: str


class FavoriteResponse(CamelModel):
    message: str
    data: FavoriteRecord


class FavoritesPagination(CamelModel):
    next_cursor: str | None = Field(
        None, description="Pass back as ``cursor`` to fetch the following page."
    )
    has_next_page: bool
    count: int = Field(..., description="Number of favorites in this page")


class FavoritesPageResponse(CamelModel):
    message: str
    data: list[FavoriteListItem]
    pagination: FavoritesPagination


class FavoriteCheck(CamelModel):
    is_favorite: bool


class FavoriteCheckResponse(CamelModel):
    message: str
    data: FavoriteCheck


class FavoriteStatusItem(CamelModel):
    """Tri-state annotation: ``None`` means the caller is anonymous."""

    media_id: int
    media_type: MediaType
    is_favorite: bool | None


class FavoriteStatusResponse(CamelModel):
    message: str
    data: list[FavoriteStatusItem]


class MessageResponse(CamelModel):
    message: str


__all__ = [
    "AddFavoriteBody",
    "FavoriteCheck",
    "FavoriteCheckResponse",
    "FavoriteIdParams",
    "FavoriteListItem",
    "FavoriteRecord",
    "FavoriteResponse",
    "FavoriteStatusBody",
    "FavoriteStatusItem",
    "FavoriteStatusResponse",
    "FavoritesPageQuery",
    "FavoritesPageResponse",
    "FavoritesPagination",
    "MediaParams",
    "MediaRef",
    "MessageResponse",
]
