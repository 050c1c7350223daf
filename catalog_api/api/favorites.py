"""FastAPI router exposing the favorites endpoints.

Each route declares its pipeline as dependencies: the authorization gate
first, then the schema validation stage for the section it consumes.  Both
short-circuit with an :class:`~catalog_api.errors.ApiError` before the handler
body runs.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalog_api.context import Identity
from catalog_api.schemas.favorites import (
    AddFavoriteBody,
    FavoriteCheck,
    FavoriteCheckResponse,
    FavoriteIdParams,
    FavoriteListItem,
    FavoriteRecord,
    FavoriteResponse,
    FavoritesPageQuery,
    FavoritesPageResponse,
    FavoritesPagination,
    FavoriteStatusBody,
    FavoriteStatusItem,
    FavoriteStatusResponse,
    MediaParams,
    MessageResponse,
)
from catalog_api.security import AuthMode, authorize
from catalog_api.services.accounts import ensure_account_verified
from catalog_api.services.favorites_service import (
    FavoritesService,
    get_favorites_service,
)
from catalog_api.validation import openapi_extra, validate

router = APIRouter()

require_login = authorize(AuthMode.REQUIRED)
require_verified_account = authorize(AuthMode.REQUIRED, post_hook=ensure_account_verified)
optional_login = authorize(AuthMode.OPTIONAL)


@router.post(
    "",
    response_model=FavoriteResponse,
    openapi_extra=openapi_extra(AddFavoriteBody, "body"),
)
async def add_favorite(
    identity: Identity = Depends(require_verified_account),
    body: AddFavoriteBody = Depends(validate(AddFavoriteBody, "body")),
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteResponse:
    """Favorite a catalog item; repeating the call returns the existing record."""

    record, was_created = await service.add_favorite(body, identity.user_id)
    message = "Add favorite successful" if was_created else "Favorite already exists"
    return FavoriteResponse(message=message, data=FavoriteRecord.model_validate(record))


@router.get(
    "/me",
    response_model=FavoritesPageResponse,
    openapi_extra=openapi_extra(FavoritesPageQuery, "query"),
)
async def get_my_favorites(
    identity: Identity = Depends(require_login),
    query: FavoritesPageQuery = Depends(validate(FavoritesPageQuery, "query")),
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoritesPageResponse:
    """Return the caller's favorites, newest first, one page at a time."""

    page = await service.get_favorites_page(identity.user_id, cursor=query.cursor)
    return FavoritesPageResponse(
        message="Get favorites successful",
        data=[FavoriteListItem.model_validate(record) for record in page.records],
        pagination=FavoritesPagination(
            next_cursor=page.next_cursor,
            has_next_page=page.has_next_page,
            count=len(page.records),
        ),
    )


@router.post(
    "/status",
    response_model=FavoriteStatusResponse,
    openapi_extra=openapi_extra(FavoriteStatusBody, "body"),
)
async def get_favorite_status(
    identity: Identity | None = Depends(optional_login),
    body: FavoriteStatusBody = Depends(validate(FavoriteStatusBody, "body")),
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteStatusResponse:
    """Annotate listed catalog items with the caller's favorite status.

    Anonymous callers receive ``isFavorite: null`` for every item.
    """

    user_id = identity.user_id if identity is not None else None
    media = [(item.media_id, item.media_type) for item in body.medias]
    status_map = await service.batch_favorite_status(media, user_id)
    flags = service.annotate(media, status_map, user_id)
    return FavoriteStatusResponse(
        message="Get favorite status successful",
        data=[
            FavoriteStatusItem(media_id=media_id, media_type=media_type, is_favorite=flag)
            for (media_id, media_type), flag in zip(media, flags)
        ],
    )


@router.get(
    "/medias/{mediaId}/{mediaType}",
    response_model=FavoriteCheckResponse,
    openapi_extra=openapi_extra(MediaParams, "params"),
)
async def check_favorite_by_media(
    identity: Identity = Depends(require_login),
    params: MediaParams = Depends(validate(MediaParams, "params")),
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteCheckResponse:
    is_favorite = await service.check_is_favorite(
        params.media_id, params.media_type, identity.user_id
    )
    return FavoriteCheckResponse(
        message="Check favorite successful",
        data=FavoriteCheck(is_favorite=is_favorite),
    )


@router.delete(
    "/medias/{mediaId}/{mediaType}",
    response_model=MessageResponse,
    openapi_extra=openapi_extra(MediaParams, "params"),
)
async def delete_favorite_by_media(
    identity: Identity = Depends(require_verified_account),
    params: MediaParams = Depends(validate(MediaParams, "params")),
    service: FavoritesService = Depends(get_favorites_service),
) -> MessageResponse:
    await service.delete_by_media(params.media_id, params.media_type, identity.user_id)
    return MessageResponse(message="Delete favorite by media successful")


@router.delete(
    "/{favoriteId}",
    response_model=MessageResponse,
    openapi_extra=openapi_extra(FavoriteIdParams, "params"),
)
async def delete_favorite_by_id(
    identity: Identity = Depends(require_verified_account),
    params: FavoriteIdParams = Depends(validate(FavoriteIdParams, "params")),
    service: FavoritesService = Depends(get_favorites_service),
) -> MessageResponse:
    await service.delete_by_id(params.favorite_id, identity.user_id)
    return MessageResponse(message="Delete favorite by id successful")
