"""Database-oriented primitives for the favorites store.

Every method opens its own short transaction from the shared session factory,
so a primitive is either fully applied or not applied at all.  Mutations are
expressed as single conditional statements (``INSERT ... ON CONFLICT DO
NOTHING``, ``DELETE ... WHERE owner = ?``); nothing here reads a row and then
decides whether to write.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.db.models import Favorite, MediaType, utcnow
from catalog_api.schemas.favorites import AddFavoriteBody


@dataclass(frozen=True)
class ScanResult:
    """One bounded slice of a user's favorites plus the has-more probe."""

    records: list[Favorite]
    has_more: bool


class FavoritesPersistence:
    """Encapsulates SQLAlchemy operations required by the favorites domain."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_one(
        self, *, user_id: str, media_id: int, media_type: MediaType
    ) -> Favorite | None:
        """Point lookup by owner and full media identity."""

        query = select(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.media_id == media_id,
            Favorite.media_type == media_type,
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def insert_if_absent(
        self, payload: AddFavoriteBody, *, user_id: str
    ) -> tuple[Favorite, bool]:
        """Atomically insert a favorite unless ``(user_id, media_id)`` exists.

        Returns the stored row (new or pre-existing) and whether this call
        inserted it.  The conflict target is the ``uq_favorites_user_media``
        constraint, so concurrent duplicate submissions resolve inside the
        database rather than in application code.
        """

        async with self._session_factory() as session:
            async with session.begin():
                insert = _dialect_insert(session)
                statement = (
                    insert(Favorite)
                    .values(
                        user_id=user_id,
                        media_id=payload.media_id,
                        media_type=payload.media_type,
                        media_title=payload.media_title,
                        media_poster=payload.media_poster,
                        media_release_date=payload.media_release_date,
                        created_at=utcnow(),
                    )
                    .on_conflict_do_nothing(index_elements=["user_id", "media_id"])
                    .returning(Favorite.id)
                )
                inserted_id = (await session.execute(statement)).scalar_one_or_none()

                stored = (
                    await session.execute(
                        select(Favorite).where(
                            Favorite.user_id == user_id,
                            Favorite.media_id == payload.media_id,
                        )
                    )
                ).scalar_one()

        return stored, inserted_id is not None

    async def delete_owned_by_id(self, *, favorite_id: int, user_id: str) -> int:
        """Delete one favorite matching both id and owner; return rows removed."""

        statement = delete(Favorite).where(
            Favorite.id == favorite_id,
            Favorite.user_id == user_id,
        )
        return await self._execute_delete(statement)

    async def delete_owned_by_media(
        self, *, media_id: int, media_type: MediaType, user_id: str
    ) -> int:
        """Delete the favorite for a media identity owned by ``user_id``."""

        statement = delete(Favorite).where(
            Favorite.media_id == media_id,
            Favorite.media_type == media_type,
            Favorite.user_id == user_id,
        )
        return await self._execute_delete(statement)

    async def scan_page(
        self, *, user_id: str, before_id: int | None, limit: int
    ) -> ScanResult:
        """Return up to ``limit`` favorites newest-first, probing for one more.

        ``before_id`` restricts the scan to ids strictly lower than the cursor.
        The ordering key is ``created_at`` while the boundary compares ids; the
        two agree as long as ids are assigned in insertion order.
        """

        query = select(Favorite).where(Favorite.user_id == user_id)
        if before_id is not None:
            query = query.where(Favorite.id < before_id)
        query = query.order_by(Favorite.created_at.desc(), Favorite.id.desc()).limit(
            limit + 1
        )

        async with self._session_factory() as session:
            rows = list((await session.execute(query)).scalars().all())

        return ScanResult(records=rows[:limit], has_more=len(rows) > limit)

    async def find_memberships(
        self, *, user_id: str, media: Sequence[tuple[int, MediaType]]
    ) -> list[tuple[int, MediaType]]:
        """Return which of ``media`` the user has favorited, in one query."""

        if not media:
            return []

        query = select(Favorite.media_id, Favorite.media_type).where(
            Favorite.user_id == user_id,
            or_(
                *(
                    and_(Favorite.media_id == media_id, Favorite.media_type == media_type)
                    for media_id, media_type in media
                )
            ),
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [(row.media_id, row.media_type) for row in result]

    async def _execute_delete(self, statement) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(statement)
        return result.rowcount or 0


def _dialect_insert(session: AsyncSession):
    """Return the ``insert`` construct supporting ``ON CONFLICT`` for the bind."""

    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Favorites store does not support the {dialect!r} dialect")


__all__ = ["FavoritesPersistence", "ScanResult"]
