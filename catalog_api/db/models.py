"""SQLAlchemy ORM models for user accounts and their favorited catalog items.

Favorites denormalize the catalog's display fields (title, poster, release
date) at creation time so that listing a user's favorites never needs a round
trip to the upstream catalog.  Rows are immutable once written; the only
lifecycle transitions are insert and delete.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class MediaType(str, Enum):
    """Catalog namespaces a favorite can point into."""

    MOVIE = "movie"
    TV = "tv"


class VerifyStatus(str, Enum):
    """Account verification states maintained by the identity service."""

    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    BANNED = "banned"


class UserAccount(Base):
    """Account record owned by the identity service and read by this API."""

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        doc="Matches the user id claim carried by access tokens.",
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    verify: Mapped[VerifyStatus] = mapped_column(
        SAEnum(
            VerifyStatus,
            name="verify_status",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=VerifyStatus.UNVERIFIED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class Favorite(Base):
    """A single catalog item marked as favorite by one user."""

    __tablename__ = "favorites"
    __table_args__ = (
        # Idempotency key for adding favorites; media_type is not part of it.
        UniqueConstraint(
            "user_id",
            "media_id",
            name="uq_favorites_user_media",
        ),
        Index("ix_favorites_user_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
        doc=(
            "Opaque identifier for the owning user, taken from the verified"
            " access token.  Not a foreign key: accounts are owned by the"
            " identity service."
        ),
    )
    media_id: Mapped[int] = mapped_column(Integer, nullable=False)
    media_type: Mapped[MediaType] = mapped_column(
        SAEnum(
            MediaType,
            name="media_type",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    media_title: Mapped[str] = mapped_column(String(512), nullable=False)
    media_poster: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    media_release_date: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"Favorite(id={self.id!r}, user_id={self.user_id!r},"
            f" media_id={self.media_id!r}, media_type={self.media_type!r})"
        )


__all__ = [
    "Base",
    "Favorite",
    "MediaType",
    "UserAccount",
    "VerifyStatus",
    "utcnow",
]
