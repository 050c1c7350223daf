"""Account lookups used as an authorization post-hook.

A valid token only proves the caller once held an account.  Routes that
mutate favorites additionally confirm the account still exists and has been
verified before the handler runs.
"""

from __future__ import annotations

import logging

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.context import RequestContext
from catalog_api.db.models import UserAccount, VerifyStatus
from catalog_api.errors import ApiError

logger = logging.getLogger(__name__)


class AccountsService:
    """Read-only access to the ``user_accounts`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_account(self, user_id: str) -> UserAccount | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(UserAccount).where(UserAccount.id == user_id)
            )
            return result.scalars().first()

    async def ensure_verified(self, user_id: str) -> UserAccount:
        """Return the account or raise an ``auth`` error explaining why not."""

        account = await self.get_account(user_id)
        if account is None:
            raise ApiError.auth("User not found", status_code=status.HTTP_404_NOT_FOUND)
        if account.verify is VerifyStatus.BANNED:
            raise ApiError.auth("User is banned", status_code=status.HTTP_403_FORBIDDEN)
        if account.verify is not VerifyStatus.VERIFIED:
            raise ApiError.auth(
                "User not verified", status_code=status.HTTP_403_FORBIDDEN
            )
        return account


async def ensure_account_verified(context: RequestContext) -> None:
    """Authorization post-hook: the identified account must exist and be verified."""

    if context.identity is None:
        return
    await context.services.accounts.ensure_verified(context.identity.user_id)
    logger.debug("Account %s verified for %s", context.identity.user_id, context.request.url.path)


__all__ = ["AccountsService", "ensure_account_verified"]
