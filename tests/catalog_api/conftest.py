"""Shared fixtures: a file-backed SQLite store, seeded accounts and an HTTP client."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from catalog_api.db.connection import create_engine, create_session_factory, create_tables
from catalog_api.db.models import UserAccount, VerifyStatus
from catalog_api.main import ServiceContainer, build_services, create_app
from catalog_api.security import TokenVerifier
from catalog_api.services.favorites import FavoritesPersistence
from catalog_api.services.favorites_service import FavoritesService
from catalog_api.settings import AppSettings
from tests.catalog_api.support import TEST_PAGE_SIZE, TEST_SECRET

AccountSeeder = Callable[..., Awaitable[UserAccount]]


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'favorites.db'}",
        jwt_access_token_secret=TEST_SECRET,
        favorites_per_page_limit=TEST_PAGE_SIZE,
        cors_allow_origins_raw="https://catalog.example.com",
    )


@pytest_asyncio.fixture
async def engine(settings: AppSettings) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite so concurrent sessions share one database."""

    pytest.importorskip("aiosqlite")
    engine = create_engine(settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def persistence(session_factory: async_sessionmaker[AsyncSession]) -> FavoritesPersistence:
    return FavoritesPersistence(session_factory)


@pytest.fixture
def service(persistence: FavoritesPersistence) -> FavoritesService:
    return FavoritesService(persistence, page_size=TEST_PAGE_SIZE)


@pytest.fixture
def token_verifier() -> TokenVerifier:
    return TokenVerifier(TEST_SECRET)


@pytest.fixture
def seed_account(session_factory: async_sessionmaker[AsyncSession]) -> AccountSeeder:
    """Insert a row into ``user_accounts`` and return it."""

    async def _seed(
        user_id: str = "user-1", verify: VerifyStatus = VerifyStatus.VERIFIED
    ) -> UserAccount:
        account = UserAccount(
            id=user_id,
            email=f"{user_id}@example.com",
            name=user_id.title(),
            verify=verify,
        )
        async with session_factory() as session:
            async with session.begin():
                session.add(account)
        return account

    return _seed


@pytest.fixture
def services(settings: AppSettings, engine: AsyncEngine) -> ServiceContainer:
    return build_services(settings, engine)


@pytest.fixture
def app(settings: AppSettings, services: ServiceContainer) -> FastAPI:
    return create_app(settings=settings, services=services)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    # Unhandled errors still produce a 500 response instead of surfacing in the test.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
