import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from .api import favorites
from .db.connection import (
    create_engine,
    create_session_factory,
    create_tables,
    ping_database,
    sanitize_database_url,
)
from .errors import ApiError, ErrorKind
from .security import TokenVerifier
from .services.accounts import AccountsService
from .services.favorites import FavoritesPersistence
from .services.favorites_service import FavoritesService
from .settings import AppSettings, get_settings
from .utils.error_responses import error_response_content
from .utils.request_context import (
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from .validation import from_request_validation_errors

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by every request.

    Built once per process (or once per test) and stored on ``app.state``;
    request handlers reach it through FastAPI dependencies.
    """

    favorites: FavoritesService
    accounts: AccountsService
    token_verifier: TokenVerifier
    engine: AsyncEngine


def build_services(settings: AppSettings, engine: AsyncEngine) -> ServiceContainer:
    """Wire the service graph on top of ``engine``."""

    session_factory = create_session_factory(engine)
    return ServiceContainer(
        favorites=FavoritesService(
            FavoritesPersistence(session_factory),
            page_size=settings.favorites_per_page_limit,
        ),
        accounts=AccountsService(session_factory),
        token_verifier=TokenVerifier(
            settings.jwt_access_token_secret, algorithm=settings.jwt_algorithm
        ),
        engine=engine,
    )


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=settings.log_level_numeric,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def validate_environment(settings: AppSettings) -> None:
    """Log warnings for unset optional configuration."""

    warnings = settings.optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning("  • %s", warning)
        logger.warning("=" * 60)


def _error_json(request: Request, error: ApiError) -> JSONResponse:
    # 500 responses are sent from outside the request-id middleware.
    request_id = get_request_id()
    return JSONResponse(
        status_code=error.status_code,
        content=error_response_content(error, path=str(request.url.path)),
        headers={"X-Request-ID": request_id} if request_id else None,
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Terminal handler for taxonomy errors raised by stages and services."""

    log = logger.error if exc.kind is ErrorKind.UNCLASSIFIED else logger.warning
    log(
        "%s for request %s (user %s) to %s: %s",
        exc.kind.value,
        get_request_id(),
        get_user_id() or "anonymous",
        request.url.path,
        exc.message,
    )
    return _error_json(request, exc)


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Classify FastAPI's own validation failures like the validation stage does."""

    error = from_request_validation_errors(exc.errors())
    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(error.violations),
    )
    return _error_json(request, error)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions, including database failures."""

    logger.exception(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
    )
    return _error_json(request, ApiError.unclassified(exc))


def create_app(
    *,
    settings: AppSettings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    ``services`` lets tests inject a pre-wired container; otherwise the
    lifespan hook connects to the configured database and builds one.
    """

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events."""
        if services is not None:
            yield
            return

        validate_environment(settings)

        logger.info("=" * 60)
        logger.info("Catalog Favorites API - Database Preflight Check")
        logger.info("=" * 60)
        logger.info("Database Type: %s", settings.database_type.upper())
        logger.info(
            "Database URL: %s", sanitize_database_url(settings.resolved_database_url)
        )

        engine = create_engine(settings)
        if settings.database_type == "sqlite":
            logger.info("SQLite mode - creating tables from ORM metadata")
            await create_tables(engine)
        else:
            logger.info("PostgreSQL mode - using Alembic migrations")

        try:
            await ping_database(engine)
            logger.info("✓ Database connection warmed up")
        except Exception as exc:
            logger.warning("Database warmup failed: %s", exc)

        container = build_services(settings, engine)
        app.state.services = container

        yield

        logger.info("Shutting down Catalog Favorites API")
        await container.engine.dispose()

    app = FastAPI(
        title="Catalog Favorites API",
        version="0.1.0",
        description=(
            "Favorites layered over an external media catalog, behind a bearer"
            " token authorization and request validation pipeline."
        ),
        lifespan=lifespan,
        redirect_slashes=False,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add unique request ID to each request for tracking."""
        request_id = str(uuid.uuid4())
        set_request_id(request_id)
        set_user_id(None)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple health endpoint for readiness checks."""
        return {"status": "ok"}

    app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])

    return app


configure_logging(get_settings())
app = create_app()
