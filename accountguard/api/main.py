"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, rate limiting, exception handlers, and lifespan
events.
"""

import logging
from collections.abc import AsyncGenerator
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool
from slowapi.middleware import SlowAPIMiddleware

from accountguard import __version__
from accountguard.adapters.repository.memory import InMemoryAccountRepository
from accountguard.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from accountguard.adapters.smtp.background import BackgroundNotifier
from accountguard.adapters.smtp.console import ConsoleEmailSender
from accountguard.api.auth import router as auth_router
from accountguard.api.dependencies import build_hasher, build_issuer, build_policy
from accountguard.api.errors import register_exception_handlers
from accountguard.api.limiter import configure_limiter, limiter
from accountguard.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Registration, email verification, login with lockout, and password management",
    },
]


def configure_logging(level: str) -> None:
    """Apply the configured log level with a plain timestamped format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the database connection pool and runs migrations
      (or an in-memory store when storage_backend=memory)
    - Starts the notification worker pool
    - Drains notifications and closes the pool on shutdown
    """
    settings: Settings = app.state.settings

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory account store; data is lost on restart")
        repository = InMemoryAccountRepository()
    else:
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            timeout=settings.pool_timeout,
            open=True,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)

        repository = PostgresAccountRepository(
            pool,
            acquire_timeout=settings.pool_timeout,
            hold_warning_seconds=settings.connection_hold_warning_seconds,
        )

    executor = ThreadPoolExecutor(
        max_workers=settings.notification_workers,
        thread_name_prefix="notify",
    )

    # Stored in app state for dependency injection
    app.state.pool = pool
    app.state.repository = repository
    app.state.notifier = BackgroundNotifier(ConsoleEmailSender(settings.client_url), executor)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    executor.shutdown(wait=True)
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title="accountguard",
        description="Account lifecycle API - registration, verification, login lockout, password reset",
        version=__version__,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    # Process-lifetime collaborators; pool and notifier are added by the lifespan
    application.state.settings = settings
    application.state.hasher = build_hasher(settings)
    application.state.issuer = build_issuer(settings)
    application.state.policy = build_policy(settings)

    # SlowAPIMiddleware looks the limiter up on app.state
    application.state.limiter = configure_limiter(settings)
    application.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(application, expose_errors=settings.is_development)
    application.include_router(auth_router)

    @limiter.exempt
    @application.get("/health")
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with store validation.

        Returns 200 OK if the application and account store are healthy.
        A database failure is reported as 503 by the exception handlers.
        """
        request.app.state.repository.ping()
        return {"status": "healthy"}

    return application


app = create_app()
