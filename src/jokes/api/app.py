"""FastAPI application factory, lifespan management, and middleware configuration.

Creates the FastAPI app with:
- Async lifespan (logging, DB engine + tables, service, background tasks)
- Request ID middleware
- Per-client rate limiter (owned by the app, sweep started at startup)
- Request body size limit middleware
- Health, /v1 joke routes, and metrics
- Global error handlers
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from starlette.responses import JSONResponse

from jokes.api.error_handlers import register_error_handlers
from jokes.api.rate_limit import RateLimiter
from jokes.api.routes import health, jokes, metrics
from jokes.config import Settings
from jokes.db.repository import SqlJokeRepository
from jokes.db.session import create_async_engine_from_url, create_session_factory, create_tables
from jokes.keepalive import KeepAlivePinger
from jokes.log_config import configure_logging
from jokes.observability.request_id import RequestIdMiddleware
from jokes.service import DefaultJokeService

logger = structlog.get_logger()

API_PREFIX = "/v1"


def _create_rate_limiter(settings: Settings) -> RateLimiter:
    """Create the per-client-IP token bucket limiter from settings."""
    return RateLimiter(
        rate=settings.rate_limit_rate,
        burst=settings.rate_limit_burst,
        idle_timeout=settings.rate_limit_idle_seconds,
        sweep_interval=settings.rate_limit_sweep_interval_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown logic.

    Startup:
        1. Configure structured logging
        2. Create async DB engine, session factory, and tables
        3. Build repository and service
        4. Start the rate limiter sweep and the optional keep-alive pinger

    Shutdown:
        5. Stop background tasks and dispose the database engine
    """
    settings: Settings = app.state.settings

    # 1. Logging
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    # 2. Database
    engine = create_async_engine_from_url(
        settings.database_url,
        pool_timeout=settings.db_pool_timeout,
        connect_timeout=settings.db_connect_timeout,
    )
    session_factory = create_session_factory(engine)
    await create_tables(engine)

    # 3. Collaborators
    repository = SqlJokeRepository(session_factory)
    app.state.service = DefaultJokeService(repository)

    # 4. Background tasks
    rate_limiter: RateLimiter = app.state.rate_limiter
    rate_limiter.start()

    pinger: KeepAlivePinger | None = None
    if settings.keepalive_url is not None:
        pinger = KeepAlivePinger(str(settings.keepalive_url), settings.keepalive_interval_seconds)
        pinger.start()
    app.state.keepalive = pinger

    await logger.ainfo(
        "startup_complete",
        database_url=settings.database_url.split("://")[0] + "://***",
        keepalive=pinger is not None,
    )

    yield

    # Shutdown
    if pinger is not None:
        await pinger.stop()
    await rate_limiter.stop()
    await engine.dispose()
    await logger.ainfo("shutdown_complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory — create and configure the FastAPI app.

    Args:
        settings: Optional Settings instance. If None, loads from environment.

    Returns:
        A fully configured FastAPI application.
    """
    if settings is None:
        from jokes.config import get_settings
        settings = get_settings()

    app = FastAPI(
        title="Jokes",
        description="REST CRUD service for jokes",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Attach settings and owned components before lifespan runs
    app.state.settings = settings
    app.state.rate_limiter = _create_rate_limiter(settings)

    # --- Request IDs ---
    app.add_middleware(RequestIdMiddleware)

    # --- Request body size limit ---
    max_body = settings.max_request_body_bytes

    @app.middleware("http")
    async def limit_request_body(request: Request, call_next: object) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_body:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": "request body too large"},
            )
        response = await call_next(request)  # type: ignore[operator]
        return response

    # --- Routes ---
    app.include_router(health.router)
    app.include_router(health.router, prefix=API_PREFIX)
    app.include_router(jokes.router, prefix=API_PREFIX)
    app.include_router(metrics.router)

    # --- Error handlers ---
    register_error_handlers(app)

    return app
