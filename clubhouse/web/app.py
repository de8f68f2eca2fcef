"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clubhouse.config.logging import setup_logging
from clubhouse.config.settings import Settings, get_settings
from clubhouse.exceptions import ClubhouseError, UnauthorizedError
from clubhouse.storage.bootstrap import initial_setup
from clubhouse.storage.database import create_engine, init_db, ping
from clubhouse.web.auth.session import EXPIRED_SESSION_COOKIE, require_auth
from clubhouse.web.dependencies import build_repositories
from clubhouse.web.health import check_health
from clubhouse.web.middleware import RequestIDMiddleware, RequestTimeoutMiddleware
from clubhouse.web.routes.auth import router as auth_router
from clubhouse.web.routes.game_invites import router as game_invites_router
from clubhouse.web.routes.games import router as games_router
from clubhouse.web.routes.roles import router as roles_router
from clubhouse.web.routes.teams import router as teams_router
from clubhouse.web.routes.tenants import router as tenants_router
from clubhouse.web.routes.users import router as users_router

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Verify the store and run the first-run bootstrap before serving.

    Any failure here propagates, so the server refuses to start.
    """
    settings: Settings = app.state.settings
    engine: AsyncEngine = app.state.engine

    await ping(engine)
    if settings.create_tables:
        await init_db(engine)
    if await initial_setup(engine, settings):
        logger.info("first_run_initialized")
    logger.info("app_started")
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("app_stopped")


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    app = FastAPI(
        title="Clubhouse",
        description="Multi-tenant club and team management backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine or create_engine(settings)
    app.state.repos = build_repositories(app.state.engine, settings)

    @app.exception_handler(ClubhouseError)
    async def clubhouse_error_handler(request: Request, exc: ClubhouseError) -> JSONResponse:
        response = JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        if isinstance(exc, UnauthorizedError) and exc.clear_cookie:
            response.headers.append("set-cookie", EXPIRED_SESSION_COOKIE)
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=str(exc))
        return response

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("store_error", path=request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Unexpected Error"})

    # Middleware (order matters: last added runs first)
    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    # Public routes
    app.include_router(auth_router, prefix=API_PREFIX)

    @app.get(f"{API_PREFIX}/health")
    async def health_check() -> dict[str, object]:
        return await check_health(app.state.engine)

    # Protected routes (session cookie required, roles checked per operation)
    protected = [
        users_router,
        roles_router,
        teams_router,
        games_router,
        game_invites_router,
        tenants_router,
    ]
    for router in protected:
        app.include_router(router, prefix=API_PREFIX, dependencies=[Depends(require_auth)])

    logger.info("app_created")
    return app
