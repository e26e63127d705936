"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The database handle is built here (or passed in by tests),
stored on app.state, and closed by the lifespan at shutdown. Nothing
talks to a module-level engine.

Boot fails fast: a TokenService is constructed up front so a missing
signing secret raises ConfigError at startup, not on the first login.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub import __version__
from taskhub.api import api_router
from taskhub.api.errors import register_error_handlers
from taskhub.config import Settings, settings as default_settings
from taskhub.db.engine import Database
from taskhub.log_config import configure_logging
from taskhub.middleware.rate_limit import RateLimitMiddleware
from taskhub.middleware.request_id import RequestIdMiddleware
from taskhub.middleware.security import SecurityHeadersMiddleware
from taskhub.services.token_service import TokenService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    configure_logging(settings)
    logger.info(
        "taskhub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.create_schema_on_startup:
        await database.create_all()
        logger.info("taskhub.schema_created")

    yield

    logger.info("taskhub.shutdown")
    await database.close()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings
    TokenService(settings)  # raises ConfigError without signing secrets

    if database is None:
        database = Database(settings.database_url, echo=settings.debug)

    app = FastAPI(
        title="TaskHub API",
        description="Project management backend with role-based access control",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskhub.main:app)
app = create_app()
