"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (signing key check,
optional table creation, engine disposal). Middleware, CORS, and
routers all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authgate import __version__
from authgate.api import api_router
from authgate.auth.dependencies import get_token_codec
from authgate.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "authgate.starting",
        version=__version__,
        environment=settings.environment,
        access_token_ttl=settings.access_token_expire_seconds,
        lockout_threshold=settings.lockout_threshold,
    )

    # Build the token codec now so a bad signing key fails at boot,
    # not on the first login.
    get_token_codec()

    from authgate.db.engine import engine

    if settings.auto_create_tables:
        from authgate.db.models import Base

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("authgate.tables_created")

    yield

    logger.info("authgate.shutdown")
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="authgate",
        description="Authentication and authorization gate — login with lockout, JWT access tokens, refresh tokens, ownership checks",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from authgate.middleware.request_id import RequestIdMiddleware
    from authgate.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: authgate.main:app)
app = create_app()
