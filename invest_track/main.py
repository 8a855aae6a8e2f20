"""
InvestTrack API — Application entry-point.

Initializes the FastAPI application, registers middleware, exception handlers
and routers, and manages the application lifecycle (table creation on startup).
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
from sqlmodel import SQLModel

from invest_track import __version__
from invest_track.api.api import api_router
from invest_track.core.config import settings
from invest_track.core.exceptions import add_exception_handlers
from invest_track.core.logging import setup_logging
from invest_track.db.session import AsyncSessionLocal, engine
from invest_track.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup / shutdown lifecycle.

    Startup creates the tables, retrying with exponential back-off while the
    database is unreachable.  If every attempt fails the app still starts
    (``/health`` reports ``database: false``).  Shutdown disposes the pool.
    """
    import invest_track.db.base  # noqa: F401  (registers table models)

    max_retries = 5
    retry_delay = 2  # seconds, doubled after each failure

    for attempt in range(1, max_retries + 1):
        try:
            logger.info("Connecting to database (attempt %d/%d)…", attempt, max_retries)
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Database tables ready")
            break
        except Exception as exc:
            if attempt < max_retries:
                logger.warning(
                    "Database connection failed (attempt %d/%d): %s — retrying in %ds…",
                    attempt,
                    max_retries,
                    exc,
                    retry_delay,
                )
                await asyncio.sleep(retry_delay)
                retry_delay *= 2
            else:
                logger.error(
                    "Could not connect to database after %d attempts. Starting in "
                    "DEGRADED mode; database-backed endpoints will fail until it is "
                    "reachable. Last error: %s",
                    max_retries,
                    exc,
                )

    yield

    logger.info("Shutting down — disposing connection pool")
    await engine.dispose()


def create_app() -> FastAPI:
    """Assemble middleware, handlers and routers into a FastAPI application."""
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Personal investment tracking: record transactions, query totals.",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    # Starlette wraps in reverse: the last middleware added runs first.
    # Request ID sits outside timing so timing log lines carry the ID.
    application.add_middleware(GZipMiddleware, minimum_size=500)
    application.add_middleware(RequestTimingMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_exception_handlers(application)
    application.include_router(api_router, prefix=settings.API_PREFIX)
    application.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    return application


async def health_check():
    """Liveness / readiness probe; runs ``SELECT 1`` to confirm DB reachability."""
    db_healthy = True
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_healthy = False

    return {
        "status": "ok" if db_healthy else "degraded",
        "version": __version__,
        "database": db_healthy,
    }


app = create_app()
