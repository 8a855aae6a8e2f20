"""
Database session management.

Provides the async SQLAlchemy engine, the per-request session dependency and
``unit_of_work()``, the explicit transaction scope every mutating service
operation runs inside.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from invest_track.core.config import settings

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    # SQLite ignores FK constraints (and ON DELETE CASCADE) unless asked.
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, *, sqlite: bool, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for ``url``.

    SQLite engines use ``StaticPool`` so every connection shares the same
    in-memory database, and get FK enforcement switched on.
    """
    if sqlite:
        sqlite_engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        # aiosqlite wraps a sync connection; only the sync engine fires "connect".
        event.listen(sqlite_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: attribute access after commit must not trigger
    # a lazy load, which async sessions cannot perform implicitly.
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, sqlite=settings.USE_SQLITE, echo=settings.DEBUG)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.

    The session is closed when the request finishes; anything not committed
    by a unit of work is rolled back at that point.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    One transaction around a block of repository calls.

    Commits when the block exits normally.  Any exception (a validation
    error raised mid-block, an ``IntegrityError`` on flush, a lost
    connection) rolls the whole block back and is re-raised unchanged.
    """
    try:
        yield session
        await session.commit()
    except OperationalError:
        await session.rollback()
        logger.error("OperationalError inside unit of work — rolled back")
        raise
    except Exception:
        await session.rollback()
        raise
