"""
Shared pytest fixtures.

All tests run with ``USE_SQLITE=true``.  Unit tests use mocked sessions and
repositories; the storage tests get a fresh in-memory SQLite database per
test so they stay fast, deterministic and isolated.
"""

import os

os.environ.setdefault("USE_SQLITE", "true")

from datetime import date, datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import invest_track.db.base  # noqa: E402,F401
from invest_track.db.session import build_engine, build_sessionmaker  # noqa: E402
from invest_track.models.investment import Investment  # noqa: E402
from invest_track.models.user import User  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers — create domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

USER_ID = 1
OTHER_USER_ID = 2
INVESTMENT_ID = 10


def make_user(
    *,
    id: int = USER_ID,
    username: str = "alice",
    password_hash: str = "not-a-real-hash",
) -> User:
    """Create a User domain object with sensible test defaults."""
    return User(
        id=id,
        username=username,
        password_hash=password_hash,
        created_at=datetime.now(timezone.utc),
    )


def make_investment(
    *,
    id: int = INVESTMENT_ID,
    user_id: int = USER_ID,
    name: str = "Apple",
    on: date = date(2024, 1, 10),
    amount: Decimal = Decimal("1500.00"),
    timestamp: Optional[datetime] = None,
    quantity: Optional[Decimal] = None,
    purchase_price: Optional[Decimal] = None,
    category: Optional[str] = None,
    symbol: Optional[str] = None,
) -> Investment:
    """Create an Investment domain object with sensible test defaults."""
    return Investment(
        id=id,
        user_id=user_id,
        name=name,
        date=on,
        amount=amount,
        timestamp=timestamp or datetime(2024, 1, 10, 9, 30, 0),
        quantity=quantity,
        purchase_price=purchase_price,
        category=category,
        symbol=symbol,
    )


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/flush/commit/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture()
def user():
    return make_user()


@pytest.fixture()
def other_user():
    return make_user(id=OTHER_USER_ID, username="bob")


@pytest_asyncio.fixture()
async def sqlite_engine():
    """A private in-memory SQLite database with every table created."""
    engine = build_engine("sqlite+aiosqlite://", sqlite=True)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(sqlite_engine):
    return build_sessionmaker(sqlite_engine)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
