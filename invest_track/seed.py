"""
Seed script — creates a demo account with sample investments.

Usage (against the configured PostgreSQL database):
    python -m invest_track.seed

In SQLite mode the database lives in memory and dies with the process, so
there the seed is only useful when called in-process, e.g. from tests.

Idempotent: does nothing if the demo user already exists.  Data goes through
the same services the API uses, so every business rule applies.
"""

import asyncio
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

import invest_track.db.base  # noqa: F401
from invest_track.db.session import AsyncSessionLocal, engine
from invest_track.models.investment import Investment
from invest_track.models.user import User
from invest_track.repositories.investment_repo import InvestmentRepository
from invest_track.repositories.user_repo import UserRepository
from invest_track.schemas.investment import InvestmentIn
from invest_track.services.auth_service import AuthService
from invest_track.services.investment_service import InvestmentService

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo-password"

SAMPLE_INVESTMENTS = [
    InvestmentIn(
        name="Apple Inc.",
        symbol="AAPL",
        category="Stocks",
        date=date(2024, 1, 10),
        quantity=Decimal("10"),
        purchase_price=Decimal("150.00"),
        timestamp=datetime(2024, 1, 10, 9, 30, 0),
    ),
    InvestmentIn(
        name="Bitcoin",
        symbol="BTC",
        category="Crypto",
        date=date(2024, 3, 2),
        quantity=Decimal("0.01250000"),
        purchase_price=Decimal("62000.00"),
        timestamp=datetime(2024, 3, 2, 18, 5, 0),
    ),
    InvestmentIn(
        name="Global Index Fund",
        category="Funds",
        date=date(2024, 4, 15),
        amount=Decimal("2500.00"),
        notes="Monthly savings plan",
        timestamp=datetime(2024, 4, 15, 8, 0, 0),
    ),
    InvestmentIn(
        name="Government Bond 2030",
        category="Bonds",
        date=date(2024, 6, 30),
        amount=Decimal("1000.00"),
        timestamp=datetime(2024, 6, 30, 12, 0, 0),
    ),
]


async def seed(
    db_engine: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> int:
    """
    Create tables and the demo account if missing.

    Returns the number of investments inserted (0 when already seeded).
    """
    db_engine = db_engine or engine
    session_factory = session_factory or AsyncSessionLocal

    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async with session_factory() as session:
        users = UserRepository(User, session)
        if await users.get_by_username(DEMO_USERNAME) is not None:
            logger.info("Demo user already exists — skipping seed.")
            return 0

        user = await AuthService(users).register(DEMO_USERNAME, DEMO_PASSWORD)
        service = InvestmentService(InvestmentRepository(Investment, session))
        created = await service.import_investments(SAMPLE_INVESTMENTS, user)

    logger.info("Seeded user '%s' with %d investments", DEMO_USERNAME, len(created))
    return len(created)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    asyncio.run(seed())
