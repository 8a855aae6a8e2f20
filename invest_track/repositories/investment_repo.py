"""
Investment repository — data-access layer for the ``investments`` table.

Every query here is scoped to a single owner (``user_id``).  Aggregates are
computed by the database in one round trip rather than by loading rows.
"""

from datetime import date
from decimal import Decimal
from typing import List, NamedTuple, Optional

from sqlalchemy import Date, Numeric, delete, func
from sqlalchemy.future import select

from invest_track.models.investment import Investment
from invest_track.repositories.base import BaseRepository


class InvestmentAggregates(NamedTuple):
    """Raw aggregate row; ``SUM``/``AVG``/``MAX`` are ``None`` for an empty set."""

    total_amount: Optional[Decimal]
    average_amount: Optional[Decimal]
    total_count: int
    latest_date: Optional[date]


class InvestmentRepository(BaseRepository[Investment]):
    """Concrete repository for :class:`Investment` entities."""

    async def list_by_user(self, user_id: int) -> List[Investment]:
        """
        Return all of a user's investments, newest ``timestamp`` first.

        ``id`` breaks ties so records imported with identical timestamps keep
        a stable order.
        """
        stmt = (
            select(self.model)
            .where(self.model.user_id == user_id)
            .order_by(self.model.timestamp.desc(), self.model.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def search_by_name(self, user_id: int, fragment: str) -> List[Investment]:
        """
        Case-insensitive substring match on ``name``.

        ``%`` and ``_`` in ``fragment`` are escaped and match literally.
        """
        stmt = (
            select(self.model)
            .where(
                self.model.user_id == user_id,
                self.model.name.icontains(fragment, autoescape=True),
            )
            .order_by(self.model.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_date_range(
        self, user_id: int, start: date, end: date
    ) -> List[Investment]:
        """Investments whose ``date`` lies in ``[start, end]`` (both inclusive)."""
        stmt = (
            select(self.model)
            .where(
                self.model.user_id == user_id,
                self.model.date.between(start, end),
            )
            .order_by(self.model.date, self.model.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def aggregate_for_user(self, user_id: int) -> InvestmentAggregates:
        """Compute ``SUM(amount)``, ``AVG(amount)``, ``COUNT(*)`` and ``MAX(date)``."""
        stmt = select(
            func.sum(self.model.amount, type_=Numeric(19, 4)),
            func.avg(self.model.amount, type_=Numeric(19, 4)),
            func.count(self.model.id),
            func.max(self.model.date, type_=Date),
        ).where(self.model.user_id == user_id)
        result = await self.db.execute(stmt)
        total, average, count, latest = result.one()
        return InvestmentAggregates(total, average, count or 0, latest)

    async def delete_by_user(self, user_id: int) -> int:
        """Bulk-delete every investment owned by ``user_id``; returns the row count."""
        stmt = delete(self.model).where(self.model.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.rowcount or 0
