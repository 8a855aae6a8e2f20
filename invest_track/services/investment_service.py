"""
Investment service — business logic for a user's investment records.

Responsibilities:
- Validation of required fields and amount positivity, reported as
  :class:`ValidationException` naming the rule that failed.
- Ownership: every id-addressed operation goes through
  :meth:`InvestmentService._owned_or_none`, so a record owned by someone
  else is indistinguishable from a missing one.
- Transactions: each mutating operation runs inside exactly one
  :func:`unit_of_work`; a failure anywhere inside rolls the whole call back.
- Statistics are aggregated by the database, never in Python.

Lookups return ``None`` for "not found" and leave the HTTP mapping to the
endpoint layer.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.exc import DataError, IntegrityError

from invest_track.core.exceptions import ValidationException
from invest_track.db.session import unit_of_work
from invest_track.models.investment import Investment
from invest_track.models.user import User
from invest_track.repositories.investment_repo import InvestmentRepository
from invest_track.schemas.investment import InvestmentIn, InvestmentStats

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# NUMERIC(19,4) holds at most 15 integer digits.
MAX_AMOUNT = Decimal("1e15")


class InvestmentService:
    """Encapsulates CRUD, ownership and aggregation rules for :class:`Investment`."""

    def __init__(self, invest_repo: InvestmentRepository):
        self._repo = invest_repo

    # ── Ownership guard ──

    async def _owned_or_none(
        self, investment_id: int, user: Optional[User]
    ) -> Optional[Investment]:
        """
        Load ``investment_id`` if it exists and, when ``user`` is given, is theirs.

        Absence and foreign ownership both yield ``None``.
        """
        investment = await self._repo.get(investment_id)
        if investment is None:
            return None
        if user is not None and investment.user_id != user.id:
            logger.debug(
                "Investment %s requested by non-owner user %s", investment_id, user.id
            )
            return None
        return investment

    # ── Queries ──

    async def list_investments(self, user: User) -> List[Investment]:
        """Return the user's investments, newest ``timestamp`` first."""
        return await self._repo.list_by_user(user.id)

    async def get_investment(self, investment_id: int, user: User) -> Optional[Investment]:
        return await self._owned_or_none(investment_id, user)

    async def search_by_name(self, user: User, name: str) -> List[Investment]:
        """Case-insensitive substring search over the user's investment names."""
        return await self._repo.search_by_name(user.id, name)

    async def get_by_date_range(self, user: User, start: date, end: date) -> List[Investment]:
        """Investments dated within ``[start, end]``; empty when ``start > end``."""
        return await self._repo.list_by_date_range(user.id, start, end)

    async def get_stats(self, user: User) -> InvestmentStats:
        """
        Total, average, count and latest date of the user's investments.

        SUM and AVG over no rows come back as NULL; they are reported as zero.
        The latest date stays ``None``.
        """
        agg = await self._repo.aggregate_for_user(user.id)
        return InvestmentStats(
            total_amount=agg.total_amount if agg.total_amount is not None else ZERO,
            average_amount=agg.average_amount if agg.average_amount is not None else ZERO,
            total_count=agg.total_count,
            latest_date=agg.latest_date,
        )

    # ── Commands ──

    async def create_investment(self, payload: InvestmentIn, user: User) -> Investment:
        """
        Validate and persist a single investment for ``user``.

        ``amount`` is derived from ``quantity * purchase_price`` when both are
        supplied; ``timestamp`` defaults to now.  Raises
        :class:`ValidationException` before anything is written if a rule fails.
        """
        investment = payload.to_entity(user.id)
        _validate_new(investment)

        try:
            async with unit_of_work(self._repo.db):
                created = await self._repo.add(investment)
        except (IntegrityError, DataError) as exc:
            logger.warning(
                "Constraint violation creating investment for user %s: %s",
                user.id,
                exc,
                extra={"user_id": user.id},
            )
            raise ValidationException(
                "Investment data violates a database constraint. Check all fields."
            )

        logger.info(
            "Created investment %s for user %s (%s, amount=%s)",
            created.id,
            user.id,
            created.name,
            created.amount,
            extra={"user_id": user.id, "investment_id": created.id},
        )
        return created

    async def import_investments(
        self, payloads: Sequence[InvestmentIn], user: User
    ) -> List[Investment]:
        """
        All-or-nothing batch creation.

        Every item is converted and validated before the first insert; one
        bad item rejects the whole batch.  All inserts share one unit of work,
        so a storage failure part-way through also leaves nothing behind.
        Returns the persisted investments in input order.
        """
        if not payloads:
            raise ValidationException("No data to import.")

        investments = []
        for index, payload in enumerate(payloads, start=1):
            investment = payload.to_entity(user.id)
            _validate_new(investment, item=f"item {index} ({investment.name or 'unnamed'})")
            investments.append(investment)

        try:
            async with unit_of_work(self._repo.db):
                created = await self._repo.add_all(investments)
        except (IntegrityError, DataError) as exc:
            logger.warning(
                "Constraint violation importing investments for user %s: %s",
                user.id,
                exc,
                extra={"user_id": user.id},
            )
            raise ValidationException(
                "Imported data violates a database constraint. Nothing was imported."
            )

        logger.info(
            "Imported %d investments for user %s",
            len(created),
            user.id,
            extra={"user_id": user.id},
        )
        return created

    async def update_investment(
        self, investment_id: int, payload: InvestmentIn, user: Optional[User] = None
    ) -> Optional[Investment]:
        """
        Overwrite ``date``, ``amount`` and ``name`` of an existing investment.

        ``timestamp`` changes only when the payload supplies one.  Optional
        fields (category, symbol, quantity, price, notes) are left as stored,
        and ``amount`` is taken as given, not re-derived from quantity and
        price.  Returns ``None`` when the record is missing or, with ``user``
        given, owned by someone else.
        """
        _validate_fields(payload.name, payload.date, payload.amount)

        try:
            async with unit_of_work(self._repo.db):
                investment = await self._owned_or_none(investment_id, user)
                if investment is None:
                    return None

                investment.date = payload.date
                investment.amount = payload.amount
                investment.name = payload.name
                if payload.timestamp is not None:
                    investment.timestamp = payload.timestamp
                updated = await self._repo.save(investment)
        except (IntegrityError, DataError) as exc:
            logger.warning(
                "Constraint violation updating investment %s: %s",
                investment_id,
                exc,
                extra={"investment_id": investment_id},
            )
            raise ValidationException(
                "Investment update violates a database constraint. Check all fields."
            )

        logger.info("Updated investment %s", updated.id, extra={"investment_id": updated.id})
        return updated

    async def delete_investment(self, investment_id: int, user: User) -> bool:
        """Delete the record if ``user`` owns it.  ``False`` if absent or foreign."""
        async with unit_of_work(self._repo.db):
            investment = await self._owned_or_none(investment_id, user)
            if investment is None:
                return False
            await self._repo.delete(investment)

        logger.info(
            "Deleted investment %s for user %s",
            investment_id,
            user.id,
            extra={"user_id": user.id, "investment_id": investment_id},
        )
        return True

    async def delete_all_investments(self, user: User) -> int:
        """Delete every investment owned by ``user``.  Idempotent."""
        async with unit_of_work(self._repo.db):
            removed = await self._repo.delete_by_user(user.id)

        logger.info(
            "Deleted all %d investments for user %s",
            removed,
            user.id,
            extra={"user_id": user.id},
        )
        return removed


# ── Validation rules ──


def _validate_fields(
    name: Optional[str], on: Optional[date], amount: Optional[Decimal], item: str = ""
) -> None:
    """Check the three required fields, raising on the first rule broken."""
    suffix = f" for {item}" if item else ""
    if amount is None or amount <= 0:
        raise ValidationException(f"Amount must be greater than 0{suffix}")
    if amount >= MAX_AMOUNT:
        raise ValidationException(f"Amount must be less than {MAX_AMOUNT:,.0f}{suffix}")
    if name is None or not name.strip():
        raise ValidationException(f"Investment name is required{suffix}")
    if on is None:
        raise ValidationException(f"Investment date is required{suffix}")


def _validate_new(investment: Investment, item: str = "") -> None:
    """Rules for a freshly converted entity (amount already derived)."""
    suffix = f" for {item}" if item else ""
    if investment.quantity is not None and investment.quantity < 0:
        raise ValidationException(f"Quantity must not be negative{suffix}")
    if investment.purchase_price is not None and investment.purchase_price < 0:
        raise ValidationException(f"Purchase price must not be negative{suffix}")
    _validate_fields(investment.name, investment.date, investment.amount, item)
