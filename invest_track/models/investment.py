"""
Investment domain model.

A single user-asserted investment transaction.  ``date`` is the
user-meaningful transaction date; ``timestamp`` is when the record was made
(or the instant an import wants to preserve) and drives list ordering.
"""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, Index
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from invest_track.models.user import User


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Investment(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for investments.

    Design notes:
    - ``(user_id, timestamp)`` covers the list query
      (``WHERE user_id = ? ORDER BY timestamp DESC``); ``(user_id, date)``
      covers date-range filtering and ``MAX(date)``.
    - ``amount`` is NUMERIC(19,4); ``quantity`` and ``purchase_price`` keep
      8 fractional digits so fractional crypto units survive a round trip.
    - ``user_id`` cascades on delete: removing a user removes their records.
    """

    __tablename__ = "investments"  # type: ignore[assignment]

    __table_args__ = (
        Index("ix_investments_user_timestamp", "user_id", "timestamp"),
        Index("ix_investments_user_date", "user_id", "date"),
        CheckConstraint("amount > 0", name="ck_investments_amount_positive"),
        CheckConstraint("length(name) > 0", name="ck_investments_name_not_empty"),
        CheckConstraint(
            "quantity IS NULL OR quantity >= 0", name="ck_investments_quantity_non_negative"
        ),
        CheckConstraint(
            "purchase_price IS NULL OR purchase_price >= 0",
            name="ck_investments_purchase_price_non_negative",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        foreign_key="users.id",
        index=True,
        nullable=False,
        ondelete="CASCADE",
    )
    name: str = Field(max_length=255)
    date: dt.date
    amount: Decimal = Field(max_digits=19, decimal_places=4)
    category: Optional[str] = Field(default=None, max_length=100)
    symbol: Optional[str] = Field(default=None, max_length=32)
    quantity: Optional[Decimal] = Field(default=None, max_digits=19, decimal_places=8)
    purchase_price: Optional[Decimal] = Field(default=None, max_digits=19, decimal_places=8)
    notes: Optional[str] = Field(default=None, max_length=1024)
    timestamp: dt.datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    user: Optional["User"] = Relationship(back_populates="investments")

    def __repr__(self) -> str:
        return (
            f"<Investment id={self.id} user={self.user_id} "
            f"name='{self.name}' amount={self.amount}>"
        )
