"""
Pydantic schemas for Investment request / response serialisation.

The wire format is camelCase (``purchasePrice``, ``totalAmount``); request
bodies also accept snake_case.  Dates are ``YYYY-MM-DD``, timestamps
``YYYY-MM-DDTHH:MM:SS``, and every money / quantity field is a ``Decimal``
(serialised as a JSON string, never a float).
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)
from pydantic.alias_generators import to_camel

from invest_track.models.investment import Investment, utcnow

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Scale of the stored ``amount`` column (NUMERIC(19,4)).
AMOUNT_QUANTUM = Decimal("0.0001")

# Responses: emitted in camelCase, populated from ORM attributes or by field
# name (FastAPI re-validates the by-alias dump of returned models).
_camel_out = ConfigDict(
    from_attributes=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class InvestmentIn(BaseModel):
    """
    Request body for create, update and each element of an import batch.

    Every field is optional here: required-field and positivity rules are
    enforced by the service so it can name the exact rule that failed, and
    so ``amount`` may be omitted when ``quantity`` and ``purchasePrice``
    are given.  An ``id`` in the body is accepted and ignored.
    """

    id: Optional[int] = Field(default=None, description="Ignored on input")
    name: Optional[str] = Field(default=None, max_length=255, examples=["Apple Inc."])
    date: Optional[dt.date] = Field(default=None, examples=["2024-01-10"])
    amount: Optional[Decimal] = Field(
        default=None, max_digits=19, decimal_places=4, examples=["1500.00"]
    )
    timestamp: Optional[dt.datetime] = Field(
        default=None,
        description="Record instant; defaults to now on create / import",
        examples=["2024-01-10T09:30:00"],
    )
    category: Optional[str] = Field(default=None, max_length=100, examples=["Stocks"])
    symbol: Optional[str] = Field(default=None, max_length=32, examples=["AAPL"])
    quantity: Optional[Decimal] = Field(
        default=None, max_digits=19, decimal_places=8, examples=["10"]
    )
    purchase_price: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("purchasePrice", "purchase_price"),
        max_digits=19,
        decimal_places=8,
        examples=["150.00"],
    )
    notes: Optional[str] = Field(default=None, max_length=1024)

    def derived_amount(self) -> Optional[Decimal]:
        """
        ``quantity * purchase_price`` when both are present, else ``amount``.

        The product is rounded half-up to the stored scale of four decimals,
        so the positivity rule sees the value that will actually be saved.
        """
        if self.quantity is not None and self.purchase_price is not None:
            product = self.quantity * self.purchase_price
            return product.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
        return self.amount

    def to_entity(self, user_id: int) -> Investment:
        """
        Convert to an unsaved :class:`Investment` owned by ``user_id``.

        This is the only place the derived amount is applied, so create and
        import derive it while update (which mutates a loaded entity) does not.
        """
        return Investment(
            user_id=user_id,
            name=self.name,
            date=self.date,
            amount=self.derived_amount(),
            timestamp=self.timestamp or utcnow(),
            category=self.category,
            symbol=self.symbol,
            quantity=self.quantity,
            purchase_price=self.purchase_price,
            notes=self.notes,
        )


class InvestmentOut(BaseModel):
    """Schema returned by every endpoint that yields investment records."""

    id: int
    name: str
    date: dt.date
    amount: Decimal
    timestamp: dt.datetime
    category: Optional[str] = None
    symbol: Optional[str] = None
    quantity: Optional[Decimal] = None
    purchase_price: Optional[Decimal] = None
    notes: Optional[str] = None

    model_config = _camel_out

    @field_serializer("timestamp")
    def serialize_timestamp(self, v: dt.datetime) -> str:
        return v.strftime(TIMESTAMP_FORMAT)


class InvestmentStats(BaseModel):
    """
    Aggregate view of a user's investments.

    ``total_amount`` and ``average_amount`` are zero for a user with no
    records; ``latest_date`` is ``None`` in that case.
    """

    total_amount: Decimal = Field(..., examples=["12500.00"])
    average_amount: Decimal = Field(..., examples=["2500.00"])
    total_count: int = Field(..., examples=[5])
    latest_date: Optional[dt.date] = Field(default=None, examples=["2024-06-30"])

    model_config = _camel_out


class ImportResult(BaseModel):
    """Response body for ``POST /investments/import``."""

    message: str = Field(..., examples=["3 investments imported successfully."])
    imported_count: int = Field(..., examples=[3])

    model_config = _camel_out
