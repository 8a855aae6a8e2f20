"""
Unit tests for InvestmentService — business logic layer.

All repository calls are mocked.  Tests cover:
- ownership: foreign records behave exactly like missing ones
- create: amount derivation, timestamp default, validation rules,
  IntegrityError / DataError translation, amounts outside the stored range
- import: empty batch, all-or-nothing validation, single unit of work
- update: overwritten fields, no re-derivation, timestamp preservation
- delete / delete-all, stats zero-filling
- log records carry user and investment ids
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import DataError, IntegrityError

from invest_track.core.exceptions import ValidationException
from invest_track.repositories.investment_repo import InvestmentAggregates
from invest_track.schemas.investment import InvestmentIn
from invest_track.services.investment_service import InvestmentService

from .conftest import INVESTMENT_ID, OTHER_USER_ID, USER_ID, make_investment

# ────────────────────────────────────────────────────────────────────────────
# Fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def invest_repo():
    repo = AsyncMock()
    repo.db = AsyncMock()
    return repo


@pytest.fixture()
def service(invest_repo):
    return InvestmentService(invest_repo)


def _echo(entity):
    return entity


def _echo_all(entities):
    return list(entities)


# ────────────────────────────────────────────────────────────────────────────
# Queries and ownership
# ────────────────────────────────────────────────────────────────────────────


class TestQueries:
    """Tests for the read-only operations."""

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_user(self, service, invest_repo, user):
        invest_repo.list_by_user.return_value = [make_investment()]

        result = await service.list_investments(user)

        assert len(result) == 1
        invest_repo.list_by_user.assert_awaited_once_with(USER_ID)

    @pytest.mark.asyncio
    async def test_get_own_investment(self, service, invest_repo, user):
        investment = make_investment()
        invest_repo.get.return_value = investment

        assert await service.get_investment(INVESTMENT_ID, user) is investment

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, service, invest_repo, user):
        invest_repo.get.return_value = None

        assert await service.get_investment(999, user) is None

    @pytest.mark.asyncio
    async def test_get_foreign_returns_none(self, service, invest_repo, user):
        invest_repo.get.return_value = make_investment(user_id=OTHER_USER_ID)

        assert await service.get_investment(INVESTMENT_ID, user) is None

    @pytest.mark.asyncio
    async def test_search_passes_fragment(self, service, invest_repo, user):
        invest_repo.search_by_name.return_value = []

        await service.search_by_name(user, "apple")

        invest_repo.search_by_name.assert_awaited_once_with(USER_ID, "apple")

    @pytest.mark.asyncio
    async def test_date_range_passes_bounds(self, service, invest_repo, user):
        invest_repo.list_by_date_range.return_value = []
        start, end = date(2024, 1, 1), date(2024, 1, 31)

        await service.get_by_date_range(user, start, end)

        invest_repo.list_by_date_range.assert_awaited_once_with(USER_ID, start, end)


class TestGetStats:
    """Tests for InvestmentService.get_stats."""

    @pytest.mark.asyncio
    async def test_maps_aggregates(self, service, invest_repo, user):
        invest_repo.aggregate_for_user.return_value = InvestmentAggregates(
            Decimal("3000.00"), Decimal("1500.00"), 2, date(2024, 2, 1)
        )

        stats = await service.get_stats(user)

        assert stats.total_amount == Decimal("3000.00")
        assert stats.average_amount == Decimal("1500.00")
        assert stats.total_count == 2
        assert stats.latest_date == date(2024, 2, 1)

    @pytest.mark.asyncio
    async def test_empty_user_gets_zeroes(self, service, invest_repo, user):
        invest_repo.aggregate_for_user.return_value = InvestmentAggregates(None, None, 0, None)

        stats = await service.get_stats(user)

        assert stats.total_amount == Decimal("0")
        assert stats.average_amount == Decimal("0")
        assert stats.total_count == 0
        assert stats.latest_date is None


# ────────────────────────────────────────────────────────────────────────────
# create_investment
# ────────────────────────────────────────────────────────────────────────────


class TestCreateInvestment:
    """Tests for InvestmentService.create_investment."""

    @pytest.fixture(autouse=True)
    def _echo_add(self, invest_repo):
        invest_repo.add.side_effect = _echo

    @pytest.mark.asyncio
    async def test_derives_amount_from_quantity_and_price(self, service, user):
        payload = InvestmentIn(
            name="Apple",
            date=date(2024, 1, 10),
            quantity=Decimal("10"),
            purchasePrice=Decimal("150.00"),
        )

        created = await service.create_investment(payload, user)

        assert created.amount == Decimal("1500.00")
        assert created.user_id == USER_ID

    @pytest.mark.asyncio
    async def test_supplied_amount_ignored_when_derivable(self, service, user):
        payload = InvestmentIn(
            name="Apple",
            date=date(2024, 1, 10),
            amount=Decimal("1"),
            quantity=Decimal("2"),
            purchase_price=Decimal("3"),
        )

        created = await service.create_investment(payload, user)

        assert created.amount == Decimal("6")

    @pytest.mark.asyncio
    async def test_defaults_timestamp(self, service, user):
        payload = InvestmentIn(name="Bond", date=date(2024, 1, 10), amount=Decimal("100"))

        created = await service.create_investment(payload, user)

        assert isinstance(created.timestamp, datetime)

    @pytest.mark.asyncio
    async def test_commits_once(self, service, invest_repo, user):
        payload = InvestmentIn(name="Bond", date=date(2024, 1, 10), amount=Decimal("100"))

        await service.create_investment(payload, user)

        invest_repo.add.assert_awaited_once()
        invest_repo.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields, message",
        [
            ({"name": "A", "date": date(2024, 1, 1), "amount": Decimal("0")}, "Amount must be greater than 0"),
            ({"name": "A", "date": date(2024, 1, 1), "amount": Decimal("-5")}, "Amount must be greater than 0"),
            ({"name": "A", "date": date(2024, 1, 1)}, "Amount must be greater than 0"),
            ({"name": "  ", "date": date(2024, 1, 1), "amount": Decimal("1")}, "Investment name is required"),
            ({"date": date(2024, 1, 1), "amount": Decimal("1")}, "Investment name is required"),
            ({"name": "A", "amount": Decimal("1")}, "Investment date is required"),
        ],
    )
    async def test_rejects_invalid_input(self, service, invest_repo, user, fields, message):
        with pytest.raises(ValidationException) as exc_info:
            await service.create_investment(InvestmentIn(**fields), user)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == message
        invest_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_quantity_derives_zero_amount(self, service, invest_repo, user):
        payload = InvestmentIn(
            name="A", date=date(2024, 1, 1), quantity=Decimal("0"), purchase_price=Decimal("9")
        )

        with pytest.raises(ValidationException, match="Amount must be greater than 0"):
            await service.create_investment(payload, user)
        invest_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sub_cent_product_rejected_before_storage(self, service, invest_repo, user):
        payload = InvestmentIn(
            name="Dust",
            date=date(2024, 1, 1),
            quantity=Decimal("0.00001"),
            purchase_price=Decimal("1"),
        )

        with pytest.raises(ValidationException, match="Amount must be greater than 0"):
            await service.create_investment(payload, user)
        invest_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_product_wider_than_column_rejected(self, service, invest_repo, user):
        payload = InvestmentIn(
            name="Huge",
            date=date(2024, 1, 1),
            quantity=Decimal("99999999999"),
            purchase_price=Decimal("99999999999"),
        )

        with pytest.raises(ValidationException, match="Amount must be less than"):
            await service.create_investment(payload, user)
        invest_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_data_error_becomes_validation(self, service, invest_repo, user):
        invest_repo.add.side_effect = DataError("INSERT", {}, Exception("out of range"))
        payload = InvestmentIn(name="Bond", date=date(2024, 1, 10), amount=Decimal("100"))

        with pytest.raises(ValidationException):
            await service.create_investment(payload, user)
        invest_repo.db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_negative_quantity_named(self, service, user):
        payload = InvestmentIn(
            name="A", date=date(2024, 1, 1), quantity=Decimal("-1"), purchase_price=Decimal("9")
        )

        with pytest.raises(ValidationException, match="Quantity must not be negative"):
            await service.create_investment(payload, user)

    @pytest.mark.asyncio
    async def test_integrity_error_becomes_validation(self, service, invest_repo, user):
        invest_repo.add.side_effect = IntegrityError("INSERT", {}, Exception("check failed"))
        payload = InvestmentIn(name="Bond", date=date(2024, 1, 10), amount=Decimal("100"))

        with pytest.raises(ValidationException):
            await service.create_investment(payload, user)
        invest_repo.db.rollback.assert_awaited_once()
        invest_repo.db.commit.assert_not_awaited()


# ────────────────────────────────────────────────────────────────────────────
# import_investments
# ────────────────────────────────────────────────────────────────────────────


class TestImportInvestments:
    """Tests for InvestmentService.import_investments."""

    @pytest.fixture(autouse=True)
    def _echo_add_all(self, invest_repo):
        invest_repo.add_all.side_effect = _echo_all

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, service, invest_repo, user):
        with pytest.raises(ValidationException, match="No data to import."):
            await service.import_investments([], user)
        invest_repo.add_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_imports_in_order_with_derivation(self, service, invest_repo, user):
        batch = [
            InvestmentIn(name="First", date=date(2024, 1, 1), amount=Decimal("10")),
            InvestmentIn(
                name="Second",
                date=date(2024, 1, 2),
                quantity=Decimal("4"),
                purchase_price=Decimal("2.5"),
            ),
        ]

        created = await service.import_investments(batch, user)

        assert [i.name for i in created] == ["First", "Second"]
        assert created[1].amount == Decimal("10.0")
        assert all(i.user_id == USER_ID for i in created)
        invest_repo.add_all.assert_awaited_once()
        invest_repo.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_one_bad_item_rejects_batch(self, service, invest_repo, user):
        batch = [
            InvestmentIn(name="Good", date=date(2024, 1, 1), amount=Decimal("10")),
            InvestmentIn(name="Bad", date=date(2024, 1, 2), amount=Decimal("0")),
        ]

        with pytest.raises(ValidationException) as exc_info:
            await service.import_investments(batch, user)

        assert "item 2 (Bad)" in exc_info.value.message
        invest_repo.add_all.assert_not_awaited()
        invest_repo.db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unnamed_item_labelled(self, service, user):
        batch = [InvestmentIn(date=date(2024, 1, 2), amount=Decimal("5"))]

        with pytest.raises(ValidationException, match=r"item 1 \(unnamed\)"):
            await service.import_investments(batch, user)

    @pytest.mark.asyncio
    async def test_storage_failure_rolls_back(self, service, invest_repo, user):
        invest_repo.add_all.side_effect = IntegrityError("INSERT", {}, Exception("boom"))
        batch = [InvestmentIn(name="A", date=date(2024, 1, 1), amount=Decimal("1"))]

        with pytest.raises(ValidationException, match="Nothing was imported"):
            await service.import_investments(batch, user)
        invest_repo.db.rollback.assert_awaited_once()


# ────────────────────────────────────────────────────────────────────────────
# update_investment
# ────────────────────────────────────────────────────────────────────────────


class TestUpdateInvestment:
    """Tests for InvestmentService.update_investment."""

    @pytest.fixture(autouse=True)
    def _echo_save(self, invest_repo):
        invest_repo.save.side_effect = _echo

    @pytest.mark.asyncio
    async def test_overwrites_core_fields(self, service, invest_repo, user):
        stored = make_investment(category="Stocks", symbol="AAPL")
        invest_repo.get.return_value = stored
        payload = InvestmentIn(name="Apple Inc.", date=date(2024, 2, 1), amount=Decimal("2000"))

        updated = await service.update_investment(INVESTMENT_ID, payload, user)

        assert updated.name == "Apple Inc."
        assert updated.date == date(2024, 2, 1)
        assert updated.amount == Decimal("2000")
        assert updated.category == "Stocks"
        assert updated.symbol == "AAPL"
        invest_repo.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_does_not_rederive_amount(self, service, invest_repo, user):
        invest_repo.get.return_value = make_investment()
        payload = InvestmentIn(
            name="Apple",
            date=date(2024, 1, 10),
            amount=Decimal("99"),
            quantity=Decimal("10"),
            purchase_price=Decimal("150"),
        )

        updated = await service.update_investment(INVESTMENT_ID, payload, user)

        assert updated.amount == Decimal("99")

    @pytest.mark.asyncio
    async def test_keeps_timestamp_when_absent(self, service, invest_repo, user):
        original = datetime(2024, 1, 10, 9, 30, 0)
        invest_repo.get.return_value = make_investment(timestamp=original)
        payload = InvestmentIn(name="Apple", date=date(2024, 1, 10), amount=Decimal("1"))

        updated = await service.update_investment(INVESTMENT_ID, payload, user)

        assert updated.timestamp == original

    @pytest.mark.asyncio
    async def test_replaces_timestamp_when_given(self, service, invest_repo, user):
        invest_repo.get.return_value = make_investment()
        new_ts = datetime(2025, 5, 5, 5, 5, 5)
        payload = InvestmentIn(
            name="Apple", date=date(2024, 1, 10), amount=Decimal("1"), timestamp=new_ts
        )

        updated = await service.update_investment(INVESTMENT_ID, payload, user)

        assert updated.timestamp == new_ts

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, service, invest_repo, user):
        invest_repo.get.return_value = None
        payload = InvestmentIn(name="A", date=date(2024, 1, 10), amount=Decimal("1"))

        assert await service.update_investment(999, payload, user) is None
        invest_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_foreign_returns_none_and_is_untouched(self, service, invest_repo, user):
        stored = make_investment(user_id=OTHER_USER_ID, name="Theirs")
        invest_repo.get.return_value = stored
        payload = InvestmentIn(name="Mine now", date=date(2024, 1, 10), amount=Decimal("1"))

        assert await service.update_investment(INVESTMENT_ID, payload, user) is None
        assert stored.name == "Theirs"
        invest_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_payload_rejected_before_lookup(self, service, invest_repo, user):
        payload = InvestmentIn(name="A", date=date(2024, 1, 10), amount=Decimal("0"))

        with pytest.raises(ValidationException, match="Amount must be greater than 0"):
            await service.update_investment(INVESTMENT_ID, payload, user)
        invest_repo.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_user_skips_ownership(self, service, invest_repo):
        invest_repo.get.return_value = make_investment(user_id=OTHER_USER_ID)
        payload = InvestmentIn(name="A", date=date(2024, 1, 10), amount=Decimal("1"))

        updated = await service.update_investment(INVESTMENT_ID, payload)

        assert updated is not None


# ────────────────────────────────────────────────────────────────────────────
# delete_investment / delete_all_investments
# ────────────────────────────────────────────────────────────────────────────


class TestDeleteInvestments:
    """Tests for single and bulk deletion."""

    @pytest.mark.asyncio
    async def test_delete_own(self, service, invest_repo, user):
        investment = make_investment()
        invest_repo.get.return_value = investment

        assert await service.delete_investment(INVESTMENT_ID, user) is True
        invest_repo.delete.assert_awaited_once_with(investment)
        invest_repo.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_missing(self, service, invest_repo, user):
        invest_repo.get.return_value = None

        assert await service.delete_investment(999, user) is False
        invest_repo.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_foreign(self, service, invest_repo, user):
        invest_repo.get.return_value = make_investment(user_id=OTHER_USER_ID)

        assert await service.delete_investment(INVESTMENT_ID, user) is False
        invest_repo.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_all_returns_count(self, service, invest_repo, user):
        invest_repo.delete_by_user.return_value = 3

        assert await service.delete_all_investments(user) == 3
        invest_repo.delete_by_user.assert_awaited_once_with(USER_ID)

    @pytest.mark.asyncio
    async def test_delete_all_on_empty_is_noop(self, service, invest_repo, user):
        invest_repo.delete_by_user.return_value = 0

        assert await service.delete_all_investments(user) == 0


class TestLogContext:
    """Service log lines carry the ids the JSON formatter promotes."""

    @pytest.mark.asyncio
    async def test_create_logs_user_and_investment(self, service, invest_repo, user, caplog):
        created = make_investment()
        invest_repo.add.return_value = created
        payload = InvestmentIn(name="Apple", date=date(2024, 1, 10), amount=Decimal("1500"))

        with caplog.at_level(logging.INFO, logger="invest_track.services.investment_service"):
            await service.create_investment(payload, user)

        record = next(r for r in caplog.records if r.getMessage().startswith("Created"))
        assert record.user_id == USER_ID
        assert record.investment_id == INVESTMENT_ID

    @pytest.mark.asyncio
    async def test_delete_all_logs_user(self, service, invest_repo, user, caplog):
        invest_repo.delete_by_user.return_value = 2

        with caplog.at_level(logging.INFO, logger="invest_track.services.investment_service"):
            await service.delete_all_investments(user)

        assert caplog.records[-1].user_id == USER_ID
