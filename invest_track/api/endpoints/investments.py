"""
Investment API endpoints.

Every route acts on the authenticated caller's own records only:
- GET     /investments                  — List, newest first
- POST    /investments                  — Create one
- DELETE  /investments                  — Delete all of the caller's records
- GET     /investments/stats            — Total, average, count, latest date
- GET     /investments/search?name=     — Case-insensitive name search
- GET     /investments/date-range       — Inclusive date filter
- POST    /investments/import           — All-or-nothing batch create
- GET     /investments/{id}             — Retrieve one
- PUT     /investments/{id}             — Update one
- DELETE  /investments/{id}             — Delete one

Fixed paths are declared before ``/{investment_id}`` so they are not
swallowed by the path parameter.
"""

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from invest_track.api.deps import get_current_user
from invest_track.core.exceptions import AppException, NotFoundException, ValidationException
from invest_track.db.session import get_db
from invest_track.models.investment import Investment
from invest_track.models.user import User
from invest_track.repositories.investment_repo import InvestmentRepository
from invest_track.schemas.common import ErrorResponse, ValidationErrorResponse
from invest_track.schemas.investment import (
    ImportResult,
    InvestmentIn,
    InvestmentOut,
    InvestmentStats,
)
from invest_track.services.investment_service import InvestmentService

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Dependency injection ──


def _get_investment_service(db: AsyncSession = Depends(get_db)) -> InvestmentService:
    """Build an InvestmentService wired to the current request's DB session."""
    return InvestmentService(InvestmentRepository(Investment, db))


_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Investment not found"}}
_BAD_INPUT = {400: {"model": ValidationErrorResponse, "description": "Validation error"}}


# ── Collection endpoints ──


@router.get("", response_model=List[InvestmentOut], summary="List my investments")
async def list_investments(
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> List[InvestmentOut]:
    return await service.list_investments(user)


@router.post(
    "",
    response_model=InvestmentOut,
    status_code=201,
    summary="Create an investment",
    description=(
        "When both ``quantity`` and ``purchasePrice`` are given, ``amount`` is "
        "computed as their product and any supplied amount is ignored."
    ),
    responses=_BAD_INPUT,
)
async def create_investment(
    investment: InvestmentIn,
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentOut:
    return await service.create_investment(investment, user)


@router.delete(
    "",
    status_code=204,
    response_class=Response,
    summary="Delete all my investments",
)
async def delete_all_investments(
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> Response:
    await service.delete_all_investments(user)
    return Response(status_code=204)


@router.get("/stats", response_model=InvestmentStats, summary="Aggregate statistics")
async def get_stats(
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentStats:
    return await service.get_stats(user)


@router.get(
    "/search",
    response_model=List[InvestmentOut],
    summary="Search by name",
    responses=_BAD_INPUT,
)
async def search_investments(
    name: str = Query(..., description="Case-insensitive substring of the name"),
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> List[InvestmentOut]:
    return await service.search_by_name(user, name)


@router.get(
    "/date-range",
    response_model=List[InvestmentOut],
    summary="Filter by date range",
    description="Both bounds are inclusive (``YYYY-MM-DD``).",
    responses=_BAD_INPUT,
)
async def investments_by_date_range(
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> List[InvestmentOut]:
    return await service.get_by_date_range(user, start_date, end_date)


@router.post(
    "/import",
    response_model=ImportResult,
    status_code=201,
    summary="Import a batch of investments",
    description=(
        "Every record is validated before any is stored; a single invalid "
        "record rejects the whole batch."
    ),
    responses={
        **_BAD_INPUT,
        500: {"model": ErrorResponse, "description": "Unexpected failure during import"},
    },
)
async def import_investments(
    investments: List[InvestmentIn],
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> ImportResult:
    try:
        imported = await service.import_investments(investments, user)
    except ValidationException as exc:
        raise ValidationException(f"Validation error during import: {exc.message}")
    except AppException:
        raise
    except Exception as exc:
        logger.exception("Unexpected failure importing investments for user %s", user.id)
        raise AppException(
            status_code=500,
            message=f"An unexpected error occurred during import: {exc}",
        )

    count = len(imported)
    return ImportResult(
        message=f"{count} investments imported successfully.",
        imported_count=count,
    )


# ── Single-record endpoints ──


@router.get(
    "/{investment_id}",
    response_model=InvestmentOut,
    summary="Get an investment",
    responses=_NOT_FOUND,
)
async def get_investment(
    investment_id: int,
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentOut:
    investment = await service.get_investment(investment_id, user)
    if investment is None:
        raise NotFoundException("Investment", investment_id)
    return investment


@router.put(
    "/{investment_id}",
    response_model=InvestmentOut,
    summary="Update an investment",
    description=(
        "Overwrites ``name``, ``date`` and ``amount``; ``timestamp`` only when "
        "supplied.  Other fields keep their stored values and ``amount`` is "
        "not recomputed from quantity and price."
    ),
    responses={**_NOT_FOUND, **_BAD_INPUT},
)
async def update_investment(
    investment_id: int,
    investment: InvestmentIn,
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> InvestmentOut:
    updated = await service.update_investment(investment_id, investment, user)
    if updated is None:
        raise NotFoundException("Investment", investment_id)
    return updated


@router.delete(
    "/{investment_id}",
    status_code=204,
    response_class=Response,
    summary="Delete an investment",
    responses=_NOT_FOUND,
)
async def delete_investment(
    investment_id: int,
    user: User = Depends(get_current_user),
    service: InvestmentService = Depends(_get_investment_service),
) -> Response:
    if not await service.delete_investment(investment_id, user):
        raise NotFoundException("Investment", investment_id)
    return Response(status_code=204)
