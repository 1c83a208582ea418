"""
Questionnaire HTTP routes — GET /api/responses, POST /api/responses,
                             DELETE /api/responses/{year}

All routes require a bearer token; every query is scoped to the token's user.

POST accepts several years at once: {"responses": {"2023": {...}, "2024": {...}}}.
Every year is validated before anything is written, so a single violation
rejects the whole batch. Derived metrics are always recomputed server-side.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from esgtracker.auth.security import get_current_user_id
from esgtracker.database import get_db
from esgtracker.questionnaire.schemas import (
    ErrorBody,
    ErrorDetail,
    ErrorResponse,
    ESGRawData,
    SaveResponsesRequest,
)
from esgtracker.questionnaire.validator import Violation, validate_responses
from esgtracker.store import delete_year, list_years, upsert_year

router = APIRouter(prefix="/api/responses", tags=["questionnaire"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_validation_error_response(violations: list[Violation]) -> JSONResponse:
    """Standard 422 envelope listing every violation."""
    details = [ErrorDetail(field=v.field, issue=v.issue) for v in violations]
    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="ESG response validation failed",
            details=details,
        )
    )
    return JSONResponse(status_code=422, content=body.model_dump())


MIN_YEAR = 1900
MAX_YEAR = 9999


def _parse_year(raw_year: str) -> int | None:
    """Integer year in MIN_YEAR..MAX_YEAR, else None."""
    try:
        year = int(raw_year)
    except ValueError:
        return None
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    return year


def _collect_years(request_body: SaveResponsesRequest) -> dict[int, ESGRawData]:
    """Keep entries with an in-range integer year key and at least one answer filled in."""
    collected: dict[int, ESGRawData] = {}
    for raw_year, data in request_body.responses.items():
        year = _parse_year(raw_year)
        if year is None:
            logger.warning("Skipping invalid year key: %r", raw_year)
            continue
        if not data.has_data():
            logger.info("Skipping year %d as it contains no data", year)
            continue
        collected[year] = data
    return collected


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("")
async def get_responses(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {responses: {"<year>": {raw fields..., derived fields...}}}
    """
    records = await list_years(db, user_id)
    logger.info("Responses fetched user_id=%s years=%d", user_id, len(records))
    return JSONResponse(
        status_code=200,
        content={"responses": {str(year): rec.to_wire() for year, rec in records.items()}},
    )


@router.post("")
async def save_responses(
    request_body: SaveResponsesRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Validate and upsert one or more years.

    Returns:
        200: {message, count}
        400: body shape invalid, or no year with data left to save
        422: questionnaire rule violations (nothing saved)
    """
    years = _collect_years(request_body)
    if not years:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid ESG data provided to save.",
        )

    violations = validate_responses(years)
    if violations:
        return _make_validation_error_response(violations)

    for year in sorted(years):
        await upsert_year(db, user_id, year, years[year])

    logger.info("Responses saved user_id=%s count=%d", user_id, len(years))
    return JSONResponse(
        status_code=200,
        content={"message": "ESG responses saved/updated successfully.", "count": len(years)},
    )


@router.delete("/{year}")
async def delete_response(
    year: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """
    Returns:
        200: {message}
        400: year is not an integer in MIN_YEAR..MAX_YEAR
        404: nothing stored for this year
    """
    target_year = _parse_year(year)
    if target_year is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid year parameter.")

    if not await delete_year(db, user_id, target_year):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No ESG data found for year {target_year} for this user.",
        )

    return JSONResponse(
        status_code=200,
        content={"message": f"ESG data for year {target_year} deleted successfully."},
    )
