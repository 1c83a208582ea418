"""
Reports HTTP routes — GET /api/reports/summary
                      GET /api/reports/charts/{metric}.png
                      GET /api/reports/export.pdf?charts=true|false

Read-only views over the caller's stored years. Chart and PDF rendering are
CPU-bound and run in the threadpool.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from esgtracker.auth.security import get_current_user_id
from esgtracker.database import get_db
from esgtracker.reports.charts import render_metric_chart
from esgtracker.reports.pdf_generator import generate_esg_report
from esgtracker.reports.summary import METRICS, build_summary
from esgtracker.store import get_user, list_years

router = APIRouter(prefix="/api/reports", tags=["reports"])
logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No ESG data to export."


@router.get("/summary")
async def get_summary(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Dashboard payload. An account with no years gets an empty summary, not 404."""
    records = await list_years(db, user_id)
    summary = build_summary(records)
    return JSONResponse(status_code=200, content=summary.model_dump(by_alias=True))


@router.get("/charts/{metric}.png")
async def get_chart(
    metric: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """
    Returns:
        200: image/png trend chart
        404: metric is not one of carbonIntensity, renewableElectricityRatio,
             diversityRatio, communitySpendRatio
    """
    if metric not in METRICS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown metric '{metric}'")

    records = await list_years(db, user_id)
    png = await run_in_threadpool(render_metric_chart, records, metric)
    return Response(content=png, media_type="image/png")


@router.get("/export.pdf")
async def export_pdf(
    charts: bool = Query(default=False),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> StreamingResponse:
    """Download the ESG Summary Report. 404 when nothing has been saved yet."""
    records = await list_years(db, user_id)
    if not records:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_DATA_MESSAGE)

    user = await get_user(db, user_id)
    user_name = user.name if user is not None else None

    buffer = await run_in_threadpool(generate_esg_report, records, user_name, charts)
    filename = "ESG_Summary_Report.pdf"
    logger.info("PDF exported user_id=%s years=%d", user_id, len(records))
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
