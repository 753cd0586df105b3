"""
Scheduled batch triggers.

An external scheduler calls each endpoint once a day with the service-role
key. The response carries a summary; 200 when every company succeeded,
207 when some failed, 500 when the run could not start.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, require_service_role
from app.schemas.batch import (AbsenceRunSummary, BatchResponse,
                               HealthResponse, PayrollRunSummary)
from app.services.attendance_tagger import mark_absences
from app.services.context import RunContext
from app.services.payroll import generate_payroll

router = APIRouter(tags=["batch"])
logger = logging.getLogger(__name__)


def _summary_response(summary: AbsenceRunSummary | PayrollRunSummary) -> JSONResponse:
    body = BatchResponse(success=summary.errors == 0, message=summary.message, summary=summary)
    return JSONResponse(
        status_code=207 if summary.errors else 200,
        content=body.model_dump(mode="json"),
    )


@router.post(
    "/functions/update-absent",
    response_model=BatchResponse,
    responses={207: {"model": BatchResponse}},
)
async def update_absent(
    db: AsyncSession = Depends(get_db),
    _service: None = Depends(require_service_role),
) -> JSONResponse:
    """Mark today's absences / leaves for every live-absence company."""
    summary = await mark_absences(db, RunContext.current())
    return _summary_response(summary)


@router.post(
    "/functions/generate-payroll",
    response_model=BatchResponse,
    responses={207: {"model": BatchResponse}},
)
async def run_payroll_generation(
    db: AsyncSession = Depends(get_db),
    _service: None = Depends(require_service_role),
) -> JSONResponse:
    """Generate payroll for companies whose generation day is today."""
    summary = await generate_payroll(db, RunContext.current())
    return _summary_response(summary)


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check (database connectivity)."""
    result = HealthResponse(db=False)
    try:
        await db.execute(select(1))
        result.db = True
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)
    return result
