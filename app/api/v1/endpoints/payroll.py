"""
Payroll listing, manual generation and admin updates (status, adjustments).

Any change to adjustments recomputes ``total_amount`` from the basic salary.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import RequestContext, get_db, get_request_context, require_admin
from app.models.payroll import PAYROLL_STATUSES, Payroll
from app.schemas.batch import CompanyPayrollResult
from app.schemas.payroll import PayrollGenerateRequest, PayrollRead, PayrollUpdate
from app.services.context import RunContext
from app.services.notifications import notify
from app.services.payroll import (apply_adjustments, generate_company_payroll,
                                  pending_payroll_date)

router = APIRouter(prefix="/payrolls", tags=["payroll"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[PayrollRead])
async def list_payrolls(
    status: str | None = Query(default=None),
    generation_date: str | None = Query(default=None, description="YYYY-MM-DD"),
    employee_id: int | None = Query(default=None),
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
) -> list[Payroll]:
    """Admins see the whole company; everyone else only their own payrolls."""
    if status is not None and status not in PAYROLL_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")

    stmt = (
        select(Payroll)
        .where(Payroll.company_id == ctx.company_id)
        .order_by(Payroll.generation_date.desc(), Payroll.employee_id)
        .offset(skip)
        .limit(limit)
    )
    if not ctx.is_admin:
        stmt = stmt.where(Payroll.employee_id == ctx.employee_id)
    elif employee_id is not None:
        stmt = stmt.where(Payroll.employee_id == employee_id)
    if status:
        stmt = stmt.where(Payroll.status == status)
    if generation_date:
        stmt = stmt.where(Payroll.generation_date == generation_date)

    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("/generate", response_model=CompanyPayrollResult)
async def generate_company_payrolls(
    body: PayrollGenerateRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> CompanyPayrollResult:
    """Generate the caller's company payroll for a chosen date.

    Refused while any payroll of the company is still ``Pending``.
    """
    pending = await pending_payroll_date(db, ctx.company_id)
    if pending is not None:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot generate payroll. There is a pending payroll from {pending}",
        )

    run_ctx = RunContext(today=body.generation_date, now=datetime.now(timezone.utc))
    outcome = await generate_company_payroll(db, ctx.company_id, run_ctx)
    logger.info(
        "Manual payroll for company %d on %s: %d of %d employees",
        ctx.company_id, outcome.generation_date, outcome.generated, outcome.employees,
    )
    return outcome


@router.patch("/{payroll_id}", response_model=PayrollRead)
async def update_payroll(
    payroll_id: int,
    body: PayrollUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> Payroll:
    result = await db.execute(
        select(Payroll).where(Payroll.id == payroll_id, Payroll.company_id == ctx.company_id)
    )
    payroll = result.scalar_one_or_none()
    if payroll is None:
        raise HTTPException(status_code=404, detail="Payroll not found")

    if body.adjustments is not None:
        apply_adjustments(payroll, body.adjustments)
    previous_status = payroll.status
    if body.status is not None:
        payroll.status = body.status

    await db.commit()
    await db.refresh(payroll)
    logger.info(
        "Payroll %d updated: status=%s total=%s", payroll.id, payroll.status, payroll.total_amount
    )

    if payroll.status != previous_status:
        await notify(
            db,
            recipient_id=payroll.employee_id,
            company_id=payroll.company_id,
            title="Payroll Updated",
            message=f"Your payroll for {payroll.generation_date} is now {payroll.status}.",
            context="payroll",
            reference_id=payroll.id,
        )
        await db.commit()
    return payroll
