"""
Company configuration endpoints: the switches and calendars the daily
jobs read (live flags, payroll generation day, weekly / ad-hoc holidays,
and check-in sites). Admin only, scoped to the caller's company.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import RequestContext, get_db, require_admin
from app.models.company import Company, OtherHoliday, Site, WeeklyHoliday
from app.schemas.company import (CompanySettingsRead, CompanySettingsUpdate,
                                 HolidayCreate, HolidayRead, SiteCreate,
                                 SiteRead)

router = APIRouter(prefix="/company", tags=["company"])
logger = logging.getLogger(__name__)


async def _load_company(db: AsyncSession, company_id: int) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


async def _settings_view(db: AsyncSession, company: Company) -> CompanySettingsRead:
    days = await db.execute(
        select(WeeklyHoliday.day)
        .where(WeeklyHoliday.company_id == company.id)
        .order_by(WeeklyHoliday.day)
    )
    return CompanySettingsRead(
        id=company.id,
        name=company.name,
        live_absent_enabled=company.live_absent_enabled,
        live_payroll_enabled=company.live_payroll_enabled,
        payroll_generation_day=company.payroll_generation_day,
        fiscal_year_start=company.fiscal_year_start,
        pay_frequency=company.pay_frequency,
        weekly_holidays=list(days.scalars().all()),
    )


# ── Settings ────────────────────────────────────────────────────────
@router.get("/settings", response_model=CompanySettingsRead)
async def get_company_settings(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> CompanySettingsRead:
    company = await _load_company(db, ctx.company_id)
    return await _settings_view(db, company)


@router.put("/settings", response_model=CompanySettingsRead)
async def update_company_settings(
    body: CompanySettingsUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> CompanySettingsRead:
    """Update live flags, payroll day, fiscal year start or weekly holidays."""
    company = await _load_company(db, ctx.company_id)
    changes = body.model_dump(exclude_unset=True)

    weekly = changes.pop("weekly_holidays", None)
    for field, value in changes.items():
        setattr(company, field, value)

    if weekly is not None:
        await db.execute(sa_delete(WeeklyHoliday).where(WeeklyHoliday.company_id == company.id))
        db.add_all(WeeklyHoliday(company_id=company.id, day=d) for d in weekly)

    await db.commit()
    await db.refresh(company)
    logger.info("Company %d settings updated: %s", company.id, body.model_dump(exclude_unset=True))
    return await _settings_view(db, company)


# ── Ad-hoc holidays ─────────────────────────────────────────────────
@router.get("/holidays", response_model=list[HolidayRead])
async def list_holidays(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> list[OtherHoliday]:
    result = await db.execute(
        select(OtherHoliday)
        .where(OtherHoliday.company_id == ctx.company_id)
        .order_by(OtherHoliday.start_day)
    )
    return list(result.scalars().all())


@router.post("/holidays", response_model=HolidayRead, status_code=201)
async def create_holiday(
    body: HolidayCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> OtherHoliday:
    holiday = OtherHoliday(company_id=ctx.company_id, **body.model_dump())
    db.add(holiday)
    await db.commit()
    await db.refresh(holiday)
    logger.info("Holiday '%s' %s..%s added for company %d",
                holiday.name, holiday.start_day, holiday.end_day, ctx.company_id)
    return holiday


@router.delete("/holidays/{holiday_id}")
async def delete_holiday(
    holiday_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
):
    result = await db.execute(
        select(OtherHoliday).where(
            OtherHoliday.id == holiday_id, OtherHoliday.company_id == ctx.company_id
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise HTTPException(status_code=404, detail="Holiday not found")

    await db.delete(holiday)
    await db.commit()
    return {"success": True, "deleted_id": holiday_id}


# ── Sites ───────────────────────────────────────────────────────────
@router.get("/sites", response_model=list[SiteRead])
async def list_sites(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> list[Site]:
    result = await db.execute(
        select(Site).where(Site.company_id == ctx.company_id).order_by(Site.name)
    )
    return list(result.scalars().all())


@router.post("/sites", response_model=SiteRead, status_code=201)
async def create_site(
    body: SiteCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_admin),
) -> Site:
    site = Site(company_id=ctx.company_id, **body.model_dump())
    db.add(site)
    await db.commit()
    await db.refresh(site)
    return site
