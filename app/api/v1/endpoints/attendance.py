"""
Check-in / check-out and attendance correction requests.

- POST /attendance/check-in and /check-out require a location fix; a
  request without coordinates is rejected before anything is written.
- Employees may ask for a Late / Absent / Wrong_Location day to be
  reviewed (tag becomes Pending); their supervisor or an admin resolves it.
- GET /attendance/records lists the caller's month with per-tag counts.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (RequestContext, get_db, require_employee,
                             require_supervisor)
from app.core.config import settings
from app.core.exceptions import GeolocationUnavailableError
from app.core.timeutils import date_str, local_now
from app.models.attendance import (ATTENDANCE_TAGS, TAG_ABSENT, TAG_LATE, TAG_PENDING,
                                   TAG_WRONG_LOCATION, AttendanceRecord)
from app.models.company import Site
from app.models.employee import Employee
from app.schemas.attendance import (AttendanceMonthView, AttendanceRead, AttendanceRequestCreate,
                                    AttendanceTagUpdate, CheckInRequest,
                                    CheckInResponse, CheckOutRequest)
from app.services.checkin import CheckInVerdict, evaluate_check_in
from app.services.geo import format_point
from app.services.notifications import notify

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)

REQUESTABLE_TAGS = {TAG_ABSENT, TAG_LATE, TAG_WRONG_LOCATION}


async def _todays_record(db: AsyncSession, employee_id: int, day: str) -> AttendanceRecord | None:
    result = await db.execute(
        select(AttendanceRecord)
        .where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.attendance_date == day,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


def _apply_check_in(
    record: AttendanceRecord,
    site: Site,
    verdict: CheckInVerdict,
    coordinates: str,
    now: datetime,
) -> None:
    record.site_id = site.id
    record.tag = verdict.tag
    record.check_in_time = now
    record.check_in_coordinates = coordinates


# ── Check-in ────────────────────────────────────────────────────────
@router.post("/check-in", response_model=CheckInResponse)
async def check_in(
    body: CheckInRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_employee),
) -> CheckInResponse:
    """Record today's check-in and tag it Present / Late / Wrong_Location."""
    if body.latitude is None or body.longitude is None:
        raise GeolocationUnavailableError()

    site_result = await db.execute(
        select(Site).where(Site.id == body.site_id, Site.company_id == ctx.company_id)
    )
    site = site_result.scalar_one_or_none()
    if site is None:
        raise HTTPException(status_code=404, detail="Site not found")

    employee = await db.get(Employee, ctx.employee_id)
    if employee is None or not employee.is_active:
        raise HTTPException(status_code=403, detail="Employee account is deactivated")

    local = local_now()
    today = date_str(local.date())
    verdict = evaluate_check_in(
        local.time(),
        body.latitude,
        body.longitude,
        site.latitude,
        site.longitude,
        site.check_in,
        settings.CHECK_IN_RADIUS_METERS,
    )
    coordinates = format_point(body.longitude, body.latitude)
    now = datetime.now(timezone.utc)

    record = await _todays_record(db, employee.id, today)
    if record is not None and record.check_in_time is not None:
        raise HTTPException(status_code=409, detail="Already checked in today")

    if record is None:
        record = AttendanceRecord(
            employee_id=employee.id,
            company_id=ctx.company_id,
            supervisor_id=employee.supervisor_id,
            attendance_date=today,
        )
        _apply_check_in(record, site, verdict, coordinates, now)
        db.add(record)
        try:
            await db.commit()
        except IntegrityError:
            # The daily job inserted today's row between our lookup and insert
            await db.rollback()
            record = await _todays_record(db, employee.id, today)
            if record is None or record.check_in_time is not None:
                raise HTTPException(status_code=409, detail="Already checked in today")
            _apply_check_in(record, site, verdict, coordinates, now)
            await db.commit()
    else:
        # Placeholder left by the daily job (Absent / On_Leave) gets completed
        _apply_check_in(record, site, verdict, coordinates, now)
        await db.commit()

    await db.refresh(record)
    logger.info(
        "Check-in %s for employee %d at site %d (%.1f m)",
        verdict.tag, employee.id, site.id, verdict.distance_m,
    )
    return CheckInResponse(
        success=True,
        attendance_id=record.id,
        attendance_date=today,
        tag=verdict.tag,
        on_time=verdict.on_time,
        within_range=verdict.within_range,
        distance_m=verdict.distance_m,
        check_in_time=now.isoformat(),
    )


# ── Check-out ───────────────────────────────────────────────────────
@router.post("/check-out", response_model=AttendanceRead)
async def check_out(
    body: CheckOutRequest,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_employee),
) -> AttendanceRecord:
    if body.latitude is None or body.longitude is None:
        raise GeolocationUnavailableError()

    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.id == body.attendance_id,
            AttendanceRecord.employee_id == ctx.employee_id,
            AttendanceRecord.company_id == ctx.company_id,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    if record.check_in_time is None:
        raise HTTPException(status_code=409, detail="No check-in recorded for this day")
    if record.check_out_time is not None:
        raise HTTPException(status_code=409, detail="Already checked out")

    record.check_out_time = datetime.now(timezone.utc)
    record.check_out_coordinates = format_point(body.longitude, body.latitude)
    await db.commit()
    await db.refresh(record)
    logger.info("Check-out for employee %d (record %d)", ctx.employee_id, record.id)
    return record


@router.get("/today", response_model=AttendanceRead | None)
async def my_attendance_today(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_employee),
) -> AttendanceRecord | None:
    """The caller's record for today, if any."""
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == ctx.employee_id,
            AttendanceRecord.attendance_date == date_str(local_now().date()),
        )
    )
    return result.scalar_one_or_none()


@router.get("/records", response_model=AttendanceMonthView)
async def my_attendance_records(
    month: str | None = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM"),
    tag: str | None = Query(default=None),
    site_id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_employee),
) -> AttendanceMonthView:
    """The caller's records for a month (default: the current one), newest first.

    ``counts`` tallies every tag in the month and site selection; the ``tag``
    filter narrows ``records`` only.
    """
    if tag is not None and tag not in ATTENDANCE_TAGS:
        raise HTTPException(status_code=400, detail=f"Unknown tag: {tag}")

    if month is None:
        month = local_now().strftime("%Y-%m")
    year, month_no = (int(part) for part in month.split("-"))
    first = date(year, month_no, 1)
    last = date(year, month_no, calendar.monthrange(year, month_no)[1])

    scope = [
        AttendanceRecord.employee_id == ctx.employee_id,
        AttendanceRecord.company_id == ctx.company_id,
        AttendanceRecord.attendance_date >= date_str(first),
        AttendanceRecord.attendance_date <= date_str(last),
    ]
    if site_id is not None:
        scope.append(AttendanceRecord.site_id == site_id)

    stmt = select(AttendanceRecord).where(*scope).order_by(AttendanceRecord.attendance_date.desc())
    if tag is not None:
        stmt = stmt.where(AttendanceRecord.tag == tag)
    records = list((await db.execute(stmt)).scalars().all())

    count_result = await db.execute(
        select(AttendanceRecord.tag, func.count(AttendanceRecord.id))
        .where(*scope)
        .group_by(AttendanceRecord.tag)
    )
    counts = {row_tag: n for row_tag, n in count_result.all()}

    return AttendanceMonthView(
        month=month,
        records=[AttendanceRead.model_validate(r) for r in records],
        counts=counts,
    )


# ── Correction requests ─────────────────────────────────────────────
@router.post("/{record_id}/request", response_model=AttendanceRead)
async def request_review(
    record_id: int,
    body: AttendanceRequestCreate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_employee),
) -> AttendanceRecord:
    """Ask the supervisor to review one of the caller's own records."""
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.id == record_id,
            AttendanceRecord.employee_id == ctx.employee_id,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    if record.tag not in REQUESTABLE_TAGS:
        raise HTTPException(
            status_code=400,
            detail=f"Only {', '.join(sorted(REQUESTABLE_TAGS))} records can be reviewed",
        )

    record.tag = TAG_PENDING
    record.request_reason = body.reason
    await db.commit()
    await db.refresh(record)

    if record.supervisor_id is not None:
        await notify(
            db,
            recipient_id=record.supervisor_id,
            company_id=record.company_id,
            title="Attendance Request Submitted",
            message=f"An attendance review was requested for {record.attendance_date}.",
            context="attendance",
            reference_id=record.id,
            action_url="/ops/attendance/requests",
        )
        await db.commit()
    return record


@router.get("/requests", response_model=list[AttendanceRead])
async def list_requests(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_supervisor),
) -> list[AttendanceRecord]:
    """Pending reviews: the caller's reports, or the whole company for admins."""
    stmt = (
        select(AttendanceRecord)
        .where(
            AttendanceRecord.company_id == ctx.company_id,
            AttendanceRecord.tag == TAG_PENDING,
        )
        .order_by(AttendanceRecord.attendance_date.desc())
    )
    if not ctx.is_admin:
        stmt = stmt.where(AttendanceRecord.supervisor_id == ctx.employee_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.patch("/{record_id}/tag", response_model=AttendanceRead)
async def resolve_request(
    record_id: int,
    body: AttendanceTagUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(require_supervisor),
) -> AttendanceRecord:
    """Set a record's final tag and let the employee know."""
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.id == record_id,
            AttendanceRecord.company_id == ctx.company_id,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    if not ctx.is_admin:
        if record.supervisor_id != ctx.employee_id:
            raise HTTPException(status_code=403, detail="Not your report's record")
        if record.tag != TAG_PENDING:
            raise HTTPException(status_code=400, detail="Record has no pending request")

    record.tag = body.tag
    await db.commit()
    await db.refresh(record)
    logger.info("Attendance record %d retagged %s by user %d", record.id, body.tag, ctx.user.id)

    day = date.fromisoformat(record.attendance_date).strftime("%d %b")
    await notify(
        db,
        recipient_id=record.employee_id,
        company_id=record.company_id,
        title="Attendance Request Updated",
        message=f"Your attendance request for {day} has been updated to status: {body.tag}.",
        context="attendance",
        reference_id=record.id,
        action_url="/ops/attendance",
    )
    await db.commit()
    return record
