"""
Daily absence marking.

For every company with live absence tracking, every active employee ends
the run with at most one attendance record for today:

1. weekly holiday            -> nothing written
2. ad-hoc holiday range       -> nothing written
3. accepted leave covers today -> ``On_Leave``
4. no record / no check-in     -> ``Absent``
5. already checked in          -> untouched

Records are inserted with ``ON CONFLICT DO NOTHING`` on
(employee_id, attendance_date), so a check-in that lands between the
lookup and the insert wins and the job simply skips that employee.
Re-running the job the same day never overwrites a check-in nor an open
correction request (``Pending``).
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BatchAbortedError
from app.core.timeutils import date_str, js_weekday
from app.db.upsert import dialect_insert
from app.models.attendance import (LEAVE_ACCEPTED, TAG_ABSENT, TAG_ON_LEAVE,
                                   TAG_PENDING, AttendanceRecord, LeaveRecord)
from app.models.company import Company, OtherHoliday, WeeklyHoliday
from app.models.employee import Employee
from app.schemas.batch import AbsenceRunSummary
from app.services.context import RunContext

logger = logging.getLogger(__name__)

INSERTED = "inserted"
UPDATED = "updated"
UNCHANGED = "unchanged"


async def is_company_holiday(db: AsyncSession, company_id: int, ctx: RunContext) -> str | None:
    """Return ``"weekly"`` / ``"other"`` when today is a non-work day, else ``None``."""
    weekly = await db.execute(
        select(WeeklyHoliday.id).where(
            WeeklyHoliday.company_id == company_id,
            WeeklyHoliday.day == js_weekday(ctx.today),
        )
    )
    if weekly.first() is not None:
        return "weekly"

    today = date_str(ctx.today)
    other = await db.execute(
        select(OtherHoliday.id).where(
            OtherHoliday.company_id == company_id,
            OtherHoliday.start_day <= today,
            OtherHoliday.end_day >= today,
        )
    )
    if other.first() is not None:
        return "other"
    return None


async def ensure_tag(
    db: AsyncSession,
    employee: Employee,
    existing: AttendanceRecord | None,
    tag: str,
    ctx: RunContext,
) -> str:
    """Make today's record for *employee* carry *tag* unless a check-in exists."""
    today = date_str(ctx.today)

    if existing is None:
        stmt = (
            dialect_insert(db, AttendanceRecord.__table__)
            .values(
                employee_id=employee.id,
                company_id=employee.company_id,
                supervisor_id=employee.supervisor_id,
                site_id=None,
                attendance_date=today,
                tag=tag,
                check_in_time=None,
                check_out_time=None,
                check_in_coordinates=None,
                check_out_coordinates=None,
            )
            .on_conflict_do_nothing(index_elements=["employee_id", "attendance_date"])
        )
        result = await db.execute(stmt)
        return INSERTED if result.rowcount else UNCHANGED

    if existing.check_in_time is not None or existing.tag in (tag, TAG_PENDING):
        return UNCHANGED

    result = await db.execute(
        update(AttendanceRecord)
        .where(
            AttendanceRecord.id == existing.id,
            AttendanceRecord.check_in_time.is_(None),
            AttendanceRecord.tag != TAG_PENDING,
        )
        .values(tag=tag)
    )
    return UPDATED if result.rowcount else UNCHANGED


async def _mark_company(
    db: AsyncSession, company_id: int, ctx: RunContext, summary: AbsenceRunSummary
) -> None:
    today = date_str(ctx.today)

    emp_result = await db.execute(
        select(Employee)
        .where(Employee.company_id == company_id, Employee.is_active.is_(True))
        .order_by(Employee.id)
    )
    employees = list(emp_result.scalars().all())

    holiday = await is_company_holiday(db, company_id, ctx)
    if holiday is not None:
        logger.info(
            "Company %d: %s holiday on %s, %d employees skipped",
            company_id, holiday, today, len(employees),
        )
        summary.holiday += len(employees)
        summary.processed += len(employees)
        return

    # Today's records and accepted leaves for the whole company, one query each
    rec_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.company_id == company_id,
            AttendanceRecord.attendance_date == today,
        )
    )
    records = {r.employee_id: r for r in rec_result.scalars().all()}

    leave_result = await db.execute(
        select(LeaveRecord.employee_id).where(
            LeaveRecord.company_id == company_id,
            LeaveRecord.status == LEAVE_ACCEPTED,
            LeaveRecord.start_date <= today,
            LeaveRecord.end_date >= today,
        )
    )
    on_leave = set(leave_result.scalars().all())

    for emp in employees:
        tag = TAG_ON_LEAVE if emp.id in on_leave else TAG_ABSENT
        try:
            async with db.begin_nested():
                outcome = await ensure_tag(db, emp, records.get(emp.id), tag, ctx)
        except SQLAlchemyError as exc:
            logger.error("Absence marking failed for employee %d: %s", emp.id, exc)
            summary.errors += 1
            continue

        summary.processed += 1
        if outcome == UNCHANGED:
            summary.unchanged += 1
        elif tag == TAG_ON_LEAVE:
            summary.on_leave += 1
        else:
            summary.absent += 1


async def mark_absences(db: AsyncSession, ctx: RunContext) -> AbsenceRunSummary:
    """Run absence marking for every company with ``live_absent_enabled``."""
    summary = AbsenceRunSummary(date=date_str(ctx.today))

    try:
        result = await db.execute(
            select(Company.id)
            .where(Company.live_absent_enabled.is_(True))
            .order_by(Company.id)
        )
        company_ids = list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Error fetching companies: %s", exc)
        raise BatchAbortedError("Error fetching companies") from exc

    for company_id in company_ids:
        summary.companies += 1
        try:
            await _mark_company(db, company_id, ctx, summary)
            await db.commit()
        except Exception:
            logger.exception("Absence marking failed for company %d", company_id)
            await db.rollback()
            summary.errors += 1

    logger.info(summary.message)
    return summary
