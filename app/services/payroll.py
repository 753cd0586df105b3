"""
Payroll generation and adjustment.

``generate_payroll`` runs once a day and, for every company whose
``payroll_generation_day`` is today's day of month, upserts one ``Pending``
payroll per approved, graded employee keyed on
(employee_id, generation_date). Payroll rows are committed before any
notification is attempted; notification failures never undo them.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from sqlalchemy import Row, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BatchAbortedError
from app.core.timeutils import date_str
from app.db.upsert import dialect_insert
from app.models.company import Company
from app.models.employee import Employee, Grade
from app.models.payroll import PAYROLL_PENDING, Payroll
from app.schemas.batch import CompanyPayrollResult, PayrollRunSummary
from app.services.context import RunContext
from app.services.notifications import notify

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def _money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_total(basic_salary: Any, adjustments: Iterable[dict]) -> Decimal:
    """``basic_salary + sum(adjustment amounts)``, rounded to cents."""
    total = _money(basic_salary)
    for adj in adjustments:
        total += _money(adj["amount"])
    return total


def normalise_adjustments(adjustments: Iterable[Any]) -> list[dict]:
    """Turn schema objects / dicts into the JSON-safe list stored on the row."""
    out = []
    for adj in adjustments:
        data = adj.model_dump() if hasattr(adj, "model_dump") else dict(adj)
        out.append({"type": data["type"], "amount": float(_money(data["amount"]))})
    return out


def apply_adjustments(payroll: Payroll, adjustments: Iterable[Any]) -> None:
    payroll.adjustments = normalise_adjustments(adjustments)
    payroll.total_amount = compute_total(payroll.basic_salary, payroll.adjustments)


def build_payroll_rows(company_id: int, employees: list[Row], ctx: RunContext) -> list[dict]:
    """One Pending row per ``(employee_id, supervisor_id, grade_name, basic_salary)`` row."""
    rows = []
    for emp in employees:
        basic = _money(emp.basic_salary)
        rows.append(
            {
                "employee_id": emp.employee_id,
                "company_id": company_id,
                "supervisor_id": emp.supervisor_id,
                "grade_name": emp.grade_name or "Unknown Grade",
                "basic_salary": basic,
                "adjustments": [],
                "total_amount": compute_total(basic, []),
                "generation_date": date_str(ctx.today),
                "status": PAYROLL_PENDING,
                "created_at": ctx.now,
                "updated_at": ctx.now,
            }
        )
    return rows


async def upsert_payrolls(db: AsyncSession, rows: list[dict], ctx: RunContext) -> list[tuple[int, int]]:
    """Insert or refresh rows; returns ``(payroll_id, employee_id)`` per row written.

    A rerun only refreshes rows that are still ``Pending`` and keeps their
    adjustments: the new total is the new basic salary plus the adjustment
    sum already folded into the stored total.
    """
    table = Payroll.__table__
    stmt = dialect_insert(db, table).values(rows)
    stmt = stmt.on_conflict_do_update(
        index_elements=["employee_id", "generation_date"],
        set_={
            "grade_name": stmt.excluded.grade_name,
            "supervisor_id": stmt.excluded.supervisor_id,
            "basic_salary": stmt.excluded.basic_salary,
            "total_amount": stmt.excluded.basic_salary
            + (table.c.total_amount - table.c.basic_salary),
            "updated_at": ctx.now,
        },
        where=table.c.status == PAYROLL_PENDING,
    ).returning(table.c.id, table.c.employee_id)

    result = await db.execute(stmt)
    return [(row.id, row.employee_id) for row in result.all()]


async def eligible_employees(db: AsyncSession, company_id: int) -> list[Row]:
    """Approved, active, graded employees of a company with their current grade salary.

    Rows carry column values read by this query, never identity-mapped
    entities, so the salary is whatever the grade holds right now.
    """
    result = await db.execute(
        select(
            Employee.id.label("employee_id"),
            Employee.supervisor_id,
            Grade.name.label("grade_name"),
            Grade.basic_salary,
        )
        .join(Grade, Employee.grade_id == Grade.id)
        .where(
            Employee.company_id == company_id,
            Employee.has_approval.is_(True),
            Employee.is_active.is_(True),
            Employee.grade_id.is_not(None),
        )
        .order_by(Employee.id)
    )
    return list(result.all())


async def generate_company_payroll(
    db: AsyncSession, company_id: int, ctx: RunContext
) -> CompanyPayrollResult:
    """Upsert one company's payroll for ``ctx.today``, commit, then notify."""
    today = date_str(ctx.today)
    outcome = CompanyPayrollResult(generation_date=today)

    employees = await eligible_employees(db, company_id)
    outcome.employees = len(employees)
    if not employees:
        logger.info("No eligible employees found for company %d", company_id)
        return outcome

    logger.info("Found %d eligible employees for company %d", len(employees), company_id)

    written = await upsert_payrolls(db, build_payroll_rows(company_id, employees, ctx), ctx)
    await db.commit()

    outcome.generated = len(written)
    logger.info("Generated %d payroll records for company %d", len(written), company_id)

    sent_count = 0
    for payroll_id, employee_id in written:
        sent = await notify(
            db,
            recipient_id=employee_id,
            company_id=company_id,
            title="New Payroll Generated",
            message=f"Your payroll for {today} has been generated and is pending approval.",
            context="payroll",
            priority="normal",
            reference_id=payroll_id,
        )
        if sent:
            sent_count += 1
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.warning("Payroll notifications for company %d not saved: %s", company_id, exc)
        await db.rollback()
        return outcome
    outcome.notified = sent_count
    return outcome


async def pending_payroll_date(db: AsyncSession, company_id: int) -> str | None:
    """Generation date of the oldest still-Pending payroll, if there is one."""
    result = await db.execute(
        select(Payroll.generation_date)
        .where(Payroll.company_id == company_id, Payroll.status == PAYROLL_PENDING)
        .order_by(Payroll.generation_date)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def _generate_for_company(
    db: AsyncSession, company_id: int, ctx: RunContext, summary: PayrollRunSummary
) -> None:
    outcome = await generate_company_payroll(db, company_id, ctx)
    summary.processed += outcome.generated
    summary.notified += outcome.notified


async def generate_payroll(db: AsyncSession, ctx: RunContext) -> PayrollRunSummary:
    """Generate today's payroll for every company scheduled on this day of month."""
    summary = PayrollRunSummary(date=date_str(ctx.today), day_of_month=ctx.today.day)

    try:
        result = await db.execute(
            select(Company.id)
            .where(
                Company.live_payroll_enabled.is_(True),
                Company.payroll_generation_day == ctx.today.day,
            )
            .order_by(Company.id)
        )
        company_ids = list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Error fetching companies: %s", exc)
        raise BatchAbortedError("Error fetching companies") from exc

    if company_ids:
        logger.info("Processing payroll for %d companies", len(company_ids))

    for company_id in company_ids:
        summary.companies += 1
        try:
            await _generate_for_company(db, company_id, ctx, summary)
        except Exception:
            logger.exception("Error processing payroll for company %d", company_id)
            await db.rollback()
            summary.errors += 1

    logger.info(summary.message)
    return summary
