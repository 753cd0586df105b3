"""Tests for payroll generation and the total-amount invariant."""

from decimal import Decimal

import pytest
from sqlalchemy import select

import app.services.notifications as notifications
import app.services.payroll as payroll_service
from app.models.company import Company
from app.models.employee import Grade
from app.models.notification import Notification
from app.models.payroll import PAYROLL_PAID, PAYROLL_PENDING, Payroll
from app.services.payroll import apply_adjustments, compute_total, generate_payroll


async def _payrolls(session_factory):
    async with session_factory() as s:
        result = await s.execute(select(Payroll).order_by(Payroll.employee_id))
        return list(result.scalars().all())


async def _notifications(session_factory):
    async with session_factory() as s:
        result = await s.execute(select(Notification).order_by(Notification.id))
        return list(result.scalars().all())


# ── Totals ──────────────────────────────────────────────────────────
def test_total_without_adjustments_is_basic_salary():
    assert compute_total(Decimal("50000"), []) == Decimal("50000.00")


def test_total_sums_bonuses_and_deductions():
    adjustments = [{"type": "Bonus", "amount": 1500}, {"type": "Tax", "amount": "-2000.50"}]
    assert compute_total(Decimal("50000.00"), adjustments) == Decimal("49499.50")


def test_total_rounds_to_cents():
    assert compute_total("100.005", []) == Decimal("100.01")


# ── Generation ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_generates_pending_payroll_for_eligible_employee(
    db_session, session_factory, make_employee, company, run_ctx
):
    emp = await make_employee()
    supervisor = await make_employee(first_name="Boss")
    emp.supervisor_id = supervisor.id
    await db_session.commit()

    summary = await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    assert len(rows) == 2
    row = next(r for r in rows if r.employee_id == emp.id)
    assert row.company_id == company.id
    assert row.supervisor_id == supervisor.id
    assert row.grade_name == "Engineer II"
    assert row.basic_salary == Decimal("50000.00")
    assert row.adjustments == []
    assert row.total_amount == Decimal("50000.00")
    assert row.generation_date == "2026-03-16"
    assert row.status == PAYROLL_PENDING
    assert summary.companies == 1
    assert summary.processed == 2
    assert summary.notified == 2
    assert summary.errors == 0
    assert summary.message == "Payroll generation completed. Processed: 2 records, Errors: 0"


@pytest.mark.asyncio
async def test_employee_is_notified(db_session, session_factory, make_employee, run_ctx):
    emp = await make_employee()

    await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    notes = await _notifications(session_factory)
    assert len(notes) == 1
    note = notes[0]
    assert note.recipient_id == emp.id
    assert note.title == "New Payroll Generated"
    assert note.message == "Your payroll for 2026-03-16 has been generated and is pending approval."
    assert note.context == "payroll"
    assert note.priority == "normal"
    assert note.reference_id == rows[0].id
    assert note.is_read is False


@pytest.mark.asyncio
async def test_unapproved_and_ungraded_employees_are_skipped(
    db_session, session_factory, make_employee, run_ctx
):
    await make_employee(has_approval=False)
    await make_employee(grade_id=None)

    summary = await generate_payroll(db_session, run_ctx)

    assert await _payrolls(session_factory) == []
    assert summary.processed == 0
    assert summary.companies == 1


@pytest.mark.asyncio
async def test_only_companies_scheduled_today(db_session, session_factory, make_employee, company, run_ctx):
    await make_employee()
    company.payroll_generation_day = 1
    await db_session.commit()

    summary = await generate_payroll(db_session, run_ctx)

    assert await _payrolls(session_factory) == []
    assert summary.companies == 0
    assert summary.message == "No companies scheduled for payroll generation on day 16"


@pytest.mark.asyncio
async def test_live_payroll_must_be_enabled(db_session, session_factory, make_employee, company, run_ctx):
    await make_employee()
    company.live_payroll_enabled = False
    await db_session.commit()

    summary = await generate_payroll(db_session, run_ctx)

    assert await _payrolls(session_factory) == []
    assert summary.companies == 0


@pytest.mark.asyncio
async def test_rerun_same_day_keeps_one_row(db_session, session_factory, make_employee, run_ctx):
    await make_employee()

    await generate_payroll(db_session, run_ctx)
    await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    assert len(rows) == 1
    assert rows[0].total_amount == rows[0].basic_salary


@pytest.mark.asyncio
async def test_rerun_refreshes_salary_and_keeps_adjustments(
    db_session, session_factory, make_employee, grade, run_ctx
):
    await make_employee()
    grade_id = grade.id
    await generate_payroll(db_session, run_ctx)

    async with session_factory() as s:
        row = (await s.execute(select(Payroll))).scalar_one()
        apply_adjustments(row, [{"type": "Bonus", "amount": "1500"}])
        g = await s.get(Grade, grade_id)
        g.basic_salary = Decimal("60000.00")
        await s.commit()

    await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    assert len(rows) == 1
    assert rows[0].basic_salary == Decimal("60000.00")
    assert rows[0].adjustments == [{"type": "Bonus", "amount": 1500.0}]
    assert rows[0].total_amount == Decimal("61500.00")


@pytest.mark.asyncio
async def test_rerun_leaves_settled_payroll_alone(
    db_session, session_factory, make_employee, grade, run_ctx
):
    await make_employee()
    grade_id = grade.id
    await generate_payroll(db_session, run_ctx)

    async with session_factory() as s:
        row = (await s.execute(select(Payroll))).scalar_one()
        row.status = PAYROLL_PAID
        g = await s.get(Grade, grade_id)
        g.basic_salary = Decimal("99999.00")
        await s.commit()

    summary = await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    assert rows[0].status == PAYROLL_PAID
    assert rows[0].basic_salary == Decimal("50000.00")
    assert summary.processed == 0
    assert len(await _notifications(session_factory)) == 1


@pytest.mark.asyncio
async def test_notification_failure_keeps_payroll(
    db_session, session_factory, make_employee, monkeypatch, run_ctx
):
    await make_employee()
    real_notification = notifications.Notification

    def _undeliverable(**fields):
        fields["recipient_id"] = None  # violates NOT NULL
        return real_notification(**fields)

    monkeypatch.setattr(notifications, "Notification", _undeliverable)

    summary = await generate_payroll(db_session, run_ctx)

    assert len(await _payrolls(session_factory)) == 1
    assert await _notifications(session_factory) == []
    assert summary.processed == 1
    assert summary.notified == 0
    assert summary.errors == 0


@pytest.mark.asyncio
async def test_failing_company_does_not_stop_the_run(
    db_session, session_factory, make_employee, company, grade, monkeypatch, run_ctx
):
    other = Company(name="Globex", live_payroll_enabled=True, payroll_generation_day=16)
    db_session.add(other)
    await db_session.commit()
    other_grade = Grade(company_id=other.id, name="Analyst", basic_salary=Decimal("30000"))
    db_session.add(other_grade)
    await db_session.commit()
    await make_employee()
    survivor_id = (await make_employee(company_id=other.id, grade_id=other_grade.id)).id
    failing_id = company.id

    real_generate = payroll_service._generate_for_company

    async def _flaky(db, company_id, ctx, summary):
        if company_id == failing_id:
            raise RuntimeError("boom")
        await real_generate(db, company_id, ctx, summary)

    monkeypatch.setattr(payroll_service, "_generate_for_company", _flaky)

    summary = await generate_payroll(db_session, run_ctx)

    rows = await _payrolls(session_factory)
    assert [(r.employee_id, r.basic_salary) for r in rows] == [(survivor_id, Decimal("30000.00"))]
    assert summary.companies == 2
    assert summary.errors == 1
    assert summary.processed == 1


@pytest.mark.asyncio
async def test_eligible_employees_read_current_grade_salary(
    db_session, session_factory, make_employee, company, grade
):
    """A grade already loaded in the session does not mask a newer salary."""
    emp = await make_employee()
    grade_id = grade.id
    assert grade.basic_salary == Decimal("50000.00")

    async with session_factory() as s:
        g = await s.get(Grade, grade_id)
        g.basic_salary = Decimal("72000.00")
        g.name = "Engineer III"
        await s.commit()

    rows = await payroll_service.eligible_employees(db_session, company.id)
    assert [(r.employee_id, r.grade_name, r.basic_salary) for r in rows] == [
        (emp.id, "Engineer III", Decimal("72000.00"))
    ]
