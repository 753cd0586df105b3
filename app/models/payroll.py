"""
Payroll model.

``total_amount`` must always equal ``basic_salary + sum(adjustments)``;
nothing in the schema enforces it, so every writer goes through
``app.services.payroll.compute_total``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (JSON, Column, DateTime, ForeignKey, Integer, Numeric,
                        String, UniqueConstraint)

from app.db.base import Base

PAYROLL_PENDING = "Pending"
PAYROLL_PAID = "Paid"
PAYROLL_PUBLISHED = "Published"

PAYROLL_STATUSES = (PAYROLL_PENDING, PAYROLL_PAID, PAYROLL_PUBLISHED)


class Payroll(Base):
    __tablename__ = "payrolls"
    __table_args__ = (
        UniqueConstraint("employee_id", "generation_date", name="uq_payroll_emp_generation_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)  # type: ignore[assignment]
    supervisor_id: int | None = Column(Integer, ForeignKey("employees.id"), nullable=True)  # type: ignore[assignment]
    grade_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    basic_salary: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    adjustments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    # [{"type": "Bonus", "amount": 1500.0}, ...]
    total_amount: Decimal = Column(Numeric(12, 2), nullable=False)  # type: ignore[assignment]
    generation_date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    status: str = Column(String(20), nullable=False, default=PAYROLL_PENDING)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
