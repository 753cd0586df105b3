"""Pydantic schemas for payroll records and adjustments."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator

from app.models.payroll import PAYROLL_STATUSES


class PayrollAdjustment(BaseModel):
    type: str
    amount: Decimal

    @field_validator("type")
    @classmethod
    def _type(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Adjustment type is required")
        if len(v) > 100:
            raise ValueError("Adjustment type must be less than 100 characters")
        return v


class PayrollRead(BaseModel):
    id: int
    employee_id: int
    company_id: int
    supervisor_id: int | None
    grade_name: str
    basic_salary: Decimal
    adjustments: list[PayrollAdjustment]
    total_amount: Decimal
    generation_date: str
    status: str
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class PayrollUpdate(BaseModel):
    status: str | None = None
    adjustments: list[PayrollAdjustment] | None = None

    @field_validator("status")
    @classmethod
    def _status(cls, v: str | None) -> str | None:
        if v is not None and v not in PAYROLL_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(PAYROLL_STATUSES)}")
        return v


class PayrollGenerateRequest(BaseModel):
    generation_date: date
