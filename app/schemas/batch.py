"""Pydantic schemas for batch-run summaries, payroll run results and health."""

from __future__ import annotations

from pydantic import BaseModel


class AbsenceRunSummary(BaseModel):
    date: str
    companies: int = 0
    processed: int = 0
    absent: int = 0
    on_leave: int = 0
    holiday: int = 0
    unchanged: int = 0
    errors: int = 0

    @property
    def message(self) -> str:
        return (
            f"Absent marking completed for {self.processed} employees "
            f"(absent: {self.absent}, on leave: {self.on_leave}, "
            f"holiday: {self.holiday}, errors: {self.errors})"
        )


class PayrollRunSummary(BaseModel):
    date: str
    day_of_month: int
    companies: int = 0
    processed: int = 0
    notified: int = 0
    errors: int = 0

    @property
    def message(self) -> str:
        if self.companies == 0:
            return f"No companies scheduled for payroll generation on day {self.day_of_month}"
        return (
            f"Payroll generation completed. Processed: {self.processed} records, "
            f"Errors: {self.errors}"
        )


class CompanyPayrollResult(BaseModel):
    generation_date: str
    employees: int = 0
    generated: int = 0
    notified: int = 0


class BatchResponse(BaseModel):
    success: bool
    message: str
    summary: AbsenceRunSummary | PayrollRunSummary


class HealthResponse(BaseModel):
    db: bool
