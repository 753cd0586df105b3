"""Pydantic schemas for company configuration, holidays, sites and notifications."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, field_validator, model_validator

from app.core.timeutils import parse_hhmm


def _iso_date(v: str) -> str:
    v = v.strip()
    date.fromisoformat(v)  # raises ValueError on bad input
    return v


# ── Company settings ───────────────────────────────────────────────
class CompanySettingsRead(BaseModel):
    id: int
    name: str
    live_absent_enabled: bool
    live_payroll_enabled: bool
    payroll_generation_day: int | None
    fiscal_year_start: str | None
    pay_frequency: str
    weekly_holidays: list[int]


class CompanySettingsUpdate(BaseModel):
    live_absent_enabled: bool | None = None
    live_payroll_enabled: bool | None = None
    payroll_generation_day: int | None = None
    fiscal_year_start: str | None = None
    pay_frequency: str | None = None
    weekly_holidays: list[int] | None = None  # 0=Sunday .. 6=Saturday

    # Omitted means unchanged; null is rejected
    @field_validator("live_absent_enabled", "live_payroll_enabled", "pay_frequency", "weekly_holidays")
    @classmethod
    def _not_null(cls, v: object) -> object:
        if v is None:
            raise ValueError("Field may be omitted but not set to null")
        return v

    @field_validator("pay_frequency")
    @classmethod
    def _frequency(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Pay frequency must not be empty")
        return v.strip() if v is not None else v

    @field_validator("payroll_generation_day")
    @classmethod
    def _generation_day(cls, v: int | None) -> int | None:
        if v is not None and not 1 <= v <= 31:
            raise ValueError("Payroll generation day must be between 1 and 31")
        return v

    @field_validator("fiscal_year_start")
    @classmethod
    def _fiscal(cls, v: str | None) -> str | None:
        return _iso_date(v) if v is not None else v

    @field_validator("weekly_holidays")
    @classmethod
    def _weekdays(cls, v: list[int] | None) -> list[int] | None:
        if v is None:
            return v
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("Weekly holidays must be days 0 (Sunday) to 6 (Saturday)")
        return sorted(set(v))


# ── Ad-hoc holidays ────────────────────────────────────────────────
class HolidayCreate(BaseModel):
    name: str
    start_day: str
    end_day: str

    @field_validator("start_day", "end_day")
    @classmethod
    def _dates(cls, v: str) -> str:
        return _iso_date(v)

    @model_validator(mode="after")
    def _range(self) -> HolidayCreate:
        if self.end_day < self.start_day:
            raise ValueError("end_day must not be before start_day")
        return self


class HolidayRead(BaseModel):
    id: int
    name: str
    start_day: str
    end_day: str

    model_config = {"from_attributes": True}


# ── Sites ──────────────────────────────────────────────────────────
class SiteCreate(BaseModel):
    name: str
    latitude: float
    longitude: float
    check_in: str = "09:00"
    check_out: str = "17:00"
    location: str | None = None

    @field_validator("check_in", "check_out")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        parsed = parse_hhmm(v)
        return parsed.strftime("%H:%M")


class SiteRead(BaseModel):
    id: int
    name: str
    latitude: float
    longitude: float
    check_in: str
    check_out: str
    location: str | None

    model_config = {"from_attributes": True}


# ── Notifications ──────────────────────────────────────────────────
class NotificationRead(BaseModel):
    id: int
    title: str
    message: str
    context: str | None
    priority: str
    reference_id: int | None
    action_url: str | None
    is_read: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}
