"""Pydantic schemas for check-in / check-out and attendance requests."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from app.models.attendance import TAG_PENDING, ATTENDANCE_TAGS

FINAL_TAGS = [t for t in ATTENDANCE_TAGS if t != TAG_PENDING]


def _check_latitude(v: float | None) -> float | None:
    if v is not None and not -90.0 <= v <= 90.0:
        raise ValueError("Latitude must be between -90 and 90")
    return v


def _check_longitude(v: float | None) -> float | None:
    if v is not None and not -180.0 <= v <= 180.0:
        raise ValueError("Longitude must be between -180 and 180")
    return v


# ── Check-in / out ─────────────────────────────────────────────────
class CheckInRequest(BaseModel):
    site_id: int
    # Left empty when the device could not (or would not) share a location
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude")
    @classmethod
    def _lat(cls, v: float | None) -> float | None:
        return _check_latitude(v)

    @field_validator("longitude")
    @classmethod
    def _lon(cls, v: float | None) -> float | None:
        return _check_longitude(v)


class CheckOutRequest(BaseModel):
    attendance_id: int
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude")
    @classmethod
    def _lat(cls, v: float | None) -> float | None:
        return _check_latitude(v)

    @field_validator("longitude")
    @classmethod
    def _lon(cls, v: float | None) -> float | None:
        return _check_longitude(v)


class CheckInResponse(BaseModel):
    success: bool
    attendance_id: int
    attendance_date: str
    tag: str
    on_time: bool
    within_range: bool
    distance_m: float
    check_in_time: str


class AttendanceRead(BaseModel):
    id: int
    employee_id: int
    company_id: int
    supervisor_id: int | None
    site_id: int | None
    attendance_date: str
    tag: str
    check_in_time: datetime | None
    check_out_time: datetime | None
    check_in_coordinates: str | None
    check_out_coordinates: str | None
    request_reason: str | None = None

    model_config = {"from_attributes": True}


# ── Correction requests ────────────────────────────────────────────
class AttendanceRequestCreate(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reason must not be empty")
        if len(v) > 500:
            raise ValueError("Reason must not exceed 500 characters")
        return v


class AttendanceTagUpdate(BaseModel):
    tag: str

    @field_validator("tag")
    @classmethod
    def _tag(cls, v: str) -> str:
        if v not in FINAL_TAGS:
            raise ValueError(f"Tag must be one of: {', '.join(FINAL_TAGS)}")
        return v


class AttendanceMonthView(BaseModel):
    month: str  # YYYY-MM
    records: list[AttendanceRead]
    counts: dict[str, int]
