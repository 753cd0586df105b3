"""
Attendance & Leave models.

One ``AttendanceRecord`` per employee per calendar date, written either by
an interactive check-in or by the daily absence job. The unique index on
(employee_id, attendance_date) is what keeps those two writers from
producing duplicates.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, ForeignKey, Index, Integer, String,
                        UniqueConstraint)

from app.db.base import Base

TAG_PRESENT = "Present"
TAG_LATE = "Late"
TAG_WRONG_LOCATION = "Wrong_Location"
TAG_ABSENT = "Absent"
TAG_ON_LEAVE = "On_Leave"
TAG_PENDING = "Pending"

ATTENDANCE_TAGS = (
    TAG_PRESENT,
    TAG_LATE,
    TAG_WRONG_LOCATION,
    TAG_ABSENT,
    TAG_ON_LEAVE,
    TAG_PENDING,
)

LEAVE_ACCEPTED = "Accepted"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "attendance_date", name="uq_attendance_emp_date"),
        Index("ix_attendance_company_date", "company_id", "attendance_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False)  # type: ignore[assignment]
    supervisor_id: int | None = Column(Integer, ForeignKey("employees.id"), nullable=True)  # type: ignore[assignment]
    site_id: int | None = Column(Integer, ForeignKey("sites.id"), nullable=True)  # type: ignore[assignment]
    attendance_date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    tag: str = Column(String(20), nullable=False, default=TAG_ABSENT)  # type: ignore[assignment]
    check_in_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    check_out_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    check_in_coordinates: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]  # "(lon,lat)"
    check_out_coordinates: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    request_reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]


class LeaveRecord(Base):
    __tablename__ = "leave_records"
    __table_args__ = (Index("ix_leave_employee_range", "employee_id", "start_date", "end_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False)  # type: ignore[assignment]
    leave_type: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    start_date: str = Column(String(10), nullable=False)  # type: ignore[assignment]
    end_date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # inclusive
    status: str = Column(String(20), nullable=False, default="Pending")  # type: ignore[assignment]
    # Pending | Accepted | Rejected
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
