"""
Company model and the per-company configuration the batch jobs read:
weekly holidays, ad-hoc holiday ranges and check-in sites.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, Float, ForeignKey, Index,
                        Integer, String, UniqueConstraint)

from app.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    live_absent_enabled: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    live_payroll_enabled: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    payroll_generation_day: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]  # 1-31
    fiscal_year_start: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]  # YYYY-MM-DD
    pay_frequency: str = Column(String(20), nullable=False, default="monthly", server_default="monthly")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class WeeklyHoliday(Base):
    __tablename__ = "weekly_holiday_configs"
    __table_args__ = (UniqueConstraint("company_id", "day", name="uq_weekly_holiday_company_day"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)  # type: ignore[assignment]
    day: int = Column(Integer, nullable=False)  # type: ignore[assignment]  # 0=Sunday .. 6=Saturday


class OtherHoliday(Base):
    __tablename__ = "other_holiday_configs"
    __table_args__ = (Index("ix_other_holiday_company_range", "company_id", "start_day", "end_day"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    start_day: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    end_day: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # inclusive


class Site(Base):
    __tablename__ = "sites"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    latitude: float = Column(Float, nullable=False)  # type: ignore[assignment]
    longitude: float = Column(Float, nullable=False)  # type: ignore[assignment]
    check_in: str = Column(String(5), nullable=False, default="09:00")  # type: ignore[assignment]  # HH:MM
    check_out: str = Column(String(5), nullable=False, default="17:00")  # type: ignore[assignment]  # HH:MM
    location: str | None = Column(String(300), nullable=True)  # type: ignore[assignment]
