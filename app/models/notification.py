"""
Notification model: advisory rows written as side effects.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String)

from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notification_recipient_read", "recipient_id", "is_read"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    recipient_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    company_id: int = Column(Integer, ForeignKey("companies.id"), nullable=False)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    message: str = Column(String(1000), nullable=False)  # type: ignore[assignment]
    context: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    # payroll | attendance | leave_request ...
    priority: str = Column(String(20), nullable=False, default="normal")  # type: ignore[assignment]
    reference_id: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    action_url: str | None = Column(String(300), nullable=True)  # type: ignore[assignment]
    is_read: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
