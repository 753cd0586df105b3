"""Explicit per-run context handed to the batch routines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from app.core.timeutils import local_now


@dataclass(frozen=True)
class RunContext:
    today: date
    now: datetime  # UTC

    @classmethod
    def current(cls) -> RunContext:
        return cls(today=local_now().date(), now=datetime.now(timezone.utc))
