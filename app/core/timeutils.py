"""
Local-time helpers.

Every company runs on the single configured UTC offset; dates are kept as
``YYYY-MM-DD`` strings and times of day as ``HH:MM``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from app.core.config import settings


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``+05:30`` / ``-04:00`` / ``+06`` into a fixed ``timezone``."""
    sign = 1 if tz_offset[0] == "+" else -1
    parts = tz_offset[1:].split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 else 0
    return timezone(timedelta(hours=sign * hours, minutes=sign * minutes))


def local_tz() -> timezone:
    return parse_offset(settings.TIMEZONE_OFFSET)


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone(local_tz())


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` (seconds tolerated) time of day."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    return time(hour=hour, minute=minute)


def js_weekday(d: date) -> int:
    """Weekday numbered 0 = Sunday … 6 = Saturday (holiday config convention)."""
    return (d.weekday() + 1) % 7


def date_str(d: date) -> str:
    return d.strftime("%Y-%m-%d")
