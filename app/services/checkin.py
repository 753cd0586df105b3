"""
Check-in classification.

A check-in is tagged from two facts: whether it happened no later than the
site's ``check_in`` time (minute resolution, 24-hour clock) and whether the
employee stood within the allowed radius of the site. Both comparisons are
inclusive. ``Absent`` is never produced here; it belongs to the daily job.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time

from app.core.timeutils import parse_hhmm
from app.models.attendance import TAG_LATE, TAG_PRESENT, TAG_WRONG_LOCATION
from app.services.geo import haversine_distance

DEFAULT_RADIUS_M = 100.0


@dataclass(frozen=True)
class CheckInVerdict:
    tag: str
    on_time: bool
    within_range: bool
    distance_m: float


def is_on_time(current_time: time, check_in: str) -> bool:
    return current_time.replace(second=0, microsecond=0) <= parse_hhmm(check_in)


def classify_check_in(
    current_time: time,
    check_in: str,
    distance_m: float,
    radius_m: float = DEFAULT_RADIUS_M,
) -> str:
    """Return Present, Late or Wrong_Location."""
    if distance_m > radius_m:
        return TAG_WRONG_LOCATION
    return TAG_PRESENT if is_on_time(current_time, check_in) else TAG_LATE


def evaluate_check_in(
    current_time: time,
    latitude: float,
    longitude: float,
    site_latitude: float,
    site_longitude: float,
    check_in: str,
    radius_m: float = DEFAULT_RADIUS_M,
) -> CheckInVerdict:
    distance = haversine_distance(latitude, longitude, site_latitude, site_longitude)
    return CheckInVerdict(
        tag=classify_check_in(current_time, check_in, distance, radius_m),
        on_time=is_on_time(current_time, check_in),
        within_range=distance <= radius_m,
        distance_m=round(distance, 2),
    )
