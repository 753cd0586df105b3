"""Great-circle distance and ``"(lon,lat)"`` point-string helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in metres between two WGS84 coordinates."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def format_point(longitude: float, latitude: float) -> str:
    # Same layout as a PostgreSQL point literal
    return f"({longitude},{latitude})"


def parse_point(point: str) -> tuple[float, float]:
    """Parse ``"(lon,lat)"`` into ``(longitude, latitude)``."""
    body = point.strip().lstrip("(").rstrip(")")
    parts = [p.strip() for p in body.split(",")]
    if len(parts) != 2:
        raise ValueError(f"Invalid point: {point!r}")
    return float(parts[0]), float(parts[1])
