"""Tests for check-in classification, distance and local-time helpers."""

from datetime import date, time, timedelta

import pytest

from app.core.timeutils import js_weekday, parse_hhmm, parse_offset
from app.models.attendance import TAG_LATE, TAG_PRESENT, TAG_WRONG_LOCATION
from app.services.checkin import classify_check_in, evaluate_check_in, is_on_time
from app.services.geo import format_point, haversine_distance, parse_point

SITE_LAT, SITE_LON = 23.8103, 90.4125


def test_present_when_early_and_close():
    assert classify_check_in(time(8, 50), "09:00", 50) == TAG_PRESENT


def test_late_when_close_but_after_check_in():
    assert classify_check_in(time(9, 20), "09:00", 50) == TAG_LATE


def test_wrong_location_wins_over_punctuality():
    """Far away is Wrong_Location whether or not the employee is on time."""
    assert classify_check_in(time(8, 0), "09:00", 500) == TAG_WRONG_LOCATION
    assert classify_check_in(time(11, 0), "09:00", 500) == TAG_WRONG_LOCATION


def test_exactly_check_in_time_is_on_time():
    assert classify_check_in(time(9, 0), "09:00", 10) == TAG_PRESENT


def test_seconds_are_ignored():
    """09:00:59 still counts as 09:00."""
    assert is_on_time(time(9, 0, 59), "09:00") is True
    assert is_on_time(time(9, 1, 0), "09:00") is False


def test_comparison_uses_24_hour_clock():
    assert is_on_time(time(13, 0), "14:30") is True
    assert is_on_time(time(21, 0), "09:00") is False


def test_exactly_radius_is_within_range():
    assert classify_check_in(time(8, 0), "09:00", 100.0) == TAG_PRESENT
    assert classify_check_in(time(8, 0), "09:00", 100.01) == TAG_WRONG_LOCATION


def test_custom_radius():
    assert classify_check_in(time(8, 0), "09:00", 150, radius_m=200) == TAG_PRESENT


def test_evaluate_check_in_near_site():
    verdict = evaluate_check_in(time(8, 55), SITE_LAT + 0.0003, SITE_LON, SITE_LAT, SITE_LON, "09:00")
    assert verdict.tag == TAG_PRESENT
    assert verdict.on_time is True
    assert verdict.within_range is True
    assert verdict.distance_m == pytest.approx(33.36, abs=0.1)


def test_evaluate_check_in_far_from_site():
    verdict = evaluate_check_in(time(8, 55), SITE_LAT + 0.0045, SITE_LON, SITE_LAT, SITE_LON, "09:00")
    assert verdict.tag == TAG_WRONG_LOCATION
    assert verdict.on_time is True
    assert verdict.within_range is False
    assert verdict.distance_m == pytest.approx(500.4, abs=1)


# ── Geo helpers ─────────────────────────────────────────────────────
def test_haversine_same_point_is_zero():
    assert haversine_distance(SITE_LAT, SITE_LON, SITE_LAT, SITE_LON) == 0


def test_haversine_one_degree_of_latitude():
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111_194.9, rel=1e-4)


def test_point_string_layout():
    assert format_point(90.4125, 23.8103) == "(90.4125,23.8103)"
    assert parse_point("(90.4125, 23.8103)") == (90.4125, 23.8103)


def test_parse_point_rejects_garbage():
    with pytest.raises(ValueError):
        parse_point("(90.4125)")


# ── Time helpers ────────────────────────────────────────────────────
def test_js_weekday_numbering():
    assert js_weekday(date(2026, 3, 15)) == 0  # Sunday
    assert js_weekday(date(2026, 3, 16)) == 1
    assert js_weekday(date(2026, 3, 21)) == 6  # Saturday


def test_parse_offset():
    assert parse_offset("+06:00").utcoffset(None) == timedelta(hours=6)
    assert parse_offset("+05:30").utcoffset(None) == timedelta(hours=5, minutes=30)
    assert parse_offset("-04:00").utcoffset(None) == timedelta(hours=-4)


def test_parse_hhmm():
    assert parse_hhmm("07:05") == time(7, 5)
    assert parse_hhmm("18:30:00") == time(18, 30)
    with pytest.raises(ValueError):
        parse_hhmm("0900")
