"""Tests for company settings, holidays and sites."""

import pytest
from httpx import AsyncClient


@pytest.fixture
def as_admin(company, login_as):
    return login_as(company_id=company.id, role="admin")


@pytest.mark.asyncio
async def test_read_settings(async_client: AsyncClient, as_admin, company):
    resp = await async_client.get("/api/v1/company/settings")
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == company.id
    assert data["live_absent_enabled"] is True
    assert data["payroll_generation_day"] == 16
    assert data["weekly_holidays"] == []


@pytest.mark.asyncio
async def test_update_settings(async_client: AsyncClient, as_admin):
    resp = await async_client.put(
        "/api/v1/company/settings",
        json={
            "live_payroll_enabled": False,
            "payroll_generation_day": 28,
            "fiscal_year_start": "2026-07-01",
            "weekly_holidays": [6, 5, 5],
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["live_payroll_enabled"] is False
    assert data["live_absent_enabled"] is True
    assert data["payroll_generation_day"] == 28
    assert data["fiscal_year_start"] == "2026-07-01"
    assert data["weekly_holidays"] == [5, 6]

    replaced = await async_client.put("/api/v1/company/settings", json={"weekly_holidays": [0]})
    assert replaced.json()["weekly_holidays"] == [0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"payroll_generation_day": 0},
        {"payroll_generation_day": 32},
        {"weekly_holidays": [7]},
        {"fiscal_year_start": "2026-13-01"},
        {"live_absent_enabled": None},
        {"live_payroll_enabled": None},
        {"pay_frequency": None},
        {"pay_frequency": "  "},
        {"weekly_holidays": None},
    ],
)
async def test_invalid_settings_rejected(async_client: AsyncClient, as_admin, body):
    resp = await async_client.put("/api/v1/company/settings", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_null_flag_leaves_settings_untouched(async_client: AsyncClient, as_admin):
    resp = await async_client.put("/api/v1/company/settings", json={"live_absent_enabled": None})
    assert resp.status_code == 422

    current = await async_client.get("/api/v1/company/settings")
    assert current.json()["live_absent_enabled"] is True
    assert current.json()["pay_frequency"] == "monthly"


@pytest.mark.asyncio
async def test_holiday_lifecycle(async_client: AsyncClient, as_admin):
    created = await async_client.post(
        "/api/v1/company/holidays",
        json={"name": "Victory Day", "start_day": "2026-12-16", "end_day": "2026-12-16"},
    )
    assert created.status_code == 201
    holiday_id = created.json()["id"]

    listed = await async_client.get("/api/v1/company/holidays")
    assert [h["name"] for h in listed.json()] == ["Victory Day"]

    deleted = await async_client.delete(f"/api/v1/company/holidays/{holiday_id}")
    assert deleted.status_code == 200
    assert (await async_client.get("/api/v1/company/holidays")).json() == []

    missing = await async_client.delete(f"/api/v1/company/holidays/{holiday_id}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_holiday_range_must_be_ordered(async_client: AsyncClient, as_admin):
    resp = await async_client.post(
        "/api/v1/company/holidays",
        json={"name": "Backwards", "start_day": "2026-05-03", "end_day": "2026-05-01"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_site_normalises_times(async_client: AsyncClient, as_admin):
    resp = await async_client.post(
        "/api/v1/company/sites",
        json={"name": "Warehouse", "latitude": 23.75, "longitude": 90.39, "check_in": "8:05"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["check_in"] == "08:05"
    assert data["check_out"] == "17:00"

    listed = await async_client.get("/api/v1/company/sites")
    assert [s["name"] for s in listed.json()] == ["Warehouse"]


@pytest.mark.asyncio
async def test_company_endpoints_are_admin_only(async_client: AsyncClient, make_employee, login_as):
    emp = await make_employee()
    login_as(employee=emp, role="supervisor")

    resp = await async_client.get("/api/v1/company/settings")
    assert resp.status_code == 403
