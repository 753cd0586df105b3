"""
Shared test fixtures: in-memory aiosqlite database, httpx client wired to
the app, seed data and an auth override to act as a given user.
"""

import os
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SERVICE_ROLE_KEY"] = "test-service-role-key"
os.environ["SECRET_KEY"] = "test-secret-key"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_current_active_user, get_db
from app.api.v1.endpoints.auth import limiter
from app.db.base import Base
from app.main import app
from app.models.company import Company, Site
from app.models.employee import Employee, Grade
from app.models.user import User
from app.services.context import RunContext

# Monday; JS weekday 1
MONDAY = datetime(2026, 3, 16, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test, shared by the app and the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for seeding and direct queries."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def service_headers() -> dict:
    """Headers the external scheduler sends to the batch endpoints."""
    return {"Authorization": f"Bearer {os.environ['SERVICE_ROLE_KEY']}"}


@pytest.fixture
def run_ctx() -> RunContext:
    return RunContext(today=MONDAY.date(), now=MONDAY)


# ── Seed data ───────────────────────────────────────────────────────
@pytest.fixture
async def company(db_session: AsyncSession) -> Company:
    c = Company(
        name="Acme",
        live_absent_enabled=True,
        live_payroll_enabled=True,
        payroll_generation_day=MONDAY.day,
    )
    db_session.add(c)
    await db_session.commit()
    return c


@pytest.fixture
async def grade(db_session: AsyncSession, company: Company) -> Grade:
    g = Grade(company_id=company.id, name="Engineer II", basic_salary=Decimal("50000.00"))
    db_session.add(g)
    await db_session.commit()
    return g


@pytest.fixture
async def site(db_session: AsyncSession, company: Company) -> Site:
    s = Site(
        company_id=company.id,
        name="Head Office",
        latitude=23.8103,
        longitude=90.4125,
        check_in="09:00",
        check_out="17:00",
    )
    db_session.add(s)
    await db_session.commit()
    return s


@pytest.fixture
def make_employee(db_session: AsyncSession, company: Company, grade: Grade):
    """Factory for approved, graded, active employees of ``company``."""

    async def _make(**overrides) -> Employee:
        fields = {
            "company_id": company.id,
            "first_name": "Employee",
            "grade_id": grade.id,
            "has_approval": True,
            "is_active": True,
        }
        fields.update(overrides)
        emp = Employee(**fields)
        db_session.add(emp)
        await db_session.commit()
        return emp

    return _make


# ── Auth override ───────────────────────────────────────────────────
@pytest.fixture
def login_as():
    """Act as a user bound to *employee* (or just to *company_id*)."""

    def _login(*, employee: Employee | None = None, role: str = "employee",
               company_id: int | None = None, user_id: int = 1) -> User:
        user = User(
            id=user_id,
            email=f"user{user_id}@example.com",
            hashed_password="x",
            role=role,
            company_id=company_id if company_id is not None else employee.company_id,
            employee_id=employee.id if employee is not None else None,
            is_active=True,
        )

        async def _override() -> User:
            return user

        app.dependency_overrides[get_current_active_user] = _override
        return user

    yield _login
    app.dependency_overrides.pop(get_current_active_user, None)
