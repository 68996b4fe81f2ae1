"""
conftest.py: shared fixtures for all tests.

Strategy:
- Every test gets its own SQLite database file (aiosqlite) with the full
  schema created from the ORM metadata, so tests never share rows. Foreign
  keys are switched on so RESTRICT behaves as on PostgreSQL.
- The app's ``get_db`` and ``get_clock`` dependencies are overridden: requests
  use the test database and a pinned business-local clock that tests move
  with ``clock.set(...)``.
- Fixture data is written through short-lived sessions that are closed before
  the test runs, so SQLite never sees a lingering reader while the app writes.
"""

from __future__ import annotations

import os
from datetime import datetime, time
from zoneinfo import ZoneInfo

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./emenu_test.db")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("TIMEZONE", "Asia/Phnom_Penh")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from emenu.core.config import settings
from emenu.core.middleware import get_clock
from emenu.core.security import create_access_token
from emenu.db.models import AttendancePolicy, Base, Business, User, WorkSchedule
from emenu.db.session import get_db
from emenu.main import app

TZ = ZoneInfo(settings.TIMEZONE)

# 2026-10-19 is a Monday
MONDAY = datetime(2026, 10, 19, tzinfo=TZ)

WEEKDAYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY"]

# Phnom Penh office used by the geofence fixtures
OFFICE_LAT = 11.5564
OFFICE_LON = 104.9282


def at(day: datetime, hour: int, minute: int = 0, second: int = 0) -> datetime:
    """Business-local instant on ``day``."""
    return day.replace(hour=hour, minute=minute, second=second, microsecond=0)


class FrozenClock:
    """Mutable 'now' handed to the app through the get_clock override."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def set(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    @event.listens_for(eng.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(at(MONDAY, 9, 0))


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, clock: FrozenClock) -> AsyncClient:
    """HTTPX async client bound to the test database and the frozen clock."""

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_clock] = clock
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Business / users
# ---------------------------------------------------------------------------


async def _add(session_factory, obj):
    async with session_factory() as session:
        session.add(obj)
        await session.commit()
        await session.refresh(obj)
    return obj


def auth_headers(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}


@pytest_asyncio.fixture
async def business(session_factory) -> Business:
    return await _add(session_factory, Business(name="Test Restaurant"))


async def _make_user(session_factory, business: Business, username: str, role: str) -> User:
    return await _add(
        session_factory,
        User(
            username=username,
            password_hash="!",
            role=role,
            full_name=username.replace("_", " ").title(),
            business_id=business.id,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def admin_user(session_factory, business) -> User:
    return await _make_user(session_factory, business, "qa_admin", "admin")


@pytest_asyncio.fixture
async def employee_user(session_factory, business) -> User:
    return await _make_user(session_factory, business, "qa_employee", "employee")


@pytest_asyncio.fixture
async def other_employee(session_factory, business) -> User:
    return await _make_user(session_factory, business, "qa_other_employee", "employee")


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user.id)


@pytest.fixture
def employee_headers(employee_user: User) -> dict:
    return auth_headers(employee_user.id)


@pytest.fixture
def other_headers(other_employee: User) -> dict:
    return auth_headers(other_employee.id)


# ---------------------------------------------------------------------------
# Policies / schedules
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def policy(session_factory, business) -> AttendancePolicy:
    """09:00–18:00, 15 min grace, half day below 240 min, no geofence."""
    return await _add(
        session_factory,
        AttendancePolicy(
            business_id=business.id,
            name="Standard shift",
            shift_start=time(9, 0),
            shift_end=time(18, 0),
            late_threshold_minutes=15,
            half_day_threshold_minutes=240,
            require_location_check=False,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def geo_policy(session_factory, business) -> AttendancePolicy:
    """Same shift as ``policy`` but check-ins must be within 200 m of the office."""
    return await _add(
        session_factory,
        AttendancePolicy(
            business_id=business.id,
            name="Office only",
            shift_start=time(9, 0),
            shift_end=time(18, 0),
            late_threshold_minutes=15,
            half_day_threshold_minutes=240,
            require_location_check=True,
            office_latitude=OFFICE_LAT,
            office_longitude=OFFICE_LON,
            allowed_radius_meters=200,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def schedule(session_factory, employee_user, policy) -> WorkSchedule:
    return await _add(
        session_factory,
        WorkSchedule(
            employee_id=employee_user.id,
            policy_id=policy.id,
            name="Weekdays",
            work_days=WEEKDAYS,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def geo_schedule(session_factory, employee_user, geo_policy) -> WorkSchedule:
    return await _add(
        session_factory,
        WorkSchedule(
            employee_id=employee_user.id,
            policy_id=geo_policy.id,
            name="Weekdays at the office",
            work_days=WEEKDAYS,
            is_active=True,
        ),
    )


@pytest.fixture
def make_headers():
    """Bearer headers for an arbitrary user id."""
    return auth_headers
