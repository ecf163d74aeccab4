"""Shared test fixtures — async DB, cache, clock, client, factories, auth helpers.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL, and a
dict-backed cache in place of Redis.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timezone
from typing import Any, AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_manager.auth.tokens import create_access_token
from leave_manager.common.clock import Clock
from leave_manager.common.constants import ANNUAL_LEAVE_QUOTA, LeaveType, UserRole
from leave_manager.database import Base, get_db
from leave_manager.dependencies import get_cache, get_clock
from leave_manager.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leave_manager.employees.models  # noqa: F401
import leave_manager.leave.models  # noqa: F401

from leave_manager.employees.models import Employee
from leave_manager.leave.models import LeaveBalance


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_manager.common.rate_limit import limiter

    limiter.reset()
    yield


# ── Test doubles ────────────────────────────────────────────────────

class MemoryCache:
    """Dict-backed stand-in for RedisCache. Records TTLs; never expires."""

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def set(
        self, key: str, value: Any, ttl: int, *, only_if_absent: bool = False,
    ) -> bool:
        if only_if_absent and key in self.store:
            return False
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> bool:
        for key in keys:
            self.store.pop(key, None)
            self.ttls.pop(key, None)
        return True

    async def close(self) -> None:
        return None


class FrozenClock(Clock):
    """Clock pinned to a fixed instant."""

    def __init__(self, at: datetime) -> None:
        self.at = at

    def now(self) -> datetime:
        return self.at


FROZEN_NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app(cache, clock):
    """Create a fresh app instance with DB, cache and clock overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_cache] = lambda: cache
    application.dependency_overrides[get_clock] = lambda: clock
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    name: str = "Test User",
    email: Optional[str] = None,
    department: str = "Engineering",
    joining_date: date = date(2024, 1, 1),
    role: UserRole = UserRole.employee,
    is_active: bool = True,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        name=name,
        email=email or f"user.{uuid.uuid4().hex[:8]}@acme.io",
        department=department,
        joining_date=joining_date,
        role=role,
        is_active=is_active,
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )


async def _seed_employee(db: AsyncSession, **kwargs) -> Employee:
    emp = Employee(**_make_employee(**kwargs))
    db.add(emp)
    await db.flush()
    return emp


async def _seed_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    *,
    year: int = 2024,
    casual_leave_balance: int = ANNUAL_LEAVE_QUOTA[LeaveType.casual],
    casual_leave_used: int = 0,
    sick_leave_balance: int = ANNUAL_LEAVE_QUOTA[LeaveType.sick],
    sick_leave_used: int = 0,
) -> LeaveBalance:
    bal = LeaveBalance(
        id=uuid.uuid4(),
        employee_id=employee_id,
        year=year,
        casual_leave_balance=casual_leave_balance,
        casual_leave_used=casual_leave_used,
        sick_leave_balance=sick_leave_balance,
        sick_leave_used=sick_leave_used,
        created_at=FROZEN_NOW,
        updated_at=FROZEN_NOW,
    )
    db.add(bal)
    await db.flush()
    return bal


@pytest.fixture
async def test_employee(db) -> Employee:
    """An active employee with a full current-year balance, committed."""
    emp = await _seed_employee(db, name="Ravi Kumar", email="ravi.kumar@acme.io")
    await _seed_balance(db, emp.id)
    await db.commit()
    return emp


@pytest.fixture
async def hr_employee(db) -> Employee:
    """An active HR employee, committed."""
    emp = await _seed_employee(
        db, name="Asha Rao", email="asha.rao@acme.io",
        department="People Ops", joining_date=date(2020, 6, 1), role=UserRole.hr,
    )
    await _seed_balance(db, emp.id)
    await db.commit()
    return emp


# ── Auth helpers ────────────────────────────────────────────────────

def auth_headers_for(employee_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(employee_id)}"}


@pytest.fixture
def auth_headers(test_employee) -> dict[str, str]:
    return auth_headers_for(test_employee.id)


@pytest.fixture
def hr_headers(hr_employee) -> dict[str, str]:
    return auth_headers_for(hr_employee.id)
