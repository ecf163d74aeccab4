"""Employee directory test suite — registration with balance bootstrap,
lookups, caching and API endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from leave_manager.common.constants import (
    ALL_EMPLOYEES_CACHE_KEY,
    ITEM_CACHE_TTL,
    LIST_CACHE_TTL,
    UserRole,
    employee_cache_key,
)
from leave_manager.common.exceptions import (
    DuplicateEmployee,
    ForbiddenException,
    ValidationException,
)
from leave_manager.employees.models import Employee
from leave_manager.employees.schemas import EmployeeCreate
from leave_manager.employees.service import EmployeeService
from leave_manager.leave.models import LeaveBalance
from tests.conftest import _seed_employee


@pytest.fixture
def service(db, cache, clock) -> EmployeeService:
    return EmployeeService(db, cache, clock)


def _payload(**overrides) -> EmployeeCreate:
    data = dict(
        name="Neha Sharma",
        email="neha.sharma@acme.io",
        department="Finance",
        joining_date=date(2023, 7, 3),
    )
    data.update(overrides)
    return EmployeeCreate(**data)


# ═════════════════════════════════════════════════════════════════════
# 1. Schema validation
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeCreateSchema:

    def test_email_normalised(self):
        assert _payload(email="  Neha.Sharma@ACME.io ").email == "neha.sharma@acme.io"

    def test_role_defaults_to_employee(self):
        assert _payload().role == UserRole.employee

    def test_short_name_rejected(self):
        with pytest.raises(ValueError):
            _payload(name="N")

    def test_invalid_email_rejected(self):
        with pytest.raises(ValueError):
            _payload(email="not-an-email")


# ═════════════════════════════════════════════════════════════════════
# 2. Create employee — service layer
# ═════════════════════════════════════════════════════════════════════


class TestCreateEmployee:

    async def test_create_opens_current_year_balance(self, db, service):
        emp = await service.create_employee(_payload(), UserRole.hr)

        assert emp.email == "neha.sharma@acme.io"
        assert emp.role == UserRole.employee
        assert emp.is_active is True

        result = await db.execute(select(LeaveBalance).where(LeaveBalance.employee_id == emp.id))
        balances = result.scalars().all()
        assert len(balances) == 1
        assert balances[0].year == 2024
        assert balances[0].casual_leave_balance == 10
        assert balances[0].casual_leave_used == 0
        assert balances[0].sick_leave_balance == 12
        assert balances[0].sick_leave_used == 0

    async def test_create_hr_employee(self, service):
        emp = await service.create_employee(_payload(role=UserRole.hr), UserRole.hr)
        assert emp.role == UserRole.hr

    async def test_non_hr_creator_forbidden(self, db, service):
        with pytest.raises(ForbiddenException):
            await service.create_employee(_payload(), UserRole.employee)

        count = await db.scalar(select(func.count()).select_from(Employee))
        assert count == 0

    async def test_duplicate_email(self, service, test_employee):
        with pytest.raises(DuplicateEmployee):
            await service.create_employee(_payload(email="ravi.kumar@acme.io"), UserRole.hr)

    async def test_duplicate_email_case_insensitive(self, service, test_employee):
        with pytest.raises(DuplicateEmployee):
            await service.create_employee(_payload(email="Ravi.KUMAR@Acme.io"), UserRole.hr)

    async def test_duplicate_of_inactive_employee(self, db, service):
        await _seed_employee(db, email="former@acme.io", is_active=False)
        await db.commit()

        with pytest.raises(DuplicateEmployee):
            await service.create_employee(_payload(email="former@acme.io"), UserRole.hr)

    async def test_duplicate_creates_no_balance(self, db, service, test_employee):
        with pytest.raises(DuplicateEmployee):
            await service.create_employee(_payload(email="ravi.kumar@acme.io"), UserRole.hr)

        count = await db.scalar(select(func.count()).select_from(LeaveBalance))
        assert count == 1   # only the fixture's own row

    async def test_future_joining_date_rejected(self, db, service):
        """The clock is frozen at 2024-03-01; the host date plays no part."""
        with pytest.raises(ValidationException) as exc_info:
            await service.create_employee(_payload(joining_date=date(2025, 6, 1)), UserRole.hr)
        assert "joining_date" in exc_info.value.errors

        count = await db.scalar(select(func.count()).select_from(Employee))
        assert count == 0

    async def test_joining_today_allowed(self, service):
        emp = await service.create_employee(_payload(joining_date=date(2024, 3, 1)), UserRole.hr)
        assert emp.joining_date == date(2024, 3, 1)

    async def test_create_invalidates_employee_list(self, service, cache):
        cache.store[ALL_EMPLOYEES_CACHE_KEY] = []

        await service.create_employee(_payload(), UserRole.hr)

        assert ALL_EMPLOYEES_CACHE_KEY not in cache.store


# ═════════════════════════════════════════════════════════════════════
# 3. Lookups
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeLookups:

    async def test_get_by_id(self, service, test_employee):
        emp = await service.get_employee_by_id(test_employee.id)
        assert emp.name == "Ravi Kumar"
        assert emp.department == "Engineering"

    async def test_get_by_id_unknown(self, service):
        assert await service.get_employee_by_id(uuid.uuid4()) is None

    async def test_get_by_id_is_cached(self, service, cache, test_employee):
        await service.get_employee_by_id(test_employee.id)

        key = employee_cache_key(test_employee.id)
        assert cache.store[key]["email"] == "ravi.kumar@acme.io"
        assert cache.ttls[key] == ITEM_CACHE_TTL

    async def test_get_by_id_served_from_cache(self, service, cache, test_employee):
        key = employee_cache_key(test_employee.id)
        cached = (await service.get_employee_by_id(test_employee.id)).model_dump(mode="json")
        cache.store[key] = {**cached, "name": "Cached Name"}

        emp = await service.get_employee_by_id(test_employee.id)
        assert emp.name == "Cached Name"

    async def test_malformed_cached_employee_is_a_miss(self, service, cache, test_employee):
        key = employee_cache_key(test_employee.id)
        cache.store[key] = {"id": str(test_employee.id)}

        emp = await service.get_employee_by_id(test_employee.id)

        assert emp.name == "Ravi Kumar"
        assert cache.store[key]["email"] == "ravi.kumar@acme.io"

    async def test_malformed_cached_employee_list_is_a_miss(self, service, cache, test_employee):
        cache.store[ALL_EMPLOYEES_CACHE_KEY] = [{"email": "ghost@acme.io"}]

        employees = await service.get_all_employees()

        assert [emp.email for emp in employees] == ["ravi.kumar@acme.io"]
        assert cache.store[ALL_EMPLOYEES_CACHE_KEY][0]["email"] == "ravi.kumar@acme.io"

    async def test_get_by_email(self, service, test_employee):
        emp = await service.get_employee_by_email("RAVI.KUMAR@acme.io")
        assert emp.id == test_employee.id

    async def test_get_by_email_skips_inactive(self, db, service):
        await _seed_employee(db, email="gone@acme.io", is_active=False)
        await db.commit()

        assert await service.get_employee_by_email("gone@acme.io") is None

    async def test_get_all_active_only(self, db, service, test_employee, hr_employee):
        await _seed_employee(db, email="gone@acme.io", is_active=False)
        await db.commit()

        employees = await service.get_all_employees()

        assert {emp.email for emp in employees} == {"ravi.kumar@acme.io", "asha.rao@acme.io"}

    async def test_get_all_newest_first(self, db, service):
        older = await _seed_employee(db, email="older@acme.io")
        newer = await _seed_employee(db, email="newer@acme.io")
        older.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        newer.created_at = datetime(2024, 2, 1, tzinfo=timezone.utc)
        await db.commit()

        employees = await service.get_all_employees()

        assert [emp.email for emp in employees] == ["newer@acme.io", "older@acme.io"]

    async def test_get_all_cached_then_refreshed_on_create(self, service, cache, test_employee):
        first = await service.get_all_employees()
        assert len(first) == 1
        assert cache.ttls[ALL_EMPLOYEES_CACHE_KEY] == LIST_CACHE_TTL

        await service.create_employee(_payload(), UserRole.hr)

        second = await service.get_all_employees()
        assert {emp.email for emp in second} == {"ravi.kumar@acme.io", "neha.sharma@acme.io"}


# ═════════════════════════════════════════════════════════════════════
# 4. API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeAPI:

    async def test_hr_creates_employee(self, client, hr_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "name": "Neha Sharma",
                "email": "Neha.Sharma@acme.io",
                "department": "Finance",
                "joining_date": "2023-07-03",
            },
            headers=hr_headers,
        )

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["email"] == "neha.sharma@acme.io"
        assert data["role"] == "employee"
        assert resp.json()["message"] == "Employee created successfully."

    async def test_employee_cannot_create(self, client, auth_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "name": "Neha Sharma",
                "email": "neha.sharma@acme.io",
                "department": "Finance",
                "joining_date": "2023-07-03",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 403
        assert resp.json()["type"].endswith("/forbidden")

    async def test_create_requires_auth(self, client):
        resp = await client.post("/api/v1/employees", json={})
        assert resp.status_code == 401

    async def test_create_duplicate_returns_409(self, client, hr_headers, test_employee):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "name": "Ravi Again",
                "email": "ravi.kumar@acme.io",
                "department": "Engineering",
                "joining_date": "2023-07-03",
            },
            headers=hr_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/duplicate-employee")

    async def test_create_validation_error(self, client, hr_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "name": "N",
                "email": "not-an-email",
                "department": "Finance",
                "joining_date": "2023-07-03",
            },
            headers=hr_headers,
        )
        assert resp.status_code == 422
        errors = resp.json()["errors"]
        assert "name" in errors
        assert "email" in errors

    async def test_create_future_joining_date_returns_422(self, client, hr_headers):
        """Checked against the service clock (frozen at 2024-03-01), not the host date."""
        resp = await client.post(
            "/api/v1/employees",
            json={
                "name": "Neha Sharma",
                "email": "neha.sharma@acme.io",
                "department": "Finance",
                "joining_date": "2025-06-01",
            },
            headers=hr_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["type"].endswith("/validation-error")
        assert "joining_date" in resp.json()["errors"]

    async def test_malformed_cached_caller_does_not_break_auth(
        self, client, cache, auth_headers, test_employee,
    ):
        cache.store[employee_cache_key(test_employee.id)] = {"id": str(test_employee.id)}

        resp = await client.get(
            f"/api/v1/leaves/balance/{test_employee.id}", headers=auth_headers,
        )

        assert resp.status_code == 200
        assert cache.store[employee_cache_key(test_employee.id)]["name"] == "Ravi Kumar"

    async def test_hr_lists_employees(self, client, hr_headers, test_employee):
        resp = await client.get("/api/v1/employees", headers=hr_headers)

        assert resp.status_code == 200
        emails = {emp["email"] for emp in resp.json()["data"]}
        assert emails == {"ravi.kumar@acme.io", "asha.rao@acme.io"}

    async def test_employee_cannot_list(self, client, auth_headers):
        resp = await client.get("/api/v1/employees", headers=auth_headers)
        assert resp.status_code == 403

    async def test_get_employee(self, client, auth_headers, hr_employee):
        resp = await client.get(f"/api/v1/employees/{hr_employee.id}", headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["name"] == "Asha Rao"

    async def test_get_unknown_employee(self, client, auth_headers):
        resp = await client.get(f"/api/v1/employees/{uuid.uuid4()}", headers=auth_headers)

        assert resp.status_code == 404
        body = resp.json()
        assert body["status"] == 404
        assert body["title"] == "Employee Not Found"
