"""Employee directory — registration, lookups and balance bootstrap.

Reads go through the cache; every write commits first and then invalidates
the cache keys it affects.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_manager.common.cache import Cache
from leave_manager.common.clock import Clock
from leave_manager.common.constants import (
    ALL_EMPLOYEES_CACHE_KEY,
    ANNUAL_LEAVE_QUOTA,
    ITEM_CACHE_TTL,
    LIST_CACHE_TTL,
    LeaveType,
    UserRole,
    employee_cache_key,
)
from leave_manager.common.exceptions import (
    DuplicateEmployee,
    ForbiddenException,
    ValidationException,
)
from leave_manager.employees.models import Employee
from leave_manager.employees.repository import EmployeeRepository
from leave_manager.employees.schemas import EmployeeCreate, EmployeeOut
from leave_manager.leave.models import LeaveBalance
from leave_manager.leave.repository import LeaveBalanceRepository

logger = logging.getLogger(__name__)

_employee_list = TypeAdapter(list[EmployeeOut])


class EmployeeService:
    """Async employee operations backed by the repository and cache."""

    def __init__(self, db: AsyncSession, cache: Cache, clock: Clock) -> None:
        self.db = db
        self.cache = cache
        self.clock = clock
        self.employees = EmployeeRepository(db)
        self.balances = LeaveBalanceRepository(db)

    async def _discard_malformed(self, key: str, exc: ValidationError) -> None:
        logger.warning("Discarding malformed cache entry %s: %s", key, exc)
        await self.cache.delete(key)

    # ── Create ──────────────────────────────────────────────────────

    async def create_employee(
        self,
        data: EmployeeCreate,
        creator_role: UserRole,
    ) -> EmployeeOut:
        """Register an employee and open their current-year leave balance.

        Both rows are written in one transaction, so an employee never
        exists without a balance for the year they were created in.
        """
        if creator_role != UserRole.hr:
            raise ForbiddenException("Only HR can create employees.")

        if data.joining_date > self.clock.today():
            raise ValidationException(
                {"joining_date": ["joining_date cannot be in the future."]},
                detail="Joining date cannot be in the future.",
            )

        email = data.email.strip().lower()
        if await self.employees.get_by_email(email) is not None:
            raise DuplicateEmployee(email)

        now = self.clock.now()
        employee = Employee(
            id=uuid.uuid4(),
            name=data.name,
            email=email,
            department=data.department,
            joining_date=data.joining_date,
            role=data.role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        balance = LeaveBalance(
            employee_id=employee.id,
            year=now.year,
            casual_leave_balance=ANNUAL_LEAVE_QUOTA[LeaveType.casual],
            casual_leave_used=0,
            sick_leave_balance=ANNUAL_LEAVE_QUOTA[LeaveType.sick],
            sick_leave_used=0,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.employees.add(employee)
            await self.balances.add(balance)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            if "email" in str(exc.orig).lower():
                raise DuplicateEmployee(email) from exc
            raise

        await self.cache.delete(ALL_EMPLOYEES_CACHE_KEY)

        logger.info("Employee created: %s (%s)", employee.email, employee.id)
        return EmployeeOut.model_validate(employee)

    # ── Read ────────────────────────────────────────────────────────

    async def get_employee_by_id(self, employee_id: uuid.UUID) -> Optional[EmployeeOut]:
        """Return the employee or None. Cached for 30 minutes."""
        key = employee_cache_key(employee_id)
        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return EmployeeOut.model_validate(cached)
            except ValidationError as exc:
                await self._discard_malformed(key, exc)

        employee = await self.employees.get(employee_id)
        if employee is None:
            return None

        out = EmployeeOut.model_validate(employee)
        await self.cache.set(key, out.model_dump(mode="json"), ITEM_CACHE_TTL, only_if_absent=True)
        return out

    async def get_employee_by_email(self, email: str) -> Optional[EmployeeOut]:
        """Active employees only; the lookup is case-insensitive."""
        employee = await self.employees.get_by_email(email, active_only=True)
        if employee is None:
            return None
        return EmployeeOut.model_validate(employee)

    async def get_all_employees(self) -> list[EmployeeOut]:
        """Active employees, newest first. Cached for 10 minutes."""
        cached = await self.cache.get(ALL_EMPLOYEES_CACHE_KEY)
        if cached is not None:
            try:
                return _employee_list.validate_python(cached)
            except ValidationError as exc:
                await self._discard_malformed(ALL_EMPLOYEES_CACHE_KEY, exc)

        employees = [
            EmployeeOut.model_validate(emp) for emp in await self.employees.list_active()
        ]
        await self.cache.set(
            ALL_EMPLOYEES_CACHE_KEY,
            _employee_list.dump_python(employees, mode="json"),
            LIST_CACHE_TTL,
            only_if_absent=True,
        )
        return employees
