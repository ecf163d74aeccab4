"""Leave service layer — working days, overlap check, balance accounting,
and the apply → approve/reject workflow.

Business logic:
  - Working days exclude Saturdays and Sundays; no holiday calendar
  - Apply only checks the remaining balance; approval is the single debit
  - A request resolves exactly once: pending → approved | rejected
  - Writes commit before the affected cache keys are invalidated; approval
    writes the new balance through and read-through fills never overwrite
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from leave_manager.common.cache import Cache
from leave_manager.common.clock import Clock
from leave_manager.common.constants import (
    ITEM_CACHE_TTL,
    LIST_CACHE_TTL,
    WEEKEND_DAYS,
    LeaveAction,
    LeaveStatus,
    LeaveType,
    employee_leaves_cache_key,
    leave_balance_cache_key,
)
from leave_manager.common.exceptions import (
    BalanceRecordMissing,
    ConcurrentUpdate,
    EmployeeNotFound,
    InsufficientBalance,
    InvalidDateRange,
    LeaveAlreadyProcessed,
    LeaveBeforeJoining,
    LeaveNotFound,
    OverlappingLeave,
    ZeroDurationLeave,
)
from leave_manager.employees.repository import EmployeeRepository
from leave_manager.leave.models import Leave
from leave_manager.leave.repository import LeaveBalanceRepository, LeaveRepository
from leave_manager.leave.schemas import (
    LeaveBalanceOut,
    LeaveBalanceRecord,
    LeaveOut,
    LeaveWithApproverOut,
)

logger = logging.getLogger(__name__)

_leave_list = TypeAdapter(list[LeaveWithApproverOut])


def count_working_days(
    start_date: date,
    end_date: date,
    weekend_days: Iterable[int] = WEEKEND_DAYS,
) -> int:
    """Count days in [start_date, end_date] that are not weekend days.

    Returns 0 when start_date is after end_date.
    """
    weekend = frozenset(weekend_days)
    days = 0
    current = start_date
    while current <= end_date:
        if current.weekday() not in weekend:
            days += 1
        current += timedelta(days=1)
    return days


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: apply, process, balance and history."""

    def __init__(self, db: AsyncSession, cache: Cache, clock: Clock) -> None:
        self.db = db
        self.cache = cache
        self.clock = clock
        self.employees = EmployeeRepository(db)
        self.leaves = LeaveRepository(db)
        self.balances = LeaveBalanceRepository(db)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def has_overlapping_leave(
        self,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> bool:
        """Closed-interval overlap against the employee's pending/approved requests."""
        return await self.leaves.has_overlapping(employee_id, start_date, end_date)

    async def _invalidate(self, employee_id: uuid.UUID, year: int) -> None:
        await self.cache.delete(
            employee_leaves_cache_key(employee_id),
            leave_balance_cache_key(employee_id, year),
        )

    async def _discard_malformed(self, key: str, exc: ValidationError) -> None:
        logger.warning("Discarding malformed cache entry %s: %s", key, exc)
        await self.cache.delete(key)

    # ─────────────────────────────────────────────────────────────────
    # Apply Leave
    # ─────────────────────────────────────────────────────────────────

    async def apply_leave(
        self,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> LeaveOut:
        """Submit a pending leave request after validating dates, overlap
        and the remaining balance. The balance itself is not touched."""

        # ── Load employee ───────────────────────────────────────────
        # The row lock serialises concurrent applications of one employee
        # across the overlap check and the insert.
        employee = await self.employees.get(employee_id, for_update=True)
        if employee is None:
            raise EmployeeNotFound(employee_id)

        # ── Dates ───────────────────────────────────────────────────
        if start_date > end_date:
            raise InvalidDateRange(start_date, end_date)

        if start_date < employee.joining_date:
            raise LeaveBeforeJoining(employee.joining_date)

        total_days = count_working_days(start_date, end_date)
        if total_days <= 0:
            raise ZeroDurationLeave()

        # ── Overlap ─────────────────────────────────────────────────
        if await self.has_overlapping_leave(employee_id, start_date, end_date):
            raise OverlappingLeave()

        # ── Balance (check only) ────────────────────────────────────
        year = self.clock.current_year()
        balance = await self.balances.get_for_year(employee_id, year)
        if balance is None:
            raise BalanceRecordMissing(employee_id, year)

        available = balance.remaining(leave_type)
        if total_days > available:
            raise InsufficientBalance(leave_type.value, available, total_days)

        # ── Create leave request ────────────────────────────────────
        now = self.clock.now()
        leave = Leave(
            id=uuid.uuid4(),
            employee_id=employee_id,
            type=leave_type,
            start_date=start_date,
            end_date=end_date,
            total_days=total_days,
            reason=reason,
            status=LeaveStatus.pending,
            created_at=now,
            updated_at=now,
        )
        await self.leaves.add(leave)
        await self.db.commit()

        await self._invalidate(employee_id, year)

        logger.info("Leave applied: %s for employee %s", leave.id, employee_id)
        return LeaveOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    async def process_leave(
        self,
        leave_id: uuid.UUID,
        action: LeaveAction,
        resolver_id: uuid.UUID,
        comments: Optional[str] = None,
    ) -> LeaveOut:
        """Resolve a pending request. Approval moves ``total_days`` from the
        remaining balance of the leave's type to its used counter."""

        leave = await self.leaves.get(leave_id, for_update=True)
        if leave is None:
            raise LeaveNotFound(leave_id)

        if leave.status != LeaveStatus.pending:
            raise LeaveAlreadyProcessed(leave_id, leave.status.value)

        now = self.clock.now()
        year = now.year
        employee_id = leave.employee_id
        balance = None

        if action == LeaveAction.approve:
            balance = await self.balances.get_for_year(employee_id, year, for_update=True)
            if balance is None:
                raise BalanceRecordMissing(employee_id, year)
            balance.debit(leave.type, leave.total_days)
            balance.updated_at = now
            leave.status = LeaveStatus.approved
        else:
            leave.status = LeaveStatus.rejected

        leave.approved_by = resolver_id
        leave.approved_at = now
        leave.comments = comments or ""
        leave.updated_at = now

        try:
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConcurrentUpdate("Leave balance") from exc

        await self._invalidate(employee_id, year)
        if balance is not None:
            # Write the committed balance through. Read-through fills only set
            # absent keys, so a reader holding the pre-approval row cannot
            # overwrite it.
            key = leave_balance_cache_key(employee_id, year)
            record = LeaveBalanceRecord.model_validate(balance)
            if not await self.cache.set(key, record.model_dump(mode="json"), ITEM_CACHE_TTL):
                await self.cache.delete(key)

        logger.info(
            "Leave %s: %s by HR %s", leave.status.value, leave_id, resolver_id,
        )
        return LeaveOut.model_validate(leave)

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    async def get_leave_balance(self, employee_id: uuid.UUID) -> LeaveBalanceOut:
        """Current-year totals per leave type. Cached for 30 minutes."""
        year = self.clock.current_year()
        key = leave_balance_cache_key(employee_id, year)

        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return LeaveBalanceOut.from_record(LeaveBalanceRecord.model_validate(cached))
            except ValidationError as exc:
                await self._discard_malformed(key, exc)

        balance = await self.balances.get_for_year(employee_id, year)
        if balance is None:
            raise BalanceRecordMissing(employee_id, year)
        record = LeaveBalanceRecord.model_validate(balance)
        await self.cache.set(
            key, record.model_dump(mode="json"), ITEM_CACHE_TTL, only_if_absent=True,
        )
        return LeaveBalanceOut.from_record(record)

    async def get_employee_leaves(
        self,
        employee_id: uuid.UUID,
    ) -> list[LeaveWithApproverOut]:
        """All of an employee's requests, newest first. Cached for 10 minutes."""
        key = employee_leaves_cache_key(employee_id)

        cached = await self.cache.get(key)
        if cached is not None:
            try:
                return _leave_list.validate_python(cached)
            except ValidationError as exc:
                await self._discard_malformed(key, exc)

        leaves = [
            LeaveWithApproverOut.model_validate(leave)
            for leave in await self.leaves.list_for_employee(employee_id)
        ]
        await self.cache.set(
            key, _leave_list.dump_python(leaves, mode="json"), LIST_CACHE_TTL,
            only_if_absent=True,
        )
        return leaves
