"""Leave and LeaveBalance persistence — queries only, no business rules."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leave_manager.common.constants import ACTIVE_LEAVE_STATUSES
from leave_manager.leave.models import Leave, LeaveBalance


class LeaveRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(
        self,
        leave_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> Optional[Leave]:
        """Load a leave request with its employee."""
        query = (
            select(Leave)
            .where(Leave.id == leave_id)
            .options(selectinload(Leave.employee))
        )
        if for_update:
            query = query.with_for_update(of=Leave).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def list_for_employee(self, employee_id: uuid.UUID) -> Sequence[Leave]:
        """All requests of an employee, newest first, with the resolver loaded."""
        result = await self.db.execute(
            select(Leave)
            .where(Leave.employee_id == employee_id)
            .options(selectinload(Leave.approver))
            .order_by(Leave.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def has_overlapping(
        self,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
    ) -> bool:
        """True if a pending/approved request intersects [start_date, end_date]."""
        result = await self.db.execute(
            select(
                exists().where(
                    Leave.employee_id == employee_id,
                    Leave.status.in_(ACTIVE_LEAVE_STATUSES),
                    Leave.start_date <= end_date,
                    Leave.end_date >= start_date,
                )
            )
        )
        return bool(result.scalar())

    async def add(self, leave: Leave) -> Leave:
        self.db.add(leave)
        await self.db.flush()
        return leave


class LeaveBalanceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_for_year(
        self,
        employee_id: uuid.UUID,
        year: int,
        *,
        for_update: bool = False,
    ) -> Optional[LeaveBalance]:
        query = select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.year == year,
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def add(self, balance: LeaveBalance) -> LeaveBalance:
        self.db.add(balance)
        await self.db.flush()
        return balance
