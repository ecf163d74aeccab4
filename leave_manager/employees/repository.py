"""Employee persistence — queries only, no business rules."""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_manager.employees.models import Employee


class EmployeeRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(
        self,
        employee_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> Optional[Employee]:
        query = select(Employee).where(Employee.id == employee_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_by_email(
        self,
        email: str,
        *,
        active_only: bool = False,
    ) -> Optional[Employee]:
        query = select(Employee).where(Employee.email == email.strip().lower())
        if active_only:
            query = query.where(Employee.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def list_active(self) -> Sequence[Employee]:
        result = await self.db.execute(
            select(Employee)
            .where(Employee.is_active.is_(True))
            .order_by(Employee.created_at.desc())
        )
        return result.scalars().all()

    async def add(self, employee: Employee) -> Employee:
        self.db.add(employee)
        await self.db.flush()
        return employee
