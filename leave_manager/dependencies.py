"""Shared FastAPI dependencies — cache, clock and service factories."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_manager.common.cache import Cache
from leave_manager.common.clock import Clock
from leave_manager.database import get_db
from leave_manager.employees.service import EmployeeService
from leave_manager.leave.service import LeaveService


def get_cache(request: Request) -> Cache:
    return request.app.state.cache


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_employee_service(
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
    clock: Clock = Depends(get_clock),
) -> EmployeeService:
    return EmployeeService(db, cache, clock)


def get_leave_service(
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
    clock: Clock = Depends(get_clock),
) -> LeaveService:
    return LeaveService(db, cache, clock)
