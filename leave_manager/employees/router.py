"""Employee router — register, list and look up employees.

Routes:
    /employees        — List (HR), create (HR)
    /employees/{id}   — Get one (any authenticated user)
"""

import uuid

from fastapi import APIRouter, Depends

from leave_manager.auth.dependencies import get_current_user, require_role
from leave_manager.common.constants import UserRole
from leave_manager.common.exceptions import EmployeeNotFound
from leave_manager.dependencies import get_employee_service
from leave_manager.employees.schemas import EmployeeCreate, EmployeeOut
from leave_manager.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["employees"])


# ── POST /employees — Create employee ──────────────────────────────

@router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    current_user: EmployeeOut = Depends(require_role(UserRole.hr)),
    service: EmployeeService = Depends(get_employee_service),
):
    """Register an employee and open their leave balance. Requires **hr**."""
    employee = await service.create_employee(body, current_user.role)
    return {
        "data": employee.model_dump(mode="json"),
        "message": "Employee created successfully.",
    }


# ── GET /employees — List active employees ─────────────────────────

@router.get("")
async def list_employees(
    current_user: EmployeeOut = Depends(require_role(UserRole.hr)),
    service: EmployeeService = Depends(get_employee_service),
):
    """List active employees, newest first. Requires **hr**."""
    employees = await service.get_all_employees()
    return {
        "data": [emp.model_dump(mode="json") for emp in employees],
        "message": "Employees retrieved successfully.",
    }


# ── GET /employees/{id} ─────────────────────────────────────────────

@router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    current_user: EmployeeOut = Depends(get_current_user),
    service: EmployeeService = Depends(get_employee_service),
):
    """Retrieve a single employee."""
    employee = await service.get_employee_by_id(employee_id)
    if employee is None:
        raise EmployeeNotFound(employee_id)
    return {
        "data": employee.model_dump(mode="json"),
        "message": "Employee retrieved successfully.",
    }
