"""Leave router — apply, approve/reject, balances, history.

All endpoints require authentication. Processing requires the hr role;
balances and history are visible to the employee themselves and to HR.
"""

import uuid

from fastapi import APIRouter, Depends

from leave_manager.auth.dependencies import (
    ensure_self_or_hr,
    get_current_user,
    require_role,
)
from leave_manager.common.constants import UserRole
from leave_manager.dependencies import get_leave_service
from leave_manager.employees.schemas import EmployeeOut
from leave_manager.leave.schemas import LeaveApply, LeaveProcess
from leave_manager.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leaves"])


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", status_code=201)
async def apply_leave(
    body: LeaveApply,
    employee: EmployeeOut = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Apply for leave. Validates dates, overlap and remaining balance."""
    leave = await service.apply_leave(
        employee.id, body.type, body.start_date, body.end_date, body.reason,
    )
    return {
        "data": leave.model_dump(mode="json"),
        "message": "Leave application submitted successfully.",
    }


# ── PATCH /{id}/process ─────────────────────────────────────────────

@router.patch("/{leave_id}/process")
async def process_leave(
    leave_id: uuid.UUID,
    body: LeaveProcess,
    hr: EmployeeOut = Depends(require_role(UserRole.hr)),
    service: LeaveService = Depends(get_leave_service),
):
    """Approve or reject a pending leave request. Approval debits the balance."""
    leave = await service.process_leave(leave_id, body.action, hr.id, body.comments)
    return {
        "data": leave.model_dump(mode="json"),
        "message": f"Leave request {leave.status.value} successfully.",
    }


# ── GET /balance/{employee_id} ──────────────────────────────────────

@router.get("/balance/{employee_id}")
async def get_balance(
    employee_id: uuid.UUID,
    current_user: EmployeeOut = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Current-year casual and sick leave totals for an employee."""
    ensure_self_or_hr(current_user, employee_id)
    balance = await service.get_leave_balance(employee_id)
    return {"data": balance.model_dump(mode="json")}


# ── GET /employee/{employee_id} ─────────────────────────────────────

@router.get("/employee/{employee_id}")
async def get_employee_leaves(
    employee_id: uuid.UUID,
    current_user: EmployeeOut = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """All leave requests of an employee, newest first."""
    ensure_self_or_hr(current_user, employee_id)
    leaves = await service.get_employee_leaves(employee_id)
    return {"data": [leave.model_dump(mode="json") for leave in leaves]}
