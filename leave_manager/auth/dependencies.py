"""Auth dependencies — JWT validation, role enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError

from leave_manager.auth.tokens import decode_access_token
from leave_manager.common.constants import UserRole
from leave_manager.common.exceptions import ForbiddenException
from leave_manager.dependencies import get_employee_service
from leave_manager.employees.schemas import EmployeeOut
from leave_manager.employees.service import EmployeeService


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    employees: EmployeeService = Depends(get_employee_service),
) -> EmployeeOut:
    """Validate the JWT and return the authenticated, active employee."""
    token = _extract_bearer(request)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        employee_id = uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    employee = await employees.get_employee_by_id(employee_id)
    if employee is None or not employee.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive or not found.")

    request.state.user_role = employee.role
    return employee


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(
        employee: EmployeeOut = Depends(get_current_user),
    ) -> EmployeeOut:
        if employee.role not in allowed_roles:
            raise ForbiddenException(
                detail="Access denied. Insufficient permissions.",
            )
        return employee

    return _check


def ensure_self_or_hr(current_user: EmployeeOut, employee_id: uuid.UUID) -> None:
    """Employees may only read their own records; HR may read anyone's."""
    if current_user.role != UserRole.hr and current_user.id != employee_id:
        raise ForbiddenException(
            detail="You can only access your own leave records.",
        )
