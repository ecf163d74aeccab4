"""Domain exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://leave-manager.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(
        self,
        errors: dict[str, list[str]],
        *,
        error_type: str = "validation-error",
        detail: str = "One or more fields failed validation.",
    ) -> None:
        super().__init__(
            status_code=422,
            error_type=error_type,
            title="Validation Error",
            detail=detail,
            errors=errors,
        )


# ── Employee directory ──────────────────────────────────────────────

class EmployeeNotFound(NotFoundException):
    def __init__(self, employee_id: Any) -> None:
        super().__init__("Employee", employee_id)


class DuplicateEmployee(ConflictError):
    def __init__(self, email: str) -> None:
        super().__init__("email", email)
        self.error_type = "duplicate-employee"
        self.detail = "Employee with this email already exists."


# ── Leave workflow ──────────────────────────────────────────────────

class LeaveNotFound(NotFoundException):
    def __init__(self, leave_id: Any) -> None:
        super().__init__("Leave request", leave_id)
        self.error_type = "leave-not-found"


class BalanceRecordMissing(AppException):
    """No LeaveBalance row exists for the employee and year."""

    def __init__(self, employee_id: Any, year: int) -> None:
        super().__init__(
            status_code=404,
            error_type="balance-not-found",
            title="Leave Balance Not Found",
            detail=f"Leave balance not found for employee '{employee_id}' in {year}.",
        )
        self.employee_id = employee_id
        self.year = year


class InvalidDateRange(ValidationException):
    def __init__(self, start_date: date, end_date: date) -> None:
        super().__init__(
            {"start_date": [
                f"Start date {start_date.isoformat()} cannot be after "
                f"end date {end_date.isoformat()}."
            ]},
            error_type="invalid-date-range",
            detail="Start date cannot be after end date.",
        )


class LeaveBeforeJoining(ValidationException):
    def __init__(self, joining_date: date) -> None:
        super().__init__(
            {"start_date": [
                f"Leave cannot start before the joining date {joining_date.isoformat()}."
            ]},
            error_type="leave-before-joining",
            detail="Cannot apply for leave before joining date.",
        )


class ZeroDurationLeave(ValidationException):
    def __init__(self) -> None:
        super().__init__(
            {"dates": ["No working days found in the selected range."]},
            error_type="zero-duration-leave",
            detail="Invalid leave duration.",
        )


class InsufficientBalance(ValidationException):
    def __init__(self, leave_type: str, available: int, requested: int) -> None:
        super().__init__(
            {"balance": [
                f"Insufficient {leave_type} leave balance. "
                f"Available: {available}, Requested: {requested}."
            ]},
            error_type="insufficient-balance",
            detail=f"Insufficient {leave_type} leave balance. Available: {available} days.",
        )
        self.leave_type = leave_type
        self.available = available
        self.requested = requested


class OverlappingLeave(AppException):
    def __init__(self) -> None:
        super().__init__(
            status_code=409,
            error_type="overlapping-leave",
            title="Conflict",
            detail="Leave request overlaps with existing leave.",
        )


class LeaveAlreadyProcessed(AppException):
    def __init__(self, leave_id: Any, status: str) -> None:
        super().__init__(
            status_code=409,
            error_type="leave-already-processed",
            title="Conflict",
            detail=f"Leave request '{leave_id}' is already {status}.",
        )
        self.status = status


class ConcurrentUpdate(AppException):
    """409 — a row changed underneath a read-modify-write; the caller may retry."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(
            status_code=409,
            error_type="concurrent-update",
            title="Conflict",
            detail=f"{entity_type} was modified by another request. Please retry.",
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


async def _handle_database_error(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    logger.exception("Database failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={
            "type": f"{BASE_ERROR_URI}/service-unavailable",
            "title": "Service Unavailable",
            "status": 503,
            "detail": "The service could not complete the request. Please try again later.",
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _handle_database_error)      # type: ignore[arg-type]
