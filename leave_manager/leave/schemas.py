"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Apply / *Process → request bodies (write)
  - *Out              → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leave_manager.common.constants import LeaveAction, LeaveStatus, LeaveType
from leave_manager.employees.schemas import EmployeeBrief


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveApply(BaseModel):
    """Payload for applying for leave. The applicant is the caller."""

    type: LeaveType
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: str = Field(..., min_length=5, max_length=500, description="Reason for leave")

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveApply":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


class LeaveProcess(BaseModel):
    """Payload for approving or rejecting a pending request (HR only)."""

    action: LeaveAction
    comments: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class LeaveOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeaveWithApproverOut(LeaveOut):
    """Leave as listed for an employee, with the resolver's name and email."""

    approver: Optional[EmployeeBrief] = None


class LeaveBalanceRecord(BaseModel):
    """Raw balance row — the cached representation."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    year: int
    casual_leave_balance: int
    casual_leave_used: int
    sick_leave_balance: int
    sick_leave_used: int


class LeaveTypeBalance(BaseModel):
    total: int
    used: int
    remaining: int


class LeaveBalanceOut(BaseModel):
    casual_leave: LeaveTypeBalance
    sick_leave: LeaveTypeBalance

    @classmethod
    def from_record(cls, record: LeaveBalanceRecord) -> "LeaveBalanceOut":
        return cls(
            casual_leave=LeaveTypeBalance(
                total=record.casual_leave_balance + record.casual_leave_used,
                used=record.casual_leave_used,
                remaining=record.casual_leave_balance,
            ),
            sick_leave=LeaveTypeBalance(
                total=record.sick_leave_balance + record.sick_leave_used,
                used=record.sick_leave_used,
                remaining=record.sick_leave_balance,
            ),
        )
