"""Enums and constants for the leave manager."""

from __future__ import annotations

import enum
import uuid


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    hr = "hr"
    employee = "employee"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    casual = "casual"
    sick = "sick"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class LeaveAction(str, enum.Enum):
    approve = "approve"
    reject = "reject"


# Statuses that block a new request for the same dates
ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.pending,
    LeaveStatus.approved,
)

ANNUAL_LEAVE_QUOTA: dict[LeaveType, int] = {
    LeaveType.casual: 10,
    LeaveType.sick: 12,
}

# date.weekday(): Saturday=5, Sunday=6
WEEKEND_DAYS: frozenset[int] = frozenset({5, 6})


# ── Cache ───────────────────────────────────────────────────────────

LIST_CACHE_TTL = 600       # 10 minutes, list queries
ITEM_CACHE_TTL = 1800      # 30 minutes, point lookups and balances

ALL_EMPLOYEES_CACHE_KEY = "employees:all"


def employee_cache_key(employee_id: uuid.UUID) -> str:
    return f"employee:{employee_id}"


def employee_leaves_cache_key(employee_id: uuid.UUID) -> str:
    return f"leaves:employee:{employee_id}"


def leave_balance_cache_key(employee_id: uuid.UUID, year: int) -> str:
    return f"leave_balance:{employee_id}:{year}"
