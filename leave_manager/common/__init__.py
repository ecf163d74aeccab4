"""Common module — shared utilities for the leave manager."""

from leave_manager.common.cache import Cache, NullCache, RedisCache
from leave_manager.common.clock import Clock
from leave_manager.common.constants import (
    ANNUAL_LEAVE_QUOTA,
    ITEM_CACHE_TTL,
    LIST_CACHE_TTL,
    WEEKEND_DAYS,
    LeaveAction,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from leave_manager.common.exceptions import (
    AppException,
    BalanceRecordMissing,
    ConcurrentUpdate,
    ConflictError,
    DuplicateEmployee,
    EmployeeNotFound,
    ForbiddenException,
    InsufficientBalance,
    InvalidDateRange,
    LeaveAlreadyProcessed,
    LeaveBeforeJoining,
    LeaveNotFound,
    NotFoundException,
    OverlappingLeave,
    ValidationException,
    ZeroDurationLeave,
    register_exception_handlers,
)

__all__ = [
    # Cache / clock
    "Cache",
    "NullCache",
    "RedisCache",
    "Clock",
    # Constants / Enums
    "ANNUAL_LEAVE_QUOTA",
    "ITEM_CACHE_TTL",
    "LIST_CACHE_TTL",
    "WEEKEND_DAYS",
    "LeaveAction",
    "LeaveStatus",
    "LeaveType",
    "UserRole",
    # Exceptions
    "AppException",
    "BalanceRecordMissing",
    "ConcurrentUpdate",
    "ConflictError",
    "DuplicateEmployee",
    "EmployeeNotFound",
    "ForbiddenException",
    "InsufficientBalance",
    "InvalidDateRange",
    "LeaveAlreadyProcessed",
    "LeaveBeforeJoining",
    "LeaveNotFound",
    "NotFoundException",
    "OverlappingLeave",
    "ValidationException",
    "ZeroDurationLeave",
    "register_exception_handlers",
]
