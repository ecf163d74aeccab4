"""Employee Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create  → request bodies (write)
  - *Out     → response bodies (read)
  - *Brief   → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from leave_manager.common.constants import UserRole


class EmployeeCreate(BaseModel):
    """Payload for registering an employee (HR only)."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    department: str = Field(..., min_length=2, max_length=50)
    joining_date: date
    role: UserRole = UserRole.employee

    @field_validator("name", "department", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class EmployeeOut(BaseModel):
    """Full employee representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    department: str
    joining_date: date
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
