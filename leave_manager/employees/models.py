"""Employee ORM model.

SQLAlchemy 2.0 async-compatible model with Mapped[] annotations.
Emails are stored trimmed and lower-cased so the unique index is
effectively case-insensitive.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_manager.common.constants import UserRole
from leave_manager.database import Base

if TYPE_CHECKING:
    from leave_manager.leave.models import Leave, LeaveBalance


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        sa.Index("ix_employees_department", "department"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    department: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    joining_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role", native_enum=False, length=20),
        nullable=False,
        default=UserRole.employee,
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=True, server_default=sa.text("TRUE"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    leave_balances: Mapped[list[LeaveBalance]] = relationship(
        back_populates="employee",
    )
    leaves: Mapped[list[Leave]] = relationship(
        back_populates="employee", foreign_keys="Leave.employee_id",
    )

    def __repr__(self) -> str:
        return f"<Employee {self.email!r}>"
