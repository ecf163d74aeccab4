"""Leave ORM models: LeaveBalance, Leave."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leave_manager.common.constants import LeaveStatus, LeaveType
from leave_manager.database import Base

if TYPE_CHECKING:
    from leave_manager.employees.models import Employee


class LeaveBalance(Base):
    """Remaining/used counters per leave type for one employee and year.

    ``version`` is the ORM version counter: an UPDATE that matches no row
    (because another writer bumped it first) raises ``StaleDataError``.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", name="uq_leave_balance_employee_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    casual_leave_balance: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    casual_leave_used: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    sick_leave_balance: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    sick_leave_used: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    employee: Mapped[Employee] = relationship(
        back_populates="leave_balances"
    )

    def remaining(self, leave_type: LeaveType) -> int:
        if leave_type == LeaveType.sick:
            return self.sick_leave_balance
        return self.casual_leave_balance

    def used(self, leave_type: LeaveType) -> int:
        if leave_type == LeaveType.sick:
            return self.sick_leave_used
        return self.casual_leave_used

    def debit(self, leave_type: LeaveType, days: int) -> None:
        """Move ``days`` from remaining to used; remaining + used is unchanged."""
        if leave_type == LeaveType.sick:
            self.sick_leave_balance -= days
            self.sick_leave_used += days
        else:
            self.casual_leave_balance -= days
            self.casual_leave_used += days


class Leave(Base):
    __tablename__ = "leaves"
    __table_args__ = (
        sa.Index("ix_leaves_employee_dates", "employee_id", "start_date", "end_date"),
        sa.Index("ix_leaves_status", "status"),
        sa.Index("ix_leaves_type", "type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id"), nullable=False
    )
    type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", native_enum=False, length=20),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", native_enum=False, length=20),
        nullable=False,
        default=LeaveStatus.pending,
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        sa.Uuid, sa.ForeignKey("employees.id")
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    # Relationships
    employee: Mapped[Employee] = relationship(
        back_populates="leaves", foreign_keys=[employee_id]
    )
    approver: Mapped[Optional[Employee]] = relationship(
        foreign_keys=[approved_by]
    )
