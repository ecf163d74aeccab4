"""Leave module — leave requests, balances and the approval workflow."""

from leave_manager.leave.models import Leave, LeaveBalance

__all__ = ["Leave", "LeaveBalance"]
