"""Employee directory — Employee model, schemas and services."""

from leave_manager.employees.models import Employee

__all__ = ["Employee"]
