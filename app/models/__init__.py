"""
FieldOps - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.models.user import User, UserRole, PayType, PAYROLL_MANAGER_ROLES
from app.models.task import Task, TaskAssignee, TaskPayment, JobType, TaskStatus
from app.models.payroll import PayrollSlip, PayrollSlipStatus
from app.models.expense import Expense, ExpenseType

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    # Users
    "User",
    "UserRole",
    "PayType",
    "PAYROLL_MANAGER_ROLES",
    # Tasks
    "Task",
    "TaskAssignee",
    "TaskPayment",
    "JobType",
    "TaskStatus",
    # Payroll
    "PayrollSlip",
    "PayrollSlipStatus",
    # Expenses
    "Expense",
    "ExpenseType",
]
