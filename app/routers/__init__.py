"""
FieldOps - Routers Package

FastAPI route handlers.

Routers:
- payroll: Monthly payroll slips
- tasks: Task assignees and payment ledger
- expenses: Expense ledger listing
"""

from app.routers import payroll, tasks, expenses

__all__ = [
    "payroll",
    "tasks",
    "expenses",
]
