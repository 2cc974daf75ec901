"""
FieldOps - Services Package

Business logic services.
"""

from app.services.payroll_rates import RateResolver, RateContribution, EffectiveRates
from app.services.payroll_aggregator import MonthlyAggregator, PayrollSummary
from app.services.payroll_service import PayrollService, format_slip_no
from app.services.expense_sync_service import ExpenseSyncService
from app.services.expense_service import ExpenseService
from app.services.assignment_service import AssignmentService, AssigneeConfig
from app.services.task_payment_service import TaskPaymentService

__all__ = [
    # Payroll engine
    "RateResolver",
    "RateContribution",
    "EffectiveRates",
    "MonthlyAggregator",
    "PayrollSummary",
    "PayrollService",
    "format_slip_no",
    "ExpenseSyncService",
    # Expenses
    "ExpenseService",
    # Tasks
    "AssignmentService",
    "AssigneeConfig",
    "TaskPaymentService",
]
