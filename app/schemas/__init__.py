"""
FieldOps - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.common import CamelModel, ok_response
from app.schemas.payroll import (
    PayrollSummaryResponse,
    PayrollSlipCreate,
    PayrollSlipPayRequest,
    PayrollSlipResponse,
)
from app.schemas.task import (
    AssigneeConfigIn,
    AssigneesUpsertRequest,
    AssigneeResponse,
    TaskPaymentCreate,
    TaskPaymentResponse,
)
from app.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate

__all__ = [
    "CamelModel",
    "ok_response",
    # Payroll
    "PayrollSummaryResponse",
    "PayrollSlipCreate",
    "PayrollSlipPayRequest",
    "PayrollSlipResponse",
    # Tasks
    "AssigneeConfigIn",
    "AssigneesUpsertRequest",
    "AssigneeResponse",
    "TaskPaymentCreate",
    "TaskPaymentResponse",
    # Expenses
    "ExpenseCreate",
    "ExpenseResponse",
    "ExpenseUpdate",
]
