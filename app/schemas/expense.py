"""
FieldOps - Expense Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app.models.expense import ExpenseType
from app.schemas.common import CamelModel


class ExpenseResponse(CamelModel):
    """Expense ledger row."""
    id: int
    title: str
    type: ExpenseType
    amount: Decimal
    job_note: Optional[str] = None
    qty_note: Optional[str] = None
    work_date: date
    payroll_slip_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime


class ExpenseCreate(CamelModel):
    """Hand-entered expense. payrollSlipId is not accepted."""
    title: str = Field(..., min_length=1, max_length=255)
    type: ExpenseType
    amount: Decimal = Field(..., gt=0)
    job_note: Optional[str] = None
    qty_note: Optional[str] = None
    work_date: date


class ExpenseUpdate(CamelModel):
    """Partial update; omitted or null fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ExpenseType] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    job_note: Optional[str] = None
    qty_note: Optional[str] = None
    work_date: Optional[date] = None
