"""
FieldOps - Expense Model

Cash-flow expense ledger. Most rows are entered by hand; rows with a
payroll_slip_id are maintained by the payroll engine and exist only while
the linked slip is Paid.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, AuditMixin, value_enum


class ExpenseType(str, Enum):
    """Expense categories."""
    LABOR = "labor"
    MATERIAL = "material"
    FUEL = "fuel"
    TRANSPORT = "transport"


class Expense(BaseModel, AuditMixin):
    """Expense ledger entry."""

    __tablename__ = "expenses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[ExpenseType] = mapped_column(
        value_enum(ExpenseType, 16), nullable=False, index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False,
    )
    job_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qty_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    payroll_slip_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("payroll_slips.id", ondelete="CASCADE"),
        unique=True,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, title={self.title}, amount={self.amount})>"
