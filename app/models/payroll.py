"""
FieldOps - Payroll Models

One payroll slip per employee per month. The slip is a snapshot of the
monthly aggregation at creation time: the computed amounts and the
per-task breakdown are written once and never recomputed. After creation
the only thing that changes is the paid status.

Slip numbers take the form PR-YYYYMM-000042, where the trailing part is
the slip's own primary key.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import (
    DateTime, ForeignKey, Integer, Numeric, String, Text, JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, value_enum

if TYPE_CHECKING:
    from app.models.user import User


class PayrollSlipStatus(str, Enum):
    """Payroll slip payment status."""
    UNPAID = "Unpaid"
    PAID = "Paid"


class PayrollSlip(BaseModel):
    """Monthly payroll slip for one employee."""

    __tablename__ = "payroll_slips"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[str] = mapped_column(
        String(7), nullable=False, index=True,  # YYYY-MM
    )
    slip_no: Mapped[Optional[str]] = mapped_column(
        String(32), unique=True, nullable=True,
    )

    # Field work (per rai)
    rai_qty: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    rai_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Repairs (one unit per job)
    repair_days: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False,
    )
    repair_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Daily-paid workers
    daily_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    gross_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    deduction: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        comment="Manual deduction (advances drawn during the month)",
    )
    net_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )

    # Per-task breakdown captured at creation
    details: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False,
    )
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[PayrollSlipStatus] = mapped_column(
        value_enum(PayrollSlipStatus, 16),
        default=PayrollSlipStatus.UNPAID,
        nullable=False,
        index=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    created_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    employee: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="joined")
    creator: Mapped[Optional["User"]] = relationship("User", foreign_keys=[created_by], lazy="joined")

    __table_args__ = (
        UniqueConstraint('user_id', 'month', name='uq_payroll_slip_user_month'),
    )

    @property
    def is_paid(self) -> bool:
        return self.status == PayrollSlipStatus.PAID

    @property
    def employee_username(self) -> Optional[str]:
        return self.employee.username if self.employee else None

    @property
    def created_by_username(self) -> Optional[str]:
        return self.creator.username if self.creator else None

    def __repr__(self) -> str:
        return f"<PayrollSlip(id={self.id}, user_id={self.user_id}, month={self.month}, status={self.status})>"
