"""
FieldOps - Payroll Schemas

Pydantic schemas for payroll slip requests and responses.
Money fields serialize as fixed 2-place strings.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.payroll import PayrollSlipStatus
from app.schemas.common import CamelModel


# ===========================================
# PREVIEW
# ===========================================

class PayrollSummaryResponse(CamelModel):
    """Computed month, not persisted."""
    user_id: int
    month: str
    rai_qty: Decimal
    rai_amount: Decimal
    repair_days: int
    repair_amount: Decimal
    daily_amount: Decimal
    gross_amount: Decimal
    skipped_count: int = 0
    details: List[Dict[str, Any]] = []


# ===========================================
# SLIP REQUESTS
# ===========================================

class PayrollSlipCreate(CamelModel):
    """Create payroll slip request."""
    user_id: int = Field(..., description="Employee id")
    month: str = Field(..., description="Month as YYYY-MM")
    deduction: Decimal = Field(Decimal("0"), description="Advances to deduct from gross")
    note: Optional[str] = Field(None, max_length=2000)


class PayrollSlipPayRequest(CamelModel):
    """Mark a slip paid (true) or unpaid (false)."""
    paid: bool


# ===========================================
# SLIP RESPONSES
# ===========================================

class PayrollSlipResponse(CamelModel):
    """Payroll slip response."""
    id: int
    slip_no: Optional[str] = None
    user_id: int
    employee_username: Optional[str] = None
    month: str

    rai_qty: Decimal
    rai_amount: Decimal
    repair_days: int
    repair_amount: Decimal
    daily_amount: Decimal
    gross_amount: Decimal
    deduction: Decimal
    net_amount: Decimal

    details: List[Dict[str, Any]] = []
    note: Optional[str] = None

    status: PayrollSlipStatus
    paid_at: Optional[datetime] = None

    created_by: Optional[int] = None
    created_by_username: Optional[str] = None
    created_at: datetime
    updated_at: datetime
