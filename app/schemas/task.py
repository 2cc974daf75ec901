"""
FieldOps - Task Schemas

Assignment and payment-ledger request/response schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


# ===========================================
# ASSIGNEES
# ===========================================

class AssigneeConfigIn(CamelModel):
    """One worker on a task. Rates are ignored while use_default is true."""
    user_id: int
    use_default: bool = True
    rate_per_rai: Optional[Decimal] = None
    repair_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None


class AssigneesUpsertRequest(CamelModel):
    assignees: List[AssigneeConfigIn] = Field(..., min_length=1)


class AssigneeResponse(CamelModel):
    id: int
    task_id: int
    user_id: int
    use_default: bool
    rate_per_rai: Optional[Decimal] = None
    repair_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None


# ===========================================
# PAYMENTS
# ===========================================

class TaskPaymentCreate(CamelModel):
    """Record a partial payment (whole baht)."""
    amount: int
    note: Optional[str] = Field(None, max_length=1000)


class TaskPaymentResponse(CamelModel):
    id: int
    task_id: int
    amount: int
    note: Optional[str] = None
    created_at: datetime
