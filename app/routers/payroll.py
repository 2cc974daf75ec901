"""
FieldOps - Payroll Router

API endpoints for monthly payroll slips.

Any signed-in user may preview and read slips; creating, paying and
deleting require the boss or admin role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_user, require_payroll_manager
from app.models.user import User
from app.schemas.common import ok_response
from app.schemas.payroll import (
    PayrollSlipCreate,
    PayrollSlipPayRequest,
    PayrollSlipResponse,
    PayrollSummaryResponse,
)
from app.services.payroll_service import PayrollService


router = APIRouter()


@router.get(
    "/preview",
    summary="Preview a month",
    description="Compute an employee's payroll for a month without saving it.",
)
async def preview_payroll(
    user_id: int = Query(..., alias="userId"),
    month: str = Query(..., description="YYYY-MM"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Preview payroll."""
    service = PayrollService(db)
    summary = await service.preview(user_id, month)
    return ok_response(PayrollSummaryResponse.model_validate(summary), "Payroll preview")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create payroll slip",
    description=(
        "Snapshot an employee's month into a numbered slip. "
        "Returns 409 with the existing slip's id and slipNo if one already exists."
    ),
)
async def create_payroll_slip(
    data: PayrollSlipCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    """Create payroll slip."""
    service = PayrollService(db)
    slip = await service.create_slip(
        user_id=data.user_id,
        month=data.month,
        deduction=data.deduction,
        note=data.note,
        actor_id=current_user.id,
    )
    return ok_response(PayrollSlipResponse.model_validate(slip), "Payroll slip created")


@router.get(
    "",
    summary="List payroll slips",
    description="Filter by employee, month and status. Newest month first.",
)
async def list_payroll_slips(
    user_id: Optional[int] = Query(None, alias="userId"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    slip_status: Optional[str] = Query(None, alias="status", description="Unpaid or Paid"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """List payroll slips."""
    service = PayrollService(db)
    slips = await service.list_slips(user_id=user_id, month=month, status=slip_status)
    items = [
        PayrollSlipResponse.model_validate(slip).model_dump(mode="json", by_alias=True)
        for slip in slips
    ]
    return ok_response(
        {
            "filters": {"userId": user_id, "month": month, "status": slip_status},
            "count": len(items),
            "items": items,
        },
        "Payroll slips",
    )


@router.get(
    "/{slip_id}",
    summary="Get payroll slip",
)
async def get_payroll_slip(
    slip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    """Get payroll slip by id."""
    service = PayrollService(db)
    slip = await service.get_slip(slip_id)
    return ok_response(PayrollSlipResponse.model_validate(slip), "Payroll slip")


@router.patch(
    "/{slip_id}/pay",
    summary="Mark slip paid or unpaid",
    description="Paid slips get a linked labor expense; unpaid slips have none.",
)
async def set_payroll_slip_paid(
    data: PayrollSlipPayRequest,
    slip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    """Set paid status."""
    service = PayrollService(db)
    slip = await service.set_paid_status(slip_id, data.paid, actor_id=current_user.id)
    message = "Payroll slip marked paid" if data.paid else "Payroll slip marked unpaid"
    return ok_response(PayrollSlipResponse.model_validate(slip), message)


@router.delete(
    "/{slip_id}",
    summary="Delete payroll slip",
)
async def delete_payroll_slip(
    slip_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    """Delete payroll slip and its linked expense."""
    service = PayrollService(db)
    deleted_id = await service.delete_slip(slip_id)
    return ok_response({"id": deleted_id}, "Payroll slip deleted")
