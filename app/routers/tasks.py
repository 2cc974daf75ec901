"""
FieldOps - Tasks Router

Assignment and payment-ledger endpoints for tasks. Task CRUD itself is
handled elsewhere.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_user, require_payroll_manager
from app.models.user import User
from app.schemas.common import ok_response
from app.schemas.task import (
    AssigneeResponse,
    AssigneesUpsertRequest,
    TaskPaymentCreate,
    TaskPaymentResponse,
)
from app.services.assignment_service import AssigneeConfig, AssignmentService
from app.services.task_payment_service import TaskPaymentService


router = APIRouter()


# ===========================================
# ASSIGNEES
# ===========================================

@router.put(
    "/{task_id}/assignees",
    summary="Assign workers",
    description="Insert or update the worker assignments on a task.",
)
async def upsert_task_assignees(
    data: AssigneesUpsertRequest,
    task_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = AssignmentService(db)
    rows = await service.upsert_assignments(
        task_id,
        [
            AssigneeConfig(
                user_id=item.user_id,
                use_default=item.use_default,
                rate_per_rai=item.rate_per_rai,
                repair_rate=item.repair_rate,
                daily_rate=item.daily_rate,
            )
            for item in data.assignees
        ],
    )
    return ok_response(
        [AssigneeResponse.model_validate(row) for row in rows],
        "Assignees saved",
    )


# ===========================================
# PAYMENTS
# ===========================================

@router.post(
    "/{task_id}/payments",
    status_code=status.HTTP_201_CREATED,
    summary="Record task payment",
)
async def record_task_payment(
    data: TaskPaymentCreate,
    task_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = TaskPaymentService(db)
    payment = await service.record_payment(task_id, data.amount, data.note)
    return ok_response({"id": payment.id, "amount": payment.amount}, "Payment recorded")


@router.get(
    "/{task_id}/payments",
    summary="List task payments",
)
async def list_task_payments(
    task_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = TaskPaymentService(db)
    payments = await service.list_payments(task_id)
    items = [
        TaskPaymentResponse.model_validate(p).model_dump(mode="json", by_alias=True)
        for p in payments
    ]
    return ok_response({"taskId": task_id, "count": len(items), "items": items}, "Task payments")


@router.delete(
    "/{task_id}/payments/{payment_id}",
    summary="Delete task payment",
    description="Removes the entry and reverses its effect on the task's paid amount.",
)
async def delete_task_payment(
    task_id: int = Path(...),
    payment_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = TaskPaymentService(db)
    deleted_id = await service.delete_payment(task_id, payment_id)
    return ok_response({"paymentId": deleted_id}, "Payment deleted")
