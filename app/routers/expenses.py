"""
FieldOps - Expenses Router

Any signed-in user may list expenses. Entering, editing and deleting rows
by hand is limited to boss and admin; payroll-linked rows are read-only here.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_current_user, require_payroll_manager
from app.models.user import User
from app.schemas.common import ok_response
from app.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from app.services.expense_service import ExpenseService


router = APIRouter()


@router.get(
    "",
    summary="List expenses",
    description="Optionally filter by work date and expense type. Oldest entry first.",
)
async def list_expenses(
    work_date: Optional[date] = Query(None, alias="from"),
    expense_type: Optional[str] = Query(None, alias="type"),
    payroll_only: bool = Query(False, alias="payrollOnly"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user),
):
    service = ExpenseService(db)
    expenses = await service.list_expenses(
        work_date=work_date,
        expense_type=expense_type,
        payroll_only=payroll_only,
    )
    items = [
        ExpenseResponse.model_validate(e).model_dump(mode="json", by_alias=True)
        for e in expenses
    ]
    return ok_response(
        {
            "filters": {
                "from": work_date.isoformat() if work_date else None,
                "type": expense_type,
                "payrollOnly": payroll_only,
            },
            "count": len(items),
            "items": items,
        },
        "Expenses",
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create expense",
)
async def create_expense(
    data: ExpenseCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = ExpenseService(db)
    expense = await service.create_expense(
        title=data.title,
        expense_type=data.type,
        amount=data.amount,
        work_date=data.work_date,
        job_note=data.job_note,
        qty_note=data.qty_note,
        actor_id=current_user.id,
    )
    return ok_response(ExpenseResponse.model_validate(expense), "Expense created")


@router.patch(
    "/{expense_id}",
    summary="Update expense",
    description="Partial update of a hand-entered expense. Payroll-linked rows return 409.",
)
async def update_expense(
    data: ExpenseUpdate,
    expense_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = ExpenseService(db)
    expense = await service.update_expense(expense_id, data.model_dump(exclude_unset=True))
    return ok_response(ExpenseResponse.model_validate(expense), "Expense updated")


@router.delete(
    "/{expense_id}",
    summary="Delete expense",
    description="Payroll-linked rows return 409; unpay the slip instead.",
)
async def delete_expense(
    expense_id: int = Path(...),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_payroll_manager()),
):
    service = ExpenseService(db)
    deleted_id = await service.delete_expense(expense_id)
    return ok_response({"id": deleted_id}, "Expense deleted")
