"""
FieldOps - Expense Service

Cash-flow expense ledger. Boss and admin enter rows by hand; rows linked to
a payroll slip are written only by the payroll engine and are refused here.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.expense import Expense, ExpenseType
from app.services.payroll_aggregator import round_money
from app.utils.error_handling import (
    ExpenseNotFoundException,
    PayrollManagedExpenseException,
    TransactionFailureException,
    ValidationException,
    validate_amount,
    validate_positive_id,
)


logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "type", "amount", "job_note", "qty_note", "work_date")


def _expense_type(value: Union[ExpenseType, str]) -> ExpenseType:
    try:
        return ExpenseType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in ExpenseType)
        raise ValidationException(
            message=f"Invalid expense type: {value}. Use one of: {allowed}",
            field="type",
        )


def _title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(message="title must not be empty", field="title")
    return value


class ExpenseService:
    """Service for the expense ledger"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_expenses(
        self,
        work_date: Optional[date] = None,
        expense_type: Optional[Union[ExpenseType, str]] = None,
        payroll_only: bool = False,
    ) -> List[Expense]:
        """List expenses in entry order, optionally for a single work date."""
        query = select(Expense)

        if work_date is not None:
            query = query.where(Expense.work_date == work_date)
        if expense_type is not None:
            query = query.where(Expense.type == _expense_type(expense_type))
        if payroll_only:
            query = query.where(Expense.payroll_slip_id.is_not(None))

        query = (
            query.order_by(Expense.created_at.asc(), Expense.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_expense(self, expense_id: int) -> Expense:
        expense_id = validate_positive_id(expense_id, "id")
        result = await self.db.execute(
            select(Expense)
            .where(Expense.id == expense_id)
            .execution_options(populate_existing=True)
        )
        expense = result.scalar_one_or_none()
        if expense is None:
            raise ExpenseNotFoundException(expense_id)
        return expense

    async def _get_manual_expense(self, expense_id: int) -> Expense:
        expense = await self.get_expense(expense_id)
        if expense.payroll_slip_id is not None:
            raise PayrollManagedExpenseException(expense.id, expense.payroll_slip_id)
        return expense

    async def create_expense(
        self,
        title: str,
        expense_type: Union[ExpenseType, str],
        amount: Union[Decimal, int, str],
        work_date: date,
        job_note: Optional[str] = None,
        qty_note: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Expense:
        """Enter an expense by hand. Never linked to a payroll slip."""
        expense = Expense(
            title=_title(title),
            type=_expense_type(expense_type),
            amount=round_money(validate_amount(amount, "amount")),
            job_note=job_note,
            qty_note=qty_note,
            work_date=work_date,
            created_by=actor_id,
        )

        try:
            self.db.add(expense)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Creating expense '{title}' failed", exc_info=True)
            raise TransactionFailureException(
                operation="create_expense",
                context={"title": title, "work_date": str(work_date)},
                original_error=e,
            ) from e

        logger.info(f"Expense {expense.id} created: {expense.type.value} {expense.amount}")
        return await self.get_expense(expense.id)

    async def update_expense(self, expense_id: int, changes: Dict[str, Any]) -> Expense:
        """
        Partial update. Missing or null fields keep their current value;
        anything outside the editable fields is ignored.
        """
        changes = {
            key: value for key, value in changes.items()
            if key in EDITABLE_FIELDS and value is not None
        }
        if "title" in changes:
            changes["title"] = _title(changes["title"])
        if "type" in changes:
            changes["type"] = _expense_type(changes["type"])
        if "amount" in changes:
            changes["amount"] = round_money(validate_amount(changes["amount"], "amount"))

        expense = await self._get_manual_expense(expense_id)
        expense_id = expense.id

        try:
            for key, value in changes.items():
                setattr(expense, key, value)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Updating expense {expense_id} failed", exc_info=True)
            raise TransactionFailureException(
                operation="update_expense",
                context={"expense_id": expense_id, "fields": sorted(changes)},
                original_error=e,
            ) from e

        logger.info(f"Expense {expense_id} updated: {', '.join(sorted(changes)) or 'no changes'}")
        return await self.get_expense(expense_id)

    async def delete_expense(self, expense_id: int) -> int:
        expense = await self._get_manual_expense(expense_id)
        expense_id = expense.id

        try:
            await self.db.delete(expense)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Deleting expense {expense_id} failed", exc_info=True)
            raise TransactionFailureException(
                operation="delete_expense",
                context={"expense_id": expense_id},
                original_error=e,
            ) from e

        logger.info(f"Expense {expense_id} deleted")
        return expense_id
