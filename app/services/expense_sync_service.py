"""
FieldOps - Payroll Expense Sync

Keeps the expense ledger in step with payroll: a Paid slip has exactly
one linked expense row, an Unpaid slip has none. Callers own the
transaction; nothing here commits.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.expense import Expense, ExpenseType
from app.models.payroll import PayrollSlip
from app.repositories.payroll_repository import PayrollRepository


logger = logging.getLogger(__name__)


class ExpenseSyncService:
    """Upsert / remove the expense row linked to a payroll slip."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = PayrollRepository(db)

    @staticmethod
    def build_title(slip: PayrollSlip, employee_name: str) -> str:
        return (
            f"{settings.payroll_expense_category} {slip.month} - "
            f"{employee_name} ({slip.slip_no})"
        )

    @staticmethod
    def build_qty_note(slip: PayrollSlip) -> str:
        return (
            f"rai {slip.rai_qty} / repair {slip.repair_days} / "
            f"daily {slip.daily_amount}"
        )

    async def upsert(self, slip: PayrollSlip, actor_id: Optional[int] = None) -> Expense:
        """Create or update the slip's expense row in place."""
        pay = await self.repository.get_pay_config(slip.user_id)
        employee_name = pay.display_name if pay else f"user #{slip.user_id}"

        title = self.build_title(slip, employee_name)
        work_date = slip.paid_at.date() if slip.paid_at else date.today()

        expense = await self.repository.get_expense_for_slip(slip.id)
        if expense is None:
            expense = Expense(
                title=title,
                type=ExpenseType(settings.payroll_expense_type),
                amount=slip.net_amount,
                job_note=slip.note,
                qty_note=self.build_qty_note(slip),
                work_date=work_date,
                created_by=actor_id,
                payroll_slip_id=slip.id,
            )
            self.db.add(expense)
            logger.info(f"Linked expense created for payroll slip {slip.slip_no}")
        else:
            expense.title = title
            expense.amount = slip.net_amount
            expense.work_date = work_date
            expense.job_note = slip.note
            expense.qty_note = self.build_qty_note(slip)

        await self.db.flush()
        return expense

    async def remove(self, slip_id: int) -> bool:
        """Delete the slip's expense row if there is one."""
        removed = await self.repository.delete_expense_for_slip(slip_id)
        if removed:
            logger.info(f"Linked expense removed for payroll slip id {slip_id}")
        return bool(removed)
