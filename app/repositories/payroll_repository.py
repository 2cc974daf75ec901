"""
FieldOps - Payroll Repository

Typed read/write access for the payroll engine. Every query has an
explicit row shape (frozen dataclasses below) so rate resolution and
aggregation never deal with raw result rows.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.expense import Expense
from app.models.task import JobType, Task, TaskAssignee
from app.models.user import PayType, User


@dataclass(frozen=True)
class PayConfig:
    """Employee pay configuration as read by payroll."""
    user_id: int
    username: str
    display_name: str
    pay_type: PayType
    default_rate_per_rai: Optional[Decimal] = None
    default_repair_rate: Optional[Decimal] = None
    default_daily_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class WorkRecordRow:
    """One task joined with the employee's assignment on it."""
    task_id: int
    title: str
    job_type: JobType
    start_date: date
    end_date: Optional[date]
    area: Optional[Decimal]
    use_default: bool
    rate_per_rai: Optional[Decimal] = None
    repair_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None


class PayrollRepository:
    """Repository for the payroll engine's collaborator data"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========== Employee store ==========

    async def get_pay_config(self, user_id: int) -> Optional[PayConfig]:
        """Pay configuration for one employee, or None if unknown"""
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            return None
        return PayConfig(
            user_id=user.id,
            username=user.username,
            display_name=user.name_for_display,
            pay_type=user.pay_type,
            default_rate_per_rai=user.default_rate_per_rai,
            default_repair_rate=user.default_repair_rate,
            default_daily_rate=user.default_daily_rate,
        )

    # ========== Work record store ==========

    async def list_work_for_employee_in_month(
        self,
        user_id: int,
        month_start: date,
        month_end: date,
    ) -> List[WorkRecordRow]:
        """
        Tasks assigned to the employee that started in [month_start, month_end)
        and, when closed, also ended inside that window.
        """
        query = (
            select(
                Task.id,
                Task.title,
                Task.job_type,
                Task.start_date,
                Task.end_date,
                Task.area,
                TaskAssignee.use_default,
                TaskAssignee.rate_per_rai,
                TaskAssignee.repair_rate,
                TaskAssignee.daily_rate,
            )
            .join(
                TaskAssignee,
                and_(
                    TaskAssignee.task_id == Task.id,
                    TaskAssignee.user_id == user_id,
                ),
            )
            .where(
                Task.start_date >= month_start,
                Task.start_date < month_end,
                or_(
                    Task.end_date.is_(None),
                    and_(Task.end_date >= month_start, Task.end_date < month_end),
                ),
            )
            .order_by(Task.start_date.asc(), Task.id.asc())
        )
        result = await self.db.execute(query)
        return [
            WorkRecordRow(
                task_id=row.id,
                title=row.title,
                job_type=row.job_type,
                start_date=row.start_date,
                end_date=row.end_date,
                area=row.area,
                use_default=bool(row.use_default),
                rate_per_rai=row.rate_per_rai,
                repair_rate=row.repair_rate,
                daily_rate=row.daily_rate,
            )
            for row in result.all()
        ]

    # ========== Expense store (keyed by payroll slip) ==========

    async def get_expense_for_slip(self, slip_id: int) -> Optional[Expense]:
        result = await self.db.execute(
            select(Expense).where(Expense.payroll_slip_id == slip_id)
        )
        return result.scalar_one_or_none()

    async def delete_expense_for_slip(self, slip_id: int) -> int:
        """Delete the expense linked to a slip. Returns rows removed."""
        result = await self.db.execute(
            delete(Expense).where(Expense.payroll_slip_id == slip_id)
        )
        return result.rowcount or 0
