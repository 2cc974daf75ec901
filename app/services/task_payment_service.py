"""
FieldOps - Task Payment Service

Partial customer payments recorded against a task. Each entry moves the
task's paid_amount; deleting the entry moves it back. paid_amount never
goes below zero.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task, TaskPayment
from app.utils.error_handling import (
    InvalidAmountException,
    TaskNotFoundException,
    TaskPaymentNotFoundException,
    TransactionFailureException,
    validate_positive_id,
)


logger = logging.getLogger(__name__)


def _validate_payment_amount(amount) -> int:
    """Whole baht, strictly positive."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountException(
            amount, "amount", message="amount must be a positive integer",
        )
    return amount


class TaskPaymentService:
    """Service for the task payment ledger"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_task(self, task_id: int) -> Task:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            raise TaskNotFoundException(task_id)
        return task

    async def record_payment(
        self,
        task_id: int,
        amount: int,
        note: Optional[str] = None,
    ) -> TaskPayment:
        task_id = validate_positive_id(task_id, "taskId")
        amount = _validate_payment_amount(amount)
        task = await self._get_task(task_id)

        payment = TaskPayment(task_id=task_id, amount=amount, note=note)
        try:
            self.db.add(payment)
            task.paid_amount = max(0, (task.paid_amount or 0) + amount)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Recording payment of {amount} on task {task_id} failed", exc_info=True)
            raise TransactionFailureException(
                operation="record_task_payment",
                context={"task_id": task_id, "amount": amount},
                original_error=e,
            ) from e

        await self.db.refresh(payment)
        logger.info(f"Payment {payment.id} of {amount} recorded on task {task_id}")
        return payment

    async def list_payments(self, task_id: int) -> List[TaskPayment]:
        """Newest first."""
        task_id = validate_positive_id(task_id, "taskId")
        await self._get_task(task_id)

        result = await self.db.execute(
            select(TaskPayment)
            .where(TaskPayment.task_id == task_id)
            .order_by(TaskPayment.created_at.desc(), TaskPayment.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def delete_payment(self, task_id: int, payment_id: int) -> int:
        """Remove a payment entry and reverse its effect on paid_amount."""
        task_id = validate_positive_id(task_id, "taskId")
        payment_id = validate_positive_id(payment_id, "paymentId")

        result = await self.db.execute(
            select(TaskPayment).where(
                TaskPayment.id == payment_id,
                TaskPayment.task_id == task_id,
            )
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise TaskPaymentNotFoundException(task_id, payment_id)

        task = await self._get_task(task_id)
        amount = payment.amount

        try:
            task.paid_amount = max(0, (task.paid_amount or 0) - amount)
            await self.db.delete(payment)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Deleting payment {payment_id} on task {task_id} failed", exc_info=True,
            )
            raise TransactionFailureException(
                operation="delete_task_payment",
                context={"task_id": task_id, "payment_id": payment_id},
                original_error=e,
            ) from e

        logger.info(f"Payment {payment_id} ({amount}) removed from task {task_id}")
        return payment_id
