"""
FieldOps - Task Assignment Service

Assigns workers to a task. One row per (task, worker); assigning again
updates the existing row. With use_default on, override rates are
cleared so payroll falls back to the worker's defaults.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task, TaskAssignee
from app.models.user import User
from app.utils.error_handling import (
    TaskNotFoundException,
    TransactionFailureException,
    UserNotFoundException,
    validate_amount,
    validate_positive_id,
)


logger = logging.getLogger(__name__)


@dataclass
class AssigneeConfig:
    user_id: int
    use_default: bool = True
    rate_per_rai: Optional[Decimal] = None
    repair_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None


def _optional_rate(value, field: str) -> Optional[Decimal]:
    if value is None:
        return None
    return validate_amount(value, field, allow_zero=True)


class AssignmentService:
    """Upserts task assignments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _normalize(config: AssigneeConfig) -> AssigneeConfig:
        user_id = validate_positive_id(config.user_id, "userId")
        if config.use_default:
            return AssigneeConfig(user_id=user_id, use_default=True)
        return AssigneeConfig(
            user_id=user_id,
            use_default=False,
            rate_per_rai=_optional_rate(config.rate_per_rai, "ratePerRai"),
            repair_rate=_optional_rate(config.repair_rate, "repairRate"),
            daily_rate=_optional_rate(config.daily_rate, "dailyRate"),
        )

    async def upsert_assignments(
        self,
        task_id: int,
        configs: Iterable[AssigneeConfig],
    ) -> List[TaskAssignee]:
        task_id = validate_positive_id(task_id, "taskId")
        configs = [self._normalize(c) for c in configs]

        task = (await self.db.execute(select(Task.id).where(Task.id == task_id))).scalar_one_or_none()
        if task is None:
            raise TaskNotFoundException(task_id)

        user_ids = [c.user_id for c in configs]
        if user_ids:
            result = await self.db.execute(select(User.id).where(User.id.in_(user_ids)))
            known = set(result.scalars().all())
            for user_id in user_ids:
                if user_id not in known:
                    raise UserNotFoundException(user_id)

        result = await self.db.execute(
            select(TaskAssignee).where(TaskAssignee.task_id == task_id)
        )
        existing = {row.user_id: row for row in result.scalars().all()}

        rows = []
        try:
            for config in configs:
                row = existing.get(config.user_id)
                if row is None:
                    row = TaskAssignee(task_id=task_id, user_id=config.user_id)
                    self.db.add(row)
                    existing[config.user_id] = row

                row.use_default = config.use_default
                row.rate_per_rai = config.rate_per_rai
                row.repair_rate = config.repair_rate
                row.daily_rate = config.daily_rate
                rows.append(row)

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Assignment upsert failed for task {task_id}", exc_info=True)
            raise TransactionFailureException(
                operation="upsert_task_assignees",
                context={"task_id": task_id, "user_ids": user_ids},
                original_error=e,
            ) from e

        for row in rows:
            await self.db.refresh(row)
        logger.info(f"Task {task_id}: {len(rows)} assignment(s) upserted")
        return rows
