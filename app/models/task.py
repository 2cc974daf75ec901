"""
FieldOps - Task Models

A task is one unit of field work (ploughing / harvesting measured in rai)
or a repair job. Tasks are assigned to one or more workers; each
assignment may override the worker's default pay rates.

Tasks also track customer billing (total_amount / paid_amount) through an
append-only list of partial payments.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import BaseModel, AuditMixin, value_enum

if TYPE_CHECKING:
    from app.models.user import User


class JobType(str, Enum):
    """Kind of work a task represents."""
    FIELD_AREA = "field-area"
    REPAIR = "repair"


class TaskStatus(str, Enum):
    """Task progress status."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Task(BaseModel, AuditMixin):
    """Work record."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    job_type: Mapped[JobType] = mapped_column(
        value_enum(JobType, 16), nullable=False, index=True,
    )
    status: Mapped[TaskStatus] = mapped_column(
        value_enum(TaskStatus, 16), default=TaskStatus.PENDING, nullable=False,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    # NULL means the job is still open
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Field size in rai, only meaningful for field-area jobs
    area: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )

    # Customer billing, whole baht
    total_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    paid_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    assignees: Mapped[List["TaskAssignee"]] = relationship(
        "TaskAssignee",
        back_populates="task",
        cascade="all, delete-orphan",
    )
    payments: Mapped[List["TaskPayment"]] = relationship(
        "TaskPayment",
        back_populates="task",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title}, job_type={self.job_type})>"


class TaskAssignee(Base):
    """
    Assignment of a worker to a task.

    When use_default is true the override columns are ignored and the
    worker's defaults apply at computation time.
    """

    __tablename__ = "task_assignees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    use_default: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rate_per_rai: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )
    repair_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )
    daily_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )

    task: Mapped["Task"] = relationship("Task", back_populates="assignees")
    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint('task_id', 'user_id', name='uq_task_assignee_task_user'),
    )


class TaskPayment(Base):
    """Partial customer payment recorded against a task. Append-only."""

    __tablename__ = "task_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    task: Mapped["Task"] = relationship("Task", back_populates="payments")
