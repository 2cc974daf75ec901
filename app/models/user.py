"""
FieldOps - User Model

Users are both the people who log in and the employees who get paid.
Each user carries a pay configuration that payroll reads:

- pay_type: daily | per_rai | other
- default_rate_per_rai: baht per rai of field work
- default_repair_rate: baht per repair job
- default_daily_rate: baht per job for daily-paid workers

Per-task overrides live on TaskAssignee.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, value_enum


class UserRole(str, Enum):
    """Roles used by the routing layer for access control."""
    ADMIN = "admin"
    BOSS = "boss"
    USER = "user"


class PayType(str, Enum):
    """How an employee is paid."""
    DAILY = "daily"
    PER_RAI = "per_rai"
    OTHER = "other"


# Roles allowed to create, pay and delete payroll slips
PAYROLL_MANAGER_ROLES = [UserRole.BOSS, UserRole.ADMIN]


class User(BaseModel):
    """Application user / employee."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True,
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        value_enum(UserRole, 16),
        default=UserRole.USER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False,
    )

    # Pay configuration
    pay_type: Mapped[PayType] = mapped_column(
        value_enum(PayType, 16),
        default=PayType.OTHER,
        nullable=False,
    )
    default_rate_per_rai: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )
    default_repair_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )
    default_daily_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2), nullable=True,
    )

    @property
    def name_for_display(self) -> str:
        return self.display_name or self.username

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
