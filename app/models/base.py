"""
FieldOps - Base Model

Base model class and mixins for all SQLAlchemy models.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Type

from sqlalchemy import DateTime, ForeignKey, Integer, func, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def value_enum(enum_cls: Type[Enum], length: int = 32) -> SQLEnum:
    """Enum column stored by member value (e.g. "Paid") rather than by name."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AuditMixin:
    """Mixin that records which user created a record."""

    created_by: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class BaseModel(Base, TimestampMixin):
    """
    Abstract base model with integer primary key and timestamps.
    All models should inherit from this class.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
