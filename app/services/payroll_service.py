"""
FieldOps - Payroll Service

Payroll slip lifecycle:

1. Preview   - aggregate an employee-month without writing anything
2. Create    - snapshot the aggregation into a slip and number it
3. Pay       - flip Unpaid/Paid and keep the linked expense row in step
4. Delete    - remove a slip together with its expense row

One slip per employee per month. The (user_id, month) unique constraint is
the only guard against concurrent duplicates; a violation is reported as a
conflict that points at the slip that won.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.payroll import PayrollSlip, PayrollSlipStatus
from app.services.expense_sync_service import ExpenseSyncService
from app.services.payroll_aggregator import MonthlyAggregator, PayrollSummary, round_money
from app.utils.error_handling import (
    DuplicatePayrollSlipException,
    PayrollSlipNotFoundException,
    TransactionFailureException,
    ValidationException,
    validate_amount,
    validate_month,
    validate_positive_id,
)


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def format_slip_no(month: str, slip_id: int) -> str:
    """PR-YYYYMM-000042"""
    return f"{settings.payroll_slip_prefix}-{month.replace('-', '')}-{slip_id:06d}"


class PayrollService:
    """
    Payroll slip service.

    The session is passed in by the caller; every mutating method commits
    or rolls back as a single unit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.aggregator = MonthlyAggregator(db)
        self.expense_sync = ExpenseSyncService(db)

    # ===========================================
    # QUERIES
    # ===========================================

    async def preview(self, user_id: int, month: str) -> PayrollSummary:
        """Compute the month without persisting anything."""
        return await self.aggregator.summarize(user_id, month)

    async def find_slip(self, user_id: int, month: str) -> Optional[PayrollSlip]:
        result = await self.db.execute(
            select(PayrollSlip).where(
                PayrollSlip.user_id == user_id,
                PayrollSlip.month == month,
            )
        )
        return result.scalar_one_or_none()

    async def get_slip(self, slip_id: int) -> PayrollSlip:
        slip_id = validate_positive_id(slip_id, "id")
        result = await self.db.execute(
            select(PayrollSlip)
            .where(PayrollSlip.id == slip_id)
            .execution_options(populate_existing=True)
        )
        slip = result.scalar_one_or_none()
        if slip is None:
            raise PayrollSlipNotFoundException(slip_id)
        return slip

    async def list_slips(
        self,
        user_id: Optional[int] = None,
        month: Optional[str] = None,
        status: Optional[Union[PayrollSlipStatus, str]] = None,
    ) -> List[PayrollSlip]:
        """List slips, newest month first."""
        query = select(PayrollSlip)

        if user_id is not None:
            query = query.where(PayrollSlip.user_id == validate_positive_id(user_id, "userId"))
        if month is not None:
            query = query.where(PayrollSlip.month == validate_month(month))
        if status is not None:
            try:
                status = PayrollSlipStatus(status)
            except ValueError:
                raise ValidationException(
                    message=f"Invalid status: {status}. Use Unpaid or Paid",
                    field="status",
                )
            query = query.where(PayrollSlip.status == status)

        query = (
            query.order_by(PayrollSlip.month.desc(), PayrollSlip.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ===========================================
    # CREATE
    # ===========================================

    async def create_slip(
        self,
        user_id: int,
        month: str,
        deduction: Union[Decimal, int, str] = ZERO,
        note: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> PayrollSlip:
        """
        Snapshot an employee-month into a new, numbered slip.

        Raises:
            ValidationException: bad id, month or deduction
            UserNotFoundException: unknown employee
            DuplicatePayrollSlipException: a slip for this month already exists
            TransactionFailureException: storage failure, nothing was saved
        """
        user_id = validate_positive_id(user_id, "userId")
        month = validate_month(month)
        deduction = round_money(validate_amount(deduction, "deduction", allow_zero=True))

        try:
            existing = await self.find_slip(user_id, month)
            if existing is not None:
                raise DuplicatePayrollSlipException(user_id, month, existing.id, existing.slip_no)
            summary = await self.aggregator.summarize(user_id, month)
        except SQLAlchemyError as e:
            raise await self._create_failed(user_id, month, e) from e

        net_amount = round_money(max(ZERO, summary.gross_amount - deduction))

        slip = PayrollSlip(
            user_id=user_id,
            month=month,
            rai_qty=summary.rai_qty,
            rai_amount=summary.rai_amount,
            repair_days=summary.repair_days,
            repair_amount=summary.repair_amount,
            daily_amount=summary.daily_amount,
            gross_amount=summary.gross_amount,
            deduction=deduction,
            net_amount=net_amount,
            details=summary.details,
            note=note,
            status=PayrollSlipStatus.UNPAID,
            created_by=actor_id,
        )

        try:
            self.db.add(slip)
            # Numbering needs the generated id
            await self.db.flush()
            slip.slip_no = format_slip_no(month, slip.id)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            winner = await self.find_slip(user_id, month)
            if winner is not None:
                logger.info(
                    f"Concurrent payroll create for user {user_id} month {month} "
                    f"lost to slip {winner.id}"
                )
                raise DuplicatePayrollSlipException(
                    user_id, month, winner.id, winner.slip_no
                ) from e
            raise await self._create_failed(user_id, month, e) from e
        except SQLAlchemyError as e:
            raise await self._create_failed(user_id, month, e) from e

        slip = await self.get_slip(slip.id)
        logger.info(
            f"Payroll slip {slip.slip_no} created for user {user_id}: "
            f"gross={slip.gross_amount} deduction={slip.deduction} net={slip.net_amount}"
        )
        return slip

    async def ensure_slip(
        self,
        user_id: int,
        month: str,
        deduction: Union[Decimal, int, str] = ZERO,
        note: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Tuple[PayrollSlip, bool]:
        """
        Idempotent create. Returns (slip, created); a repeated call returns
        the slip that already exists for the month.
        """
        try:
            slip = await self.create_slip(user_id, month, deduction, note, actor_id)
            return slip, True
        except DuplicatePayrollSlipException as e:
            return await self.get_slip(e.existing_id), False

    async def _create_failed(
        self, user_id: int, month: str, error: Exception,
    ) -> TransactionFailureException:
        await self.db.rollback()
        logger.error(
            f"Payroll slip create failed for user {user_id} month {month}",
            exc_info=True,
        )
        return TransactionFailureException(
            operation="create_payroll_slip",
            context={"user_id": user_id, "month": month},
            original_error=error,
        )

    # ===========================================
    # PAYMENT STATUS
    # ===========================================

    async def set_paid_status(
        self,
        slip_id: int,
        paid: bool,
        actor_id: Optional[int] = None,
    ) -> PayrollSlip:
        """
        Mark a slip Paid or Unpaid and sync its expense row in the same
        transaction. An already-Paid slip keeps its original paid_at.
        """
        slip = await self.get_slip(slip_id)
        user_id, month = slip.user_id, slip.month

        try:
            if paid:
                if slip.status != PayrollSlipStatus.PAID:
                    slip.status = PayrollSlipStatus.PAID
                    slip.paid_at = datetime.now(timezone.utc)
                await self.expense_sync.upsert(slip, actor_id)
            else:
                slip.status = PayrollSlipStatus.UNPAID
                slip.paid_at = None
                await self.expense_sync.remove(slip.id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Payroll pay-status change failed for slip {slip_id} "
                f"(user {user_id}, month {month}, paid={paid})",
                exc_info=True,
            )
            raise TransactionFailureException(
                operation="set_payroll_paid_status",
                context={
                    "slip_id": slip_id,
                    "user_id": user_id,
                    "month": month,
                    "paid": paid,
                },
                original_error=e,
            ) from e

        slip = await self.get_slip(slip.id)
        logger.info(f"Payroll slip {slip.slip_no} marked {slip.status.value}")
        return slip

    # ===========================================
    # DELETE
    # ===========================================

    async def delete_slip(self, slip_id: int) -> int:
        """Delete a slip and its linked expense. Returns the deleted id."""
        slip = await self.get_slip(slip_id)
        slip_no, user_id, month = slip.slip_no, slip.user_id, slip.month

        try:
            await self.expense_sync.remove(slip.id)
            await self.db.delete(slip)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Payroll slip delete failed for slip {slip_id} "
                f"(user {user_id}, month {month})",
                exc_info=True,
            )
            raise TransactionFailureException(
                operation="delete_payroll_slip",
                context={"slip_id": slip_id, "user_id": user_id, "month": month},
                original_error=e,
            ) from e

        logger.info(f"Payroll slip {slip_no} deleted")
        return slip_id
