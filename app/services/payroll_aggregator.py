"""
FieldOps - Monthly Payroll Aggregator

Collects an employee's tasks for one calendar month and reduces them to
the three pay categories (per rai, repair, daily) plus a per-task line
list for the payslip.

A task belongs to a month when it started in that month and, if it has
been closed, also ended in that month. Open tasks count in the month they
started.

Totals are summed exactly and rounded to 2 places once at the end.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import JobType
from app.repositories.payroll_repository import PayConfig, PayrollRepository, WorkRecordRow
from app.services.payroll_rates import (
    CATEGORY_DAILY,
    CATEGORY_RAI,
    CATEGORY_REPAIR,
    CATEGORY_SKIPPED,
    RateContribution,
    RateResolver,
)
from app.utils.error_handling import UserNotFoundException, validate_month, validate_positive_id


logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def month_bounds(month: str) -> Tuple[date, date]:
    """First day of the month and first day of the following month."""
    year, mon = (int(part) for part in month.split("-"))
    start = date(year, mon, 1)
    if mon == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, mon + 1, 1)
    return start, end


def _plain(value: Optional[Decimal]) -> Optional[str]:
    """Decimal as a plain string without trailing zeros (5.00 -> "5")."""
    if value is None:
        return None
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def _money(value: Optional[Decimal]) -> Optional[str]:
    if value is None:
        return None
    return str(round_money(value))


@dataclass
class PayrollSummary:
    """Result of aggregating one employee-month."""
    user_id: int
    month: str
    rai_qty: Decimal = Decimal("0.00")
    rai_amount: Decimal = Decimal("0.00")
    repair_days: int = 0
    repair_amount: Decimal = Decimal("0.00")
    daily_amount: Decimal = Decimal("0.00")
    gross_amount: Decimal = Decimal("0.00")
    details: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(1 for line in self.details if line["category"] == CATEGORY_SKIPPED)


def build_detail_line(
    record: WorkRecordRow,
    pay: PayConfig,
    contribution: RateContribution,
) -> Dict[str, Any]:
    """JSON-safe breakdown line for one task."""
    start = record.start_date.isoformat()
    area_txt = _plain(record.area)

    display = f"{start} {record.title}"
    if record.job_type == JobType.FIELD_AREA and area_txt is not None:
        display = f"{display} {area_txt} rai"

    rates = contribution.rates
    return {
        "date": start,
        "endDate": record.end_date.isoformat() if record.end_date else None,
        "taskId": record.task_id,
        "title": record.title,
        "jobType": record.job_type.value,
        "payType": pay.pay_type.value,
        "area": area_txt,
        "ratePerRai": _money(rates.rate_per_rai) if rates else None,
        "repairRate": _money(rates.repair_rate) if rates else None,
        "dailyRate": _money(rates.daily_rate) if rates else None,
        "category": contribution.category,
        "amount": _money(contribution.amount),
        "display": display,
    }


class MonthlyAggregator:
    """Builds PayrollSummary objects from stored tasks."""

    def __init__(self, db: AsyncSession, resolver: Optional[RateResolver] = None):
        self.repository = PayrollRepository(db)
        self.resolver = resolver or RateResolver()

    def reduce(
        self,
        pay: PayConfig,
        month: str,
        records: List[WorkRecordRow],
    ) -> PayrollSummary:
        """Fold already-selected records into a summary. No I/O."""
        rai_qty = Decimal("0")
        rai_amount = Decimal("0")
        repair_days = 0
        repair_amount = Decimal("0")
        daily_amount = Decimal("0")
        details = []

        for record in records:
            contribution = self.resolver.resolve(record, pay)

            if contribution.category == CATEGORY_DAILY:
                daily_amount += contribution.amount
            elif contribution.category == CATEGORY_RAI:
                rai_qty += contribution.rai_qty
                rai_amount += contribution.amount
            elif contribution.category == CATEGORY_REPAIR:
                repair_days += contribution.repair_units
                repair_amount += contribution.amount
            else:
                logger.debug(
                    f"Task {record.task_id} has no resolvable rate for user {pay.user_id}; "
                    f"left out of {month} totals"
                )

            details.append(build_detail_line(record, pay, contribution))

        gross = rai_amount + repair_amount + daily_amount

        return PayrollSummary(
            user_id=pay.user_id,
            month=month,
            rai_qty=round_money(rai_qty),
            rai_amount=round_money(rai_amount),
            repair_days=repair_days,
            repair_amount=round_money(repair_amount),
            daily_amount=round_money(daily_amount),
            gross_amount=round_money(gross),
            details=details,
        )

    async def summarize(self, user_id: int, month: str) -> PayrollSummary:
        """
        Aggregate one employee-month.

        Raises:
            ValidationException: bad id or month token
            UserNotFoundException: unknown employee
        """
        user_id = validate_positive_id(user_id, "userId")
        month = validate_month(month)

        pay = await self.repository.get_pay_config(user_id)
        if pay is None:
            raise UserNotFoundException(user_id)

        month_start, month_end = month_bounds(month)
        records = await self.repository.list_work_for_employee_in_month(
            user_id, month_start, month_end,
        )

        summary = self.reduce(pay, month, records)
        if summary.skipped_count:
            logger.info(
                f"Payroll {month} for user {user_id}: {summary.skipped_count} of "
                f"{len(records)} tasks had no resolvable rate"
            )
        return summary
