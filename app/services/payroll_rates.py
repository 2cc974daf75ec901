"""
FieldOps - Payroll Rate Resolver

Works out what one task is worth to one worker.

Precedence:
1. Daily-paid workers get the daily rate once per task, whatever the job type.
2. Field-area jobs pay area x rate per rai.
3. Repair jobs pay the repair rate once per job, however long it ran.

Each rate comes from the assignment override when the assignment has
use_default switched off, otherwise from the worker's default.
A task whose rate (or area) cannot be resolved contributes nothing.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from app.models.task import JobType
from app.models.user import PayType
from app.repositories.payroll_repository import PayConfig, WorkRecordRow


ZERO = Decimal("0")

CATEGORY_RAI = "rai"
CATEGORY_REPAIR = "repair"
CATEGORY_DAILY = "daily"
CATEGORY_SKIPPED = "skipped"


@dataclass(frozen=True)
class EffectiveRates:
    """Rates that apply to one assignment after defaults are resolved."""
    rate_per_rai: Optional[Decimal]
    repair_rate: Optional[Decimal]
    daily_rate: Optional[Decimal]


@dataclass(frozen=True)
class RateContribution:
    """What a single task adds to the monthly totals."""
    category: str
    amount: Decimal = ZERO
    rai_qty: Decimal = ZERO
    repair_units: int = 0
    rates: Optional[EffectiveRates] = None

    @property
    def counted(self) -> bool:
        return self.category != CATEGORY_SKIPPED


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class RateResolver:
    """Pure rate resolution; holds no state."""

    @staticmethod
    def effective_rates(record: WorkRecordRow, pay: PayConfig) -> EffectiveRates:
        if record.use_default:
            return EffectiveRates(
                rate_per_rai=_to_decimal(pay.default_rate_per_rai),
                repair_rate=_to_decimal(pay.default_repair_rate),
                daily_rate=_to_decimal(pay.default_daily_rate),
            )
        return EffectiveRates(
            rate_per_rai=_to_decimal(record.rate_per_rai),
            repair_rate=_to_decimal(record.repair_rate),
            daily_rate=_to_decimal(record.daily_rate),
        )

    def resolve(self, record: WorkRecordRow, pay: PayConfig) -> RateContribution:
        rates = self.effective_rates(record, pay)

        if pay.pay_type == PayType.DAILY:
            if rates.daily_rate is None:
                return RateContribution(category=CATEGORY_SKIPPED, rates=rates)
            return RateContribution(
                category=CATEGORY_DAILY,
                amount=rates.daily_rate,
                rates=rates,
            )

        if record.job_type == JobType.FIELD_AREA:
            area = _to_decimal(record.area)
            if area is None or rates.rate_per_rai is None:
                return RateContribution(category=CATEGORY_SKIPPED, rates=rates)
            return RateContribution(
                category=CATEGORY_RAI,
                amount=area * rates.rate_per_rai,
                rai_qty=area,
                rates=rates,
            )

        if record.job_type == JobType.REPAIR:
            if rates.repair_rate is None:
                return RateContribution(category=CATEGORY_SKIPPED, rates=rates)
            return RateContribution(
                category=CATEGORY_REPAIR,
                amount=rates.repair_rate,
                repair_units=1,
                rates=rates,
            )

        return RateContribution(category=CATEGORY_SKIPPED, rates=rates)
