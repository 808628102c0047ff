"""
Payout qualification rule. Plain values in, plain values out, no database.

COMPLETED / CONFIRMED lessons pay 100%. A CANCELLED lesson with a
cancellation timestamp pays when it was cancelled late:
  - teacher policy enabled: less than hours_threshold before start, at percent
  - policy disabled: less than 24h before start, at 100%
Everything else (SCHEDULED, NO_SHOW, cancelled without timestamp) pays nothing.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from lessons.models import LessonStatus
from payouts.models import QualificationReason

LATE_CANCELLATION_LIMIT_HOURS = 24
LATE_CANCELLATION_PERCENT = 100
FULL_PERCENT = 100

CENT = Decimal('0.01')


@dataclass(frozen=True)
class CancellationPolicy:
    enabled: bool = False
    hours_threshold: Optional[int] = None
    percent: Optional[int] = None

    @classmethod
    def for_teacher(cls, teacher):
        return cls(
            enabled=bool(teacher.cancellation_payout_enabled),
            hours_threshold=teacher.cancellation_payout_hours,
            percent=teacher.cancellation_payout_percent,
        )

    def limits(self):
        """(hours, percent) a late cancellation is judged against."""
        if not self.enabled:
            return LATE_CANCELLATION_LIMIT_HOURS, LATE_CANCELLATION_PERCENT
        hours = self.hours_threshold if self.hours_threshold is not None else LATE_CANCELLATION_LIMIT_HOURS
        percent = self.percent if self.percent is not None else LATE_CANCELLATION_PERCENT
        return hours, percent


@dataclass(frozen=True)
class Qualification:
    reason: str
    percent: int


def hours_before_start(scheduled_at, cancelled_at) -> float:
    return (scheduled_at - cancelled_at).total_seconds() / 3600


def qualify_lesson(status, scheduled_at, cancelled_at, policy: CancellationPolicy) -> Optional[Qualification]:
    """Qualification for one lesson, or None when it does not pay."""
    if status == LessonStatus.COMPLETED:
        return Qualification(QualificationReason.COMPLETED, FULL_PERCENT)
    if status == LessonStatus.CONFIRMED:
        return Qualification(QualificationReason.CONFIRMED, FULL_PERCENT)
    if status != LessonStatus.CANCELLED or cancelled_at is None or scheduled_at is None:
        return None

    limit_hours, percent = policy.limits()
    if hours_before_start(scheduled_at, cancelled_at) < limit_hours:
        return Qualification(QualificationReason.LATE_CANCELLATION, percent)
    return None


def payout_amount(duration_minutes, hourly_rate, percent) -> Decimal:
    """(minutes / 60) * rate * (percent / 100), half-up to cents."""
    amount = (
        Decimal(duration_minutes) / Decimal(60)
        * Decimal(hourly_rate)
        * Decimal(percent) / Decimal(100)
    )
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def lesson_hours(duration_minutes) -> Decimal:
    return Decimal(duration_minutes) / Decimal(60)
