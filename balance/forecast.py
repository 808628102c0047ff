"""
Balance forecast: walk the student's upcoming lessons from the current
balance and report where (if ever) it first drops below zero.
Read-only; nothing here writes to the ledger.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from django.utils import timezone

from lessons.models import Lesson
from students.utils import get_student_profile
from .services import get_balance


# Per-lesson price, first non-null wins. Order matters: it decides what the student pays.
def _own_price(lesson):
    return lesson.price_per_lesson


def _teacher_rate_override(lesson):
    return lesson.teacher_rate


def _course_default_price(lesson):
    enrollment = lesson.enrollment
    if enrollment is None or enrollment.course is None:
        return None
    return enrollment.course.price_per_lesson


PRICE_RESOLVERS = (
    _own_price,
    _teacher_rate_override,
    _course_default_price,
)


def resolve_lesson_price(lesson, resolvers=PRICE_RESOLVERS) -> Decimal:
    for resolver in resolvers:
        price = resolver(lesson)
        if price is not None:
            return Decimal(price)
    return Decimal('0.00')


@dataclass
class UpcomingLesson:
    lesson_id: int
    title: str
    scheduled_at: datetime
    price: Decimal


@dataclass
class ProjectedLesson:
    lesson_id: int
    title: str
    scheduled_at: datetime
    price: Decimal
    balance_after: Decimal


@dataclass
class BalanceForecast:
    current_balance: Decimal
    currency: str = ''
    student_id: Optional[int] = None
    upcoming_lessons_count: int = 0
    lessons_until_depletion: Optional[int] = None
    depletion_date: Optional[datetime] = None
    forecasted_balance_after_all_lessons: Decimal = Decimal('0.00')
    lessons: List[ProjectedLesson] = field(default_factory=list)

    @property
    def running_balances(self):
        return [item.balance_after for item in self.lessons]


def project_balance(current_balance, upcoming: Iterable[UpcomingLesson]) -> BalanceForecast:
    """
    Subtract each lesson's price in the given order. lessons_until_depletion
    is the zero-based index of the first lesson leaving the balance negative;
    None when it never does.
    """
    running = Decimal(current_balance)
    projected = []
    depletion_index = None
    depletion_date = None
    for index, lesson in enumerate(upcoming):
        running = running - lesson.price
        projected.append(ProjectedLesson(
            lesson_id=lesson.lesson_id,
            title=lesson.title,
            scheduled_at=lesson.scheduled_at,
            price=lesson.price,
            balance_after=running,
        ))
        if depletion_index is None and running < 0:
            depletion_index = index
            depletion_date = lesson.scheduled_at
    return BalanceForecast(
        current_balance=Decimal(current_balance),
        upcoming_lessons_count=len(projected),
        lessons_until_depletion=depletion_index,
        depletion_date=depletion_date,
        forecasted_balance_after_all_lessons=running,
        lessons=projected,
    )


def upcoming_lessons(student, now=None):
    now = now or timezone.now()
    return (
        Lesson.objects
        .filter(
            student=student,
            status__in=Lesson.UPCOMING_STATUSES,
            scheduled_at__gte=now,
        )
        .select_related('enrollment__course')
        .order_by('scheduled_at', 'id')
    )


def forecast_balance(student_id, organization_id, now=None) -> BalanceForecast:
    """Forecast for the student's SCHEDULED / CONFIRMED lessons from now on."""
    student = get_student_profile(student_id, organization_id)
    snapshot = get_balance(student.pk, organization_id)
    upcoming = [
        UpcomingLesson(
            lesson_id=lesson.id,
            title=lesson.title,
            scheduled_at=lesson.scheduled_at,
            price=resolve_lesson_price(lesson),
        )
        for lesson in upcoming_lessons(student, now=now)
    ]
    forecast = project_balance(snapshot.current_balance, upcoming)
    forecast.student_id = student.pk
    forecast.currency = snapshot.currency
    return forecast
