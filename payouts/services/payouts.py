"""
Payout Qualification Engine: qualified lessons, preview, commit, status and
calendar views for teacher payouts.
Lessons already on a payout line never qualify again, so previews and
commits cannot count a lesson twice.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Case, Count, IntegerField, Q, Sum, Value, When
from django.utils import timezone

from core.errors import ConsistencyViolation, EmptyBatchError, InvalidOperationError, NotFoundError
from core.transactions import retry_on_conflict
from core.utils import check_period, get_organization
from lessons.models import Lesson
from students.models import TeacherProfile
from students.utils import get_teacher_profile
from payouts.models import PayoutStatus, TeacherPayout, TeacherPayoutLesson
from .qualification import CancellationPolicy, lesson_hours, payout_amount, qualify_lesson

logger = logging.getLogger(__name__)

HOURS_QUANT = Decimal('0.01')


@dataclass
class QualifiedLesson:
    lesson_id: int
    lesson_date: datetime
    duration_minutes: int
    hourly_rate: Decimal
    amount: Decimal
    qualification_reason: str
    payout_percent: int
    student_name: str
    lesson_title: str
    status: str = ''


@dataclass
class PayoutPreview:
    teacher_id: int
    teacher_name: str
    period_start: date
    period_end: date
    hourly_rate: Decimal
    total_hours: Decimal
    total_amount: Decimal
    currency: str
    lessons: List[QualifiedLesson] = field(default_factory=list)


@dataclass
class PayoutResult:
    payout: TeacherPayout
    preview: PayoutPreview


@dataclass
class LessonPayoutView:
    """One lesson in the calendar view with its qualification and payout, if any."""
    lesson_id: int
    title: str
    scheduled_at: datetime
    duration_minutes: int
    status: str
    student_name: str
    qualifies: bool
    qualification_reason: Optional[str] = None
    payout_percent: Optional[int] = None
    amount: Optional[Decimal] = None
    payout_id: Optional[int] = None
    payout_status: Optional[str] = None


@dataclass
class TeacherPayoutSummary:
    teacher_id: int
    name: str
    email: str
    hourly_rate: Decimal
    currency: str
    pending_payouts_count: int
    pending_payouts_total: Decimal


def _teacher_lessons(teacher, period_start, period_end):
    return (
        Lesson.objects
        .filter(
            teacher=teacher,
            scheduled_at__date__gte=period_start,
            scheduled_at__date__lte=period_end,
        )
        .select_related('student__user')
        .order_by('scheduled_at', 'id')
    )


def _qualified(lesson, teacher, policy):
    qualification = qualify_lesson(lesson.status, lesson.scheduled_at, lesson.cancelled_at, policy)
    if qualification is None:
        return None
    return QualifiedLesson(
        lesson_id=lesson.id,
        lesson_date=lesson.scheduled_at,
        duration_minutes=lesson.duration_minutes,
        hourly_rate=teacher.hourly_rate,
        amount=payout_amount(lesson.duration_minutes, teacher.hourly_rate, qualification.percent),
        qualification_reason=qualification.reason,
        payout_percent=qualification.percent,
        student_name=lesson.student.full_name,
        lesson_title=lesson.title,
        status=lesson.status,
    )


def _qualified_lessons(teacher, period_start, period_end):
    policy = CancellationPolicy.for_teacher(teacher)
    unpaid = _teacher_lessons(teacher, period_start, period_end).filter(payout_line__isnull=True)
    return [q for q in (_qualified(lesson, teacher, policy) for lesson in unpaid) if q is not None]


def _build_preview(teacher, organization, period_start, period_end):
    lessons = _qualified_lessons(teacher, period_start, period_end)
    total_minutes = sum(q.duration_minutes for q in lessons)
    return PayoutPreview(
        teacher_id=teacher.pk,
        teacher_name=teacher.full_name,
        period_start=period_start,
        period_end=period_end,
        hourly_rate=teacher.hourly_rate,
        total_hours=lesson_hours(total_minutes).quantize(HOURS_QUANT),
        total_amount=sum((q.amount for q in lessons), Decimal('0.00')),
        currency=organization.default_currency,
        lessons=lessons,
    )


def get_qualified_lessons(teacher_id, organization_id, period_start, period_end) -> List[QualifiedLesson]:
    check_period(period_start, period_end)
    teacher = get_teacher_profile(teacher_id, organization_id)
    return _qualified_lessons(teacher, period_start, period_end)


def preview_payout(teacher_id, organization_id, period_start, period_end) -> PayoutPreview:
    check_period(period_start, period_end)
    organization = get_organization(organization_id)
    teacher = get_teacher_profile(teacher_id, organization_id)
    return _build_preview(teacher, organization, period_start, period_end)


@retry_on_conflict('payout_commit')
def commit_payout(organization_id, teacher_id, period_start, period_end, notes=None, created_by=None) -> PayoutResult:
    """
    Re-derive qualified lessons with the teacher row locked and store the
    PENDING payout with one line per lesson. EmptyBatchError when none qualify.
    """
    check_period(period_start, period_end)
    organization = get_organization(organization_id)
    teacher = get_teacher_profile(teacher_id, organization_id)
    # Commits for one teacher run one at a time
    TeacherProfile.objects.select_for_update().filter(pk=teacher.pk).first()

    preview = _build_preview(teacher, organization, period_start, period_end)
    if not preview.lessons:
        raise EmptyBatchError(
            f"No qualified lessons for teacher {teacher.pk} between {period_start} and {period_end}"
        )

    payout = TeacherPayout.objects.create(
        organization=organization,
        teacher=teacher,
        period_start=period_start,
        period_end=period_end,
        total_hours=preview.total_hours,
        total_amount=preview.total_amount,
        currency=preview.currency,
        status=PayoutStatus.PENDING,
        notes=notes,
        created_by=created_by,
    )
    lines = [
        TeacherPayoutLesson(
            payout=payout,
            lesson_id=q.lesson_id,
            lesson_date=q.lesson_date,
            duration_minutes=q.duration_minutes,
            hourly_rate=q.hourly_rate,
            amount=q.amount,
            qualification_reason=q.qualification_reason,
            payout_percent=q.payout_percent,
            student_name=q.student_name,
            lesson_title=q.lesson_title,
        )
        for q in preview.lessons
    ]
    try:
        with transaction.atomic():
            TeacherPayoutLesson.objects.bulk_create(lines)
    except IntegrityError as exc:
        raise ConsistencyViolation(f"A lesson of teacher {teacher.pk} was paid by a concurrent payout") from exc

    logger.info(
        f"[payout_commit] payout={payout.id} teacher={teacher.pk} period={period_start}..{period_end} "
        f"lessons={len(lines)} hours={preview.total_hours} amount={preview.total_amount} {preview.currency}"
    )
    return PayoutResult(payout=payout, preview=preview)


def _lock_payout(payout_id, organization_id):
    try:
        return TeacherPayout.objects.select_for_update().get(pk=payout_id, organization_id=organization_id)
    except (TeacherPayout.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Payout {payout_id} not found")


def update_payout_status(payout_id, organization_id, status, notes=None) -> TeacherPayout:
    """
    PENDING -> PAID stamps paid_at. Same status only updates notes.
    PAID -> PENDING is rejected.
    """
    if status not in PayoutStatus.values:
        raise InvalidOperationError(f"Unknown payout status: {status}")
    with transaction.atomic():
        payout = _lock_payout(payout_id, organization_id)
        previous = payout.status
        if status != previous:
            if previous == PayoutStatus.PENDING and status == PayoutStatus.PAID:
                payout.status = PayoutStatus.PAID
                payout.paid_at = timezone.now()
            else:
                raise InvalidOperationError(f"Payout {payout.pk} is {previous} and cannot become {status}")
        if notes is not None:
            payout.notes = notes
        payout.save(update_fields=['status', 'paid_at', 'notes', 'updated_at'])
    logger.info(f"[payout_status] payout={payout.pk} {previous} -> {payout.status}")
    return get_payout(payout.pk, organization_id)


def delete_payout(payout_id, organization_id):
    """Only PENDING payouts; their lines go with them and the lessons become payable again."""
    with transaction.atomic():
        payout = _lock_payout(payout_id, organization_id)
        if payout.status != PayoutStatus.PENDING:
            raise InvalidOperationError(f"Payout {payout.pk} is {payout.status}; only PENDING payouts can be deleted")
        lines = payout.lines.count()
        payout.delete()
    logger.info(f"[payout_delete] payout={payout_id} lines={lines}")


def get_payout(payout_id, organization_id) -> TeacherPayout:
    try:
        return (
            TeacherPayout.objects
            .select_related('teacher__user')
            .prefetch_related('lines')
            .get(pk=payout_id, organization_id=organization_id)
        )
    except (TeacherPayout.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Payout {payout_id} not found")


def list_payouts(organization_id, teacher_id=None, status=None, period_start=None, period_end=None):
    """PENDING first, then newest period_end. Period filters keep overlapping payouts."""
    qs = (
        TeacherPayout.objects
        .filter(organization_id=organization_id)
        .select_related('teacher__user')
        .annotate(status_rank=Case(
            When(status=PayoutStatus.PENDING, then=Value(0)),
            default=Value(1),
            output_field=IntegerField(),
        ))
    )
    if teacher_id:
        qs = qs.filter(teacher_id=teacher_id)
    if status:
        if status not in PayoutStatus.values:
            raise InvalidOperationError(f"Unknown payout status: {status}")
        qs = qs.filter(status=status)
    if period_start:
        qs = qs.filter(period_end__gte=period_start)
    if period_end:
        qs = qs.filter(period_start__lte=period_end)
    return list(qs.order_by('status_rank', '-period_end', '-created_at'))


def list_teacher_payouts(teacher_id, organization_id):
    teacher = get_teacher_profile(teacher_id, organization_id)
    return list_payouts(organization_id, teacher_id=teacher.pk)


def get_lessons_for_range(teacher_id, organization_id, period_start, period_end) -> List[LessonPayoutView]:
    """Every lesson in range with its qualification and current payout; read only."""
    check_period(period_start, period_end)
    teacher = get_teacher_profile(teacher_id, organization_id)
    policy = CancellationPolicy.for_teacher(teacher)
    lessons = list(_teacher_lessons(teacher, period_start, period_end))
    # Keyed by lesson, not by the date copied at commit: a paid lesson may have moved since.
    lines = {
        line.lesson_id: line
        for line in TeacherPayoutLesson.objects.filter(
            lesson_id__in=[lesson.id for lesson in lessons],
        ).select_related('payout')
    }
    views = []
    for lesson in lessons:
        line = lines.get(lesson.id)
        qualification = qualify_lesson(lesson.status, lesson.scheduled_at, lesson.cancelled_at, policy)
        view = LessonPayoutView(
            lesson_id=lesson.id,
            title=lesson.title,
            scheduled_at=lesson.scheduled_at,
            duration_minutes=lesson.duration_minutes,
            status=lesson.status,
            student_name=lesson.student.full_name,
            qualifies=qualification is not None,
        )
        if line is not None:
            view.qualification_reason = line.qualification_reason
            view.payout_percent = line.payout_percent
            view.amount = line.amount
            view.payout_id = line.payout_id
            view.payout_status = line.payout.status
        elif qualification is not None:
            view.qualification_reason = qualification.reason
            view.payout_percent = qualification.percent
            view.amount = payout_amount(lesson.duration_minutes, teacher.hourly_rate, qualification.percent)
        views.append(view)
    return views


def get_lessons_for_day(teacher_id, organization_id, day) -> List[LessonPayoutView]:
    return get_lessons_for_range(teacher_id, organization_id, day, day)


def teachers_summary(organization_id) -> List[TeacherPayoutSummary]:
    """Active teachers with hourly rate and their PENDING payouts."""
    organization = get_organization(organization_id)
    teachers = (
        TeacherProfile.objects
        .filter(user__organization_id=organization.pk, is_active=True, user__is_active=True)
        .select_related('user')
        .annotate(
            pending_count=Count('payouts', filter=Q(payouts__status=PayoutStatus.PENDING)),
            pending_total=Sum('payouts__total_amount', filter=Q(payouts__status=PayoutStatus.PENDING)),
        )
        .order_by('user__full_name', 'id')
    )
    return [
        TeacherPayoutSummary(
            teacher_id=teacher.pk,
            name=teacher.full_name,
            email=teacher.user.email,
            hourly_rate=teacher.hourly_rate,
            currency=organization.default_currency,
            pending_payouts_count=teacher.pending_count,
            pending_payouts_total=teacher.pending_total or Decimal('0.00'),
        )
        for teacher in teachers
    ]
