"""
Teacher payouts: a PENDING -> PAID batch of qualified lessons.
A lesson appears in at most one payout line, ever (unique lesson column).
"""
from django.db import models

from students.models import TeacherProfile


class PayoutStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PAID = 'PAID', 'Paid'


class QualificationReason(models.TextChoices):
    COMPLETED = 'COMPLETED', 'Completed'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    LATE_CANCELLATION = 'LATE_CANCELLATION', 'Late cancellation'


class TeacherPayout(models.Model):
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='teacher_payouts',
        db_column='organization_id',
    )
    teacher = models.ForeignKey(
        TeacherProfile,
        on_delete=models.CASCADE,
        related_name='payouts',
    )
    period_start = models.DateField()
    period_end = models.DateField(db_index=True)
    total_hours = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3)
    status = models.CharField(
        max_length=20,
        choices=PayoutStatus.choices,
        default=PayoutStatus.PENDING,
        db_index=True,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_payouts',
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'teacher_payouts'
        verbose_name = 'Teacher Payout'
        verbose_name_plural = 'Teacher Payouts'
        ordering = ['-period_end', '-created_at']
        indexes = [
            models.Index(fields=['organization', 'status'], name='payout_org_status_idx'),
            models.Index(fields=['teacher', 'period_end'], name='payout_teacher_end_idx'),
        ]

    def __str__(self):
        return f"{self.teacher} {self.period_start}..{self.period_end}: {self.total_amount} {self.currency} ({self.status})"


class TeacherPayoutLesson(models.Model):
    """Payout line item: snapshot of one qualified lesson at commit time."""
    payout = models.ForeignKey(
        TeacherPayout,
        on_delete=models.CASCADE,
        related_name='lines',
    )
    lesson = models.OneToOneField(
        'lessons.Lesson',
        on_delete=models.PROTECT,
        related_name='payout_line',
    )
    lesson_date = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    hourly_rate = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    qualification_reason = models.CharField(max_length=30, choices=QualificationReason.choices)
    payout_percent = models.PositiveIntegerField(default=100)
    student_name = models.CharField(max_length=255)
    lesson_title = models.CharField(max_length=255)

    class Meta:
        db_table = 'teacher_payout_lessons'
        verbose_name = 'Teacher Payout Lesson'
        verbose_name_plural = 'Teacher Payout Lessons'
        ordering = ['lesson_date', 'id']

    def __str__(self):
        return f"{self.lesson_title} {self.lesson_date:%Y-%m-%d} {self.amount} ({self.qualification_reason})"
