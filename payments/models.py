"""
Payment models
"""
import uuid
from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from accounts.models import User
from students.models import StudentProfile


class Payment(models.Model):
    """
    Payment record.
    PENDING: amount due (a charge in settlements, counted by created_at).
    COMPLETED: money received (a deposit in settlements, counted by paid_at).
    """
    STATUS_PENDING = 'PENDING'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_FAILED = 'FAILED'
    STATUS_REFUNDED = 'REFUNDED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
        (STATUS_REFUNDED, 'Refunded'),
    ]

    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('bank', 'Bank Transfer'),
        ('online', 'Online'),
    ]

    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='payments',
        db_column='organization_id',
    )
    student = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    lesson = models.ForeignKey(
        'lessons.Lesson',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
    )
    enrollment = models.ForeignKey(
        'lessons.Enrollment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
    )
    title = models.CharField(max_length=255, blank=True, null=True)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    currency = models.CharField(max_length=3, blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, blank=True, null=True)
    receipt_no = models.CharField(max_length=50, unique=True, blank=True, null=True)
    due_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True, db_index=True)
    note = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_payments',
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['student', 'status', 'created_at'], name='pay_student_status_created_idx'),
            models.Index(fields=['student', 'status', 'paid_at'], name='pay_student_status_paid_idx'),
            models.Index(fields=['organization', 'status'], name='pay_org_status_idx'),
        ]

    def __str__(self):
        return f"Payment {self.receipt_no or self.id} - {self.student.user.full_name} - {self.amount}"

    def save(self, *args, **kwargs):
        """Generate receipt number if not provided"""
        if not self.receipt_no:
            self.receipt_no = f"PAY-{uuid.uuid4().hex[:8].upper()}"
        super().save(*args, **kwargs)

    @property
    def description(self):
        """Human label: title, else lesson title, else course name."""
        if self.title:
            return self.title
        if self.lesson_id and self.lesson:
            return self.lesson.title
        if self.enrollment_id and self.enrollment:
            return self.enrollment.course.name
        return f"Payment {self.receipt_no or self.id}"
