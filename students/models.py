"""
Student and Teacher profiles.
TeacherProfile carries the payout configuration: hourly rate and the
late-cancellation payout policy.
"""
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from accounts.models import User


class StudentProfile(models.Model):
    """
    Student Profile — OneToOne with User (role=student).
    Soft delete: deleted_at set instead of row delete.
    """
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='student_profile',
        limit_choices_to={'role': 'student'},
    )
    notes = models.TextField(blank=True, null=True)
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_profiles'
        verbose_name = 'Student Profile'
        verbose_name_plural = 'Student Profiles'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.full_name} ({self.user.email})"

    def save(self, *args, **kwargs):
        self.is_deleted = self.deleted_at is not None
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return self.user.full_name

    @property
    def organization_id(self):
        return self.user.organization_id


class TeacherProfile(models.Model):
    """
    Teacher Profile — OneToOne with User (role=teacher).
    cancellation_payout_*: when enabled, a lesson cancelled less than
    cancellation_payout_hours before its start pays cancellation_payout_percent.
    When disabled the fixed 24h / 100% rule applies.
    """
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='teacher_profile',
        limit_choices_to={'role': 'teacher'},
    )
    display_title = models.CharField(max_length=255, blank=True, null=True)
    hourly_rate = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    cancellation_payout_enabled = models.BooleanField(default=False)
    cancellation_payout_hours = models.PositiveIntegerField(null=True, blank=True)
    cancellation_payout_percent = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'teacher_profiles'
        verbose_name = 'Teacher Profile'
        verbose_name_plural = 'Teacher Profiles'

    def __str__(self):
        return str(self.user)

    @property
    def full_name(self):
        return self.user.full_name

    @property
    def organization_id(self):
        return self.user.organization_id
