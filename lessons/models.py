"""
Course, Enrollment and Lesson.
Scheduling owns these rows; finance code only reads them (prices, statuses,
timestamps) for settlements, payouts and the balance forecast.
"""
from django.db import models
from students.models import StudentProfile, TeacherProfile


class Course(models.Model):
    """Course with an optional default price per lesson."""
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='courses',
        db_column='organization_id',
    )
    name = models.CharField(max_length=255)
    price_per_lesson = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, blank=True, default='')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courses'
        verbose_name = 'Course'
        verbose_name_plural = 'Courses'
        ordering = ['name']

    def __str__(self):
        return self.name


class Enrollment(models.Model):
    """Student enrolled in a course."""
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='enrollments',
        db_column='organization_id',
    )
    student = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='enrollments',
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='enrollments',
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'enrollments'
        verbose_name = 'Enrollment'
        verbose_name_plural = 'Enrollments'
        ordering = ['-enrolled_at']
        constraints = [
            models.UniqueConstraint(fields=['student', 'course'], name='unique_student_course_enrollment'),
        ]

    def __str__(self):
        return f"{self.student.full_name} - {self.course.name}"


class LessonStatus(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    NO_SHOW = 'NO_SHOW', 'No show'


class Lesson(models.Model):
    """
    Single lesson between one teacher and one student.
    Price for the student: price_per_lesson, then teacher_rate, then the
    enrollment course's price_per_lesson.
    """
    UPCOMING_STATUSES = (LessonStatus.SCHEDULED, LessonStatus.CONFIRMED)

    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='lessons',
        db_column='organization_id',
    )
    teacher = models.ForeignKey(
        TeacherProfile,
        on_delete=models.CASCADE,
        related_name='lessons',
    )
    student = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='lessons',
    )
    enrollment = models.ForeignKey(
        Enrollment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='lessons',
    )
    title = models.CharField(max_length=255)
    scheduled_at = models.DateTimeField(db_index=True)
    duration_minutes = models.PositiveIntegerField(default=60)
    status = models.CharField(
        max_length=20,
        choices=LessonStatus.choices,
        default=LessonStatus.SCHEDULED,
        db_index=True,
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, null=True)
    price_per_lesson = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    teacher_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lessons'
        verbose_name = 'Lesson'
        verbose_name_plural = 'Lessons'
        ordering = ['scheduled_at']
        indexes = [
            models.Index(fields=['teacher', 'scheduled_at'], name='lesson_teacher_sched_idx'),
            models.Index(fields=['student', 'scheduled_at'], name='lesson_student_sched_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.scheduled_at:%Y-%m-%d %H:%M})"
