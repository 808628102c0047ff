"""
Fixture builders shared by the finance tests.
"""
from datetime import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from core.models import Organization
from lessons.models import Course, Enrollment, Lesson, LessonStatus
from payments.models import Payment

User = get_user_model()


def aware(year, month, day, hour=0, minute=0):
    """Datetime in the project time zone."""
    return timezone.make_aware(datetime(year, month, day, hour, minute))


def make_org(slug="test-org", name="Test Org", currency="PLN"):
    return Organization.objects.create(slug=slug, name=name, currency=currency)


def make_user(org, email, role, full_name=None, password="test123"):
    return User.objects.create_user(
        email=email,
        password=password,
        full_name=full_name or email.split("@")[0].title(),
        role=role,
        organization=org,
    )


def make_student(org, email="student@test.com", full_name="Test Student"):
    """Student user; the profile comes from the post_save signal."""
    user = make_user(org, email, User.ROLE_STUDENT, full_name=full_name)
    return user.student_profile


def make_teacher(org, email="teacher@test.com", full_name="Test Teacher", hourly_rate="100.00", **policy):
    user = make_user(org, email, User.ROLE_TEACHER, full_name=full_name)
    teacher = user.teacher_profile
    teacher.hourly_rate = Decimal(hourly_rate)
    for field, value in policy.items():
        setattr(teacher, field, value)
    teacher.save()
    return teacher


def make_course(org, name="English B2", price_per_lesson=None):
    return Course.objects.create(organization=org, name=name, price_per_lesson=price_per_lesson)


def make_enrollment(org, student, course):
    return Enrollment.objects.create(organization=org, student=student, course=course)


def make_lesson(org, teacher, student, scheduled_at, status=LessonStatus.SCHEDULED, title="Lesson", **kwargs):
    return Lesson.objects.create(
        organization=org,
        teacher=teacher,
        student=student,
        scheduled_at=scheduled_at,
        status=status,
        title=title,
        **kwargs,
    )


def make_payment(org, student, amount, status=Payment.STATUS_PENDING, created_at=None, paid_at=None, **kwargs):
    return Payment.objects.create(
        organization=org,
        student=student,
        amount=Decimal(amount),
        currency=kwargs.pop("currency", "PLN"),
        status=status,
        created_at=created_at or timezone.now(),
        paid_at=paid_at,
        **kwargs,
    )


def auth_header(user):
    token = str(AccessToken.for_user(user))
    return {"HTTP_AUTHORIZATION": f"Bearer {token}"}
