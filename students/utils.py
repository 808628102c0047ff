"""
Organization-scoped profile lookups shared by the finance services.
"""
from core.errors import NotFoundError
from .models import StudentProfile, TeacherProfile


def get_student_profile(student_id, organization_id):
    """
    Student in the organization or NotFoundError. A student from another
    organization is reported as missing.
    """
    try:
        return StudentProfile.objects.select_related('user').get(
            pk=student_id,
            user__organization_id=organization_id,
            deleted_at__isnull=True,
        )
    except (StudentProfile.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Student {student_id} not found")


def get_teacher_profile(teacher_id, organization_id):
    try:
        return TeacherProfile.objects.select_related('user').get(
            pk=teacher_id,
            user__organization_id=organization_id,
        )
    except (TeacherProfile.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Teacher {teacher_id} not found")


def get_student_for_user(user):
    """StudentProfile of the logged-in student user."""
    try:
        return user.student_profile
    except StudentProfile.DoesNotExist:
        raise NotFoundError("Student profile not found")
