"""
Custom permissions for role-based access
"""
from rest_framework import permissions


class IsFinanceStaff(permissions.BasePermission):
    """Admin or manager: may read and change any student's balance, settlements and payouts."""

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_finance_staff
        )


class IsTeacher(permissions.BasePermission):
    """Permission check for teacher role"""

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.role == 'teacher'
        )


class IsStudent(permissions.BasePermission):
    """Permission check for student role"""

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.role == 'student'
        )
