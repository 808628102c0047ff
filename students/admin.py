"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import StudentProfile, TeacherProfile


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    """Student Profile Admin"""
    list_display = ['user', 'created_at', 'deleted_at']
    list_filter = ['created_at']
    search_fields = ['user__email', 'user__full_name', 'user__phone']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-created_at']


@admin.register(TeacherProfile)
class TeacherProfileAdmin(admin.ModelAdmin):
    """Teacher Profile Admin (payout configuration)"""
    list_display = ['user', 'hourly_rate', 'cancellation_payout_enabled', 'cancellation_payout_hours',
                    'cancellation_payout_percent', 'is_active']
    list_filter = ['cancellation_payout_enabled', 'is_active']
    search_fields = ['user__email', 'user__full_name']
    readonly_fields = ['created_at', 'updated_at']
