"""
Admin configuration for lessons app
"""
from django.contrib import admin
from .models import Course, Enrollment, Lesson


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'price_per_lesson', 'currency', 'is_active']
    list_filter = ['is_active', 'organization']
    search_fields = ['name']


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'course', 'status', 'enrolled_at']
    list_filter = ['status']
    search_fields = ['student__user__full_name', 'course__name']


@admin.register(Lesson)
class LessonAdmin(admin.ModelAdmin):
    """Lesson Admin"""
    list_display = ['title', 'teacher', 'student', 'scheduled_at', 'duration_minutes', 'status', 'price_per_lesson']
    list_filter = ['status', 'organization', 'scheduled_at']
    search_fields = ['title', 'student__user__full_name', 'teacher__user__full_name']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-scheduled_at']
