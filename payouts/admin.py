"""
Admin configuration for payouts app
"""
from django.contrib import admin
from .models import TeacherPayout, TeacherPayoutLesson


class TeacherPayoutLessonInline(admin.TabularInline):
    model = TeacherPayoutLesson
    extra = 0
    can_delete = False
    readonly_fields = ['lesson', 'lesson_date', 'duration_minutes', 'hourly_rate', 'amount',
                       'qualification_reason', 'payout_percent', 'student_name', 'lesson_title']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(TeacherPayout)
class TeacherPayoutAdmin(admin.ModelAdmin):
    """Teacher Payout Admin (status changes go through the API)"""
    list_display = ['teacher', 'period_start', 'period_end', 'total_hours', 'total_amount', 'currency',
                    'status', 'paid_at']
    list_filter = ['status', 'organization', 'period_end']
    search_fields = ['teacher__user__full_name', 'teacher__user__email']
    readonly_fields = ['organization', 'teacher', 'period_start', 'period_end', 'total_hours', 'total_amount',
                       'currency', 'status', 'paid_at', 'created_by', 'created_at', 'updated_at']
    inlines = [TeacherPayoutLessonInline]

    def has_add_permission(self, request):
        return False
