"""
Admin configuration for settlements app (read-only; commit and delete go through the API)
"""
from django.contrib import admin
from .models import Settlement


@admin.register(Settlement)
class SettlementAdmin(admin.ModelAdmin):
    list_display = ['student', 'period_start', 'period_end', 'total_payments_due', 'total_payments_received',
                    'balance_before', 'balance_after', 'currency', 'created_at']
    list_filter = ['organization', 'period_end']
    search_fields = ['student__user__full_name', 'student__user__email']
    ordering = ['-period_end', '-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
