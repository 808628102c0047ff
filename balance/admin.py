"""
Admin configuration for balance app. The ledger is read-only here;
postings go through balance.services.
"""
from django.contrib import admin
from .models import BalanceTransaction, StudentBudget


@admin.register(StudentBudget)
class StudentBudgetAdmin(admin.ModelAdmin):
    list_display = ['student', 'organization', 'current_balance', 'currency', 'last_settlement_date', 'last_updated_at']
    list_filter = ['organization', 'currency']
    search_fields = ['student__user__email', 'student__user__full_name']
    readonly_fields = ['student', 'organization', 'current_balance', 'currency', 'last_settlement_date',
                       'created_at', 'last_updated_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BalanceTransaction)
class BalanceTransactionAdmin(admin.ModelAdmin):
    list_display = ['budget', 'type', 'amount', 'balance_before', 'balance_after', 'currency', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['budget__student__user__full_name', 'description']
    ordering = ['-created_at', '-id']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
