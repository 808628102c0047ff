"""
Admin configuration for payments app
"""
from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Payment Admin. Status changes go through the API so the ledger stays in sync."""
    list_display = ['receipt_no', 'student', 'amount', 'currency', 'status', 'created_at', 'paid_at', 'payment_method']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['receipt_no', 'student__user__email', 'student__user__full_name']
    readonly_fields = ['receipt_no', 'status', 'paid_at', 'created_at', 'updated_at']
    ordering = ['-created_at']
