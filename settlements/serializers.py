"""
Serializers for settlements app
"""
from rest_framework import serializers

from .models import Settlement


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, **kwargs)


class SettlementSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id')
    studentName = serializers.CharField(source='student.full_name')
    budgetId = serializers.IntegerField(source='budget_id')
    periodStart = serializers.DateField(source='period_start')
    periodEnd = serializers.DateField(source='period_end')
    totalPaymentsDue = _money(source='total_payments_due')
    totalPaymentsReceived = _money(source='total_payments_received')
    balanceBefore = _money(source='balance_before')
    balanceAfter = _money(source='balance_after')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Settlement
        fields = [
            'id', 'studentId', 'studentName', 'budgetId', 'periodStart', 'periodEnd',
            'totalPaymentsDue', 'totalPaymentsReceived', 'balanceBefore', 'balanceAfter',
            'currency', 'notes', 'createdAt',
        ]
        read_only_fields = fields


class SettlementItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    amount = _money()
    currency = serializers.CharField()
    description = serializers.CharField()
    date = serializers.DateTimeField(allow_null=True)
    status = serializers.CharField()
    method = serializers.CharField(allow_null=True)


class SettlementPreviewSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(source='student_id')
    studentName = serializers.CharField(source='student_name')
    periodStart = serializers.DateField(source='period_start')
    periodEnd = serializers.DateField(source='period_end')
    totalPaymentsDue = _money(source='total_payments_due')
    totalPaymentsReceived = _money(source='total_payments_received')
    periodBalance = _money(source='period_balance')
    balanceBefore = _money(source='balance_before')
    balanceAfter = _money(source='balance_after')
    currency = serializers.CharField()
    paymentsDue = SettlementItemSerializer(source='payments_due', many=True)
    paymentsReceived = SettlementItemSerializer(source='payments_received', many=True)


class StudentBalanceRowSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(source='student_id')
    name = serializers.CharField()
    email = serializers.CharField()
    currentBalance = _money(source='current_balance')
    currency = serializers.CharField()
    lastSettlementDate = serializers.DateField(source='last_settlement_date', allow_null=True)
    pendingPaymentsCount = serializers.IntegerField(source='pending_payments_count')
    pendingPaymentsSum = _money(source='pending_payments_sum')


class SettlementInfoSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(source='student_id')
    currentBalance = _money(source='current_balance')
    currency = serializers.CharField()
    lastSettlementDate = serializers.DateField(source='last_settlement_date', allow_null=True)
    suggestedPeriodStart = serializers.DateField(source='suggested_period_start', allow_null=True)


class SettlementPeriodSerializer(serializers.Serializer):
    """Body of preview / commit."""
    studentId = serializers.IntegerField()
    periodStart = serializers.DateField()
    periodEnd = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs['periodEnd'] < attrs['periodStart']:
            raise serializers.ValidationError({'periodEnd': 'periodEnd must not be before periodStart.'})
        return attrs
