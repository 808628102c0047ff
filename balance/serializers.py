"""
Serializers for balance app
"""
from decimal import Decimal
from django.core.validators import MinValueValidator
from rest_framework import serializers

from .models import BalanceTransaction


class BalanceTransactionSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='budget.student_id', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    balanceBefore = serializers.DecimalField(source='balance_before', max_digits=12, decimal_places=2, coerce_to_string=False)
    balanceAfter = serializers.DecimalField(source='balance_after', max_digits=12, decimal_places=2, coerce_to_string=False)
    relatedLessonId = serializers.IntegerField(source='lesson_id', allow_null=True)
    relatedPaymentId = serializers.IntegerField(source='payment_id', allow_null=True)
    createdById = serializers.IntegerField(source='created_by_id', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = BalanceTransaction
        fields = [
            'id', 'studentId', 'type', 'amount', 'balanceBefore', 'balanceAfter', 'currency',
            'description', 'relatedLessonId', 'relatedPaymentId', 'createdById', 'metadata', 'createdAt',
        ]
        read_only_fields = fields


class BalanceSnapshotSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(source='student_id')
    currentBalance = serializers.DecimalField(source='current_balance', max_digits=12, decimal_places=2, coerce_to_string=False)
    currency = serializers.CharField()
    lastUpdated = serializers.DateTimeField(source='last_updated_at', allow_null=True)
    lastSettlementDate = serializers.DateField(source='last_settlement_date', allow_null=True)
    recentTransactions = BalanceTransactionSerializer(source='recent_transactions', many=True)


class AdjustBalanceSerializer(serializers.Serializer):
    """Manual correction: positive credits, negative debits."""
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=500)

    def validate_amount(self, value):
        if value == 0:
            raise serializers.ValidationError('Amount must not be zero.')
        return value


class TransactionFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=BalanceTransaction.TYPE_CHOICES, required=False)
    dateFrom = serializers.DateField(required=False)
    dateTo = serializers.DateField(required=False)
    page = serializers.IntegerField(required=False, default=1, validators=[MinValueValidator(1)])
    pageSize = serializers.IntegerField(required=False, default=20, validators=[MinValueValidator(1)])


class ProjectedLessonSerializer(serializers.Serializer):
    lessonId = serializers.IntegerField(source='lesson_id')
    title = serializers.CharField()
    scheduledAt = serializers.DateTimeField(source='scheduled_at')
    price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False)
    balanceAfter = serializers.DecimalField(source='balance_after', max_digits=12, decimal_places=2, coerce_to_string=False)


class BalanceForecastSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(source='student_id')
    currentBalance = serializers.DecimalField(source='current_balance', max_digits=12, decimal_places=2, coerce_to_string=False)
    currency = serializers.CharField()
    upcomingLessonsCount = serializers.IntegerField(source='upcoming_lessons_count')
    lessonsUntilDepletion = serializers.IntegerField(source='lessons_until_depletion', allow_null=True)
    depletionDate = serializers.DateTimeField(source='depletion_date', allow_null=True)
    forecastedBalanceAfterAllLessons = serializers.DecimalField(
        source='forecasted_balance_after_all_lessons', max_digits=12, decimal_places=2, coerce_to_string=False,
    )
    perLessonRunningBalances = ProjectedLessonSerializer(source='lessons', many=True)
