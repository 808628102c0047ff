"""
Serializers for payments app
"""
from rest_framework import serializers
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Payment serializer (camelCase for frontend)."""
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.user.full_name', read_only=True)
    lessonId = serializers.IntegerField(source='lesson_id', read_only=True, allow_null=True)
    enrollmentId = serializers.IntegerField(source='enrollment_id', read_only=True, allow_null=True)
    paymentNumber = serializers.CharField(source='receipt_no', read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    paidAt = serializers.DateTimeField(source='paid_at', read_only=True, allow_null=True)
    dueAt = serializers.DateTimeField(source='due_at', read_only=True, allow_null=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'studentId', 'studentName', 'lessonId', 'enrollmentId', 'amount', 'currency',
            'title', 'description', 'status', 'paymentMethod', 'paymentNumber', 'note',
            'createdAt', 'paidAt', 'dueAt',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if 'amount' in data and data['amount'] is not None:
            data['amount'] = float(data['amount'])
        return data


class PaymentCompleteSerializer(serializers.Serializer):
    paidAt = serializers.DateTimeField(required=False, allow_null=True)
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False, allow_null=True)
