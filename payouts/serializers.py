"""
Serializers for payouts app
"""
from rest_framework import serializers

from .models import PayoutStatus, TeacherPayout, TeacherPayoutLesson


def _money(**kwargs):
    return serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, **kwargs)


class PayoutLessonSerializer(serializers.ModelSerializer):
    lessonId = serializers.IntegerField(source='lesson_id')
    lessonDate = serializers.DateTimeField(source='lesson_date')
    durationMinutes = serializers.IntegerField(source='duration_minutes')
    hourlyRate = _money(source='hourly_rate')
    amount = _money()
    qualificationReason = serializers.CharField(source='qualification_reason')
    payoutPercent = serializers.IntegerField(source='payout_percent')
    studentName = serializers.CharField(source='student_name')
    lessonTitle = serializers.CharField(source='lesson_title')

    class Meta:
        model = TeacherPayoutLesson
        fields = [
            'id', 'lessonId', 'lessonDate', 'durationMinutes', 'hourlyRate', 'amount',
            'qualificationReason', 'payoutPercent', 'studentName', 'lessonTitle',
        ]
        read_only_fields = fields


class TeacherPayoutSerializer(serializers.ModelSerializer):
    teacherId = serializers.IntegerField(source='teacher_id')
    teacherName = serializers.CharField(source='teacher.full_name')
    periodStart = serializers.DateField(source='period_start')
    periodEnd = serializers.DateField(source='period_end')
    totalHours = _money(source='total_hours')
    totalAmount = _money(source='total_amount')
    paidAt = serializers.DateTimeField(source='paid_at', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = TeacherPayout
        fields = [
            'id', 'teacherId', 'teacherName', 'periodStart', 'periodEnd', 'totalHours', 'totalAmount',
            'currency', 'status', 'paidAt', 'notes', 'createdAt',
        ]
        read_only_fields = fields


class TeacherPayoutDetailSerializer(TeacherPayoutSerializer):
    lessons = PayoutLessonSerializer(source='lines', many=True)

    class Meta(TeacherPayoutSerializer.Meta):
        fields = TeacherPayoutSerializer.Meta.fields + ['lessons']
        read_only_fields = fields


class QualifiedLessonSerializer(serializers.Serializer):
    lessonId = serializers.IntegerField(source='lesson_id')
    lessonDate = serializers.DateTimeField(source='lesson_date')
    durationMinutes = serializers.IntegerField(source='duration_minutes')
    hourlyRate = _money(source='hourly_rate')
    amount = _money()
    qualificationReason = serializers.CharField(source='qualification_reason')
    payoutPercent = serializers.IntegerField(source='payout_percent')
    studentName = serializers.CharField(source='student_name')
    lessonTitle = serializers.CharField(source='lesson_title')
    status = serializers.CharField()


class PayoutPreviewSerializer(serializers.Serializer):
    teacherId = serializers.IntegerField(source='teacher_id')
    teacherName = serializers.CharField(source='teacher_name')
    periodStart = serializers.DateField(source='period_start')
    periodEnd = serializers.DateField(source='period_end')
    hourlyRate = _money(source='hourly_rate')
    totalHours = _money(source='total_hours')
    totalAmount = _money(source='total_amount')
    currency = serializers.CharField()
    lessons = QualifiedLessonSerializer(many=True)


class LessonPayoutViewSerializer(serializers.Serializer):
    lessonId = serializers.IntegerField(source='lesson_id')
    title = serializers.CharField()
    scheduledAt = serializers.DateTimeField(source='scheduled_at')
    durationMinutes = serializers.IntegerField(source='duration_minutes')
    status = serializers.CharField()
    studentName = serializers.CharField(source='student_name')
    qualifies = serializers.BooleanField()
    qualificationReason = serializers.CharField(source='qualification_reason', allow_null=True)
    payoutPercent = serializers.IntegerField(source='payout_percent', allow_null=True)
    amount = _money(allow_null=True)
    payoutId = serializers.IntegerField(source='payout_id', allow_null=True)
    payoutStatus = serializers.CharField(source='payout_status', allow_null=True)


class TeacherPayoutSummarySerializer(serializers.Serializer):
    teacherId = serializers.IntegerField(source='teacher_id')
    name = serializers.CharField()
    email = serializers.CharField()
    hourlyRate = _money(source='hourly_rate')
    currency = serializers.CharField()
    pendingPayoutsCount = serializers.IntegerField(source='pending_payouts_count')
    pendingPayoutsTotal = _money(source='pending_payouts_total')


class PayoutCreateSerializer(serializers.Serializer):
    teacherId = serializers.IntegerField()
    periodStart = serializers.DateField()
    periodEnd = serializers.DateField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if attrs['periodEnd'] < attrs['periodStart']:
            raise serializers.ValidationError({'periodEnd': 'periodEnd must not be before periodStart.'})
        return attrs


class PayoutStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PayoutStatus.choices)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PayoutFilterSerializer(serializers.Serializer):
    teacherId = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=PayoutStatus.choices, required=False)
    periodStart = serializers.DateField(required=False)
    periodEnd = serializers.DateField(required=False)
