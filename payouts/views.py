"""
Teacher payout API (admin / manager, scoped to the caller's organization).
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsFinanceStaff
from core.utils import parse_date_param, request_organization_id
from .serializers import (
    LessonPayoutViewSerializer,
    PayoutCreateSerializer,
    PayoutFilterSerializer,
    PayoutPreviewSerializer,
    PayoutStatusSerializer,
    TeacherPayoutDetailSerializer,
    TeacherPayoutSerializer,
    TeacherPayoutSummarySerializer,
)
from .services.payouts import (
    commit_payout,
    delete_payout,
    get_lessons_for_day,
    get_lessons_for_range,
    get_payout,
    list_payouts,
    list_teacher_payouts,
    preview_payout,
    teachers_summary,
    update_payout_status,
)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def teachers_summary_view(request):
    """GET /api/payouts/teachers-summary"""
    rows = teachers_summary(request_organization_id(request))
    return Response(TeacherPayoutSummarySerializer(rows, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def payouts_view(request):
    """
    GET /api/payouts/?teacherId=&status=&periodStart=&periodEnd=
    POST /api/payouts/  Body: { teacherId, periodStart, periodEnd, notes? }
    """
    organization_id = request_organization_id(request)
    if request.method == 'GET':
        filters = PayoutFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        data = filters.validated_data
        payouts = list_payouts(
            organization_id,
            teacher_id=data.get('teacherId'),
            status=data.get('status'),
            period_start=data.get('periodStart'),
            period_end=data.get('periodEnd'),
        )
        return Response(TeacherPayoutSerializer(payouts, many=True).data)

    serializer = PayoutCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    result = commit_payout(
        organization_id,
        data['teacherId'],
        data['periodStart'],
        data['periodEnd'],
        notes=data.get('notes'),
        created_by=request.user,
    )
    payout = get_payout(result.payout.pk, organization_id)
    return Response({
        'payout': TeacherPayoutDetailSerializer(payout).data,
        'preview': PayoutPreviewSerializer(result.preview).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def payout_detail_view(request, pk):
    """
    GET /api/payouts/{id}
    DELETE /api/payouts/{id} - PENDING only
    """
    organization_id = request_organization_id(request)
    if request.method == 'DELETE':
        delete_payout(pk, organization_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response(TeacherPayoutDetailSerializer(get_payout(pk, organization_id)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def payout_status_view(request, pk):
    """
    PATCH /api/payouts/{id}/status
    Body: { status: PENDING|PAID, notes? }
    """
    serializer = PayoutStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payout = update_payout_status(
        pk,
        request_organization_id(request),
        serializer.validated_data['status'],
        notes=serializer.validated_data.get('notes'),
    )
    return Response(TeacherPayoutDetailSerializer(payout).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def teacher_payouts_view(request, teacher_id):
    """GET /api/payouts/teacher/{id}"""
    payouts = list_teacher_payouts(teacher_id, request_organization_id(request))
    return Response(TeacherPayoutSerializer(payouts, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def teacher_payout_preview_view(request, teacher_id):
    """GET /api/payouts/teacher/{id}/preview?periodStart=YYYY-MM-DD&periodEnd=YYYY-MM-DD"""
    period_start = parse_date_param(request.query_params.get('periodStart'), 'periodStart')
    period_end = parse_date_param(request.query_params.get('periodEnd'), 'periodEnd')
    preview = preview_payout(teacher_id, request_organization_id(request), period_start, period_end)
    return Response(PayoutPreviewSerializer(preview).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def teacher_lessons_view(request, teacher_id):
    """
    GET /api/payouts/teacher/{id}/lessons?date=YYYY-MM-DD
    GET /api/payouts/teacher/{id}/lessons?from=YYYY-MM-DD&to=YYYY-MM-DD
    """
    organization_id = request_organization_id(request)
    if request.query_params.get('date'):
        day = parse_date_param(request.query_params.get('date'), 'date')
        lessons = get_lessons_for_day(teacher_id, organization_id, day)
    else:
        date_from = parse_date_param(request.query_params.get('from'), 'from')
        date_to = parse_date_param(request.query_params.get('to'), 'to')
        lessons = get_lessons_for_range(teacher_id, organization_id, date_from, date_to)
    return Response(LessonPayoutViewSerializer(lessons, many=True).data)
