"""
Settlement API (admin / manager, scoped to the caller's organization).
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsFinanceStaff
from balance.forecast import forecast_balance
from balance.serializers import BalanceForecastSerializer
from core.utils import request_organization_id
from .serializers import (
    SettlementInfoSerializer,
    SettlementPeriodSerializer,
    SettlementPreviewSerializer,
    SettlementSerializer,
    StudentBalanceRowSerializer,
)
from .services import (
    commit_settlement,
    delete_most_recent,
    get_settlement,
    get_settlement_info,
    list_student_settlements,
    list_students_with_balance,
    preview_settlement,
)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def students_with_balance_view(request):
    """GET /api/settlements/students"""
    rows = list_students_with_balance(request_organization_id(request))
    return Response(StudentBalanceRowSerializer(rows, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def student_settlement_info_view(request, student_id):
    """GET /api/settlements/student/{id}/info"""
    info = get_settlement_info(student_id, request_organization_id(request))
    return Response(SettlementInfoSerializer(info).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def student_forecast_view(request, student_id):
    """GET /api/settlements/student/{id}/forecast"""
    forecast = forecast_balance(student_id, request_organization_id(request))
    return Response(BalanceForecastSerializer(forecast).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def student_settlements_view(request, student_id):
    """GET /api/settlements/student/{id} - newest period first"""
    settlements = list_student_settlements(student_id, request_organization_id(request))
    return Response(SettlementSerializer(settlements, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def settlement_preview_view(request):
    """
    POST /api/settlements/preview
    Body: { studentId, periodStart, periodEnd }. Nothing is saved.
    """
    serializer = SettlementPeriodSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    preview = preview_settlement(
        data['studentId'], request_organization_id(request), data['periodStart'], data['periodEnd'],
    )
    return Response(SettlementPreviewSerializer(preview).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def settlement_create_view(request):
    """
    POST /api/settlements/
    Body: { studentId, periodStart, periodEnd, notes? }
    Returns: { settlement, preview }
    """
    serializer = SettlementPeriodSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    result = commit_settlement(
        data['studentId'],
        request_organization_id(request),
        data['periodStart'],
        data['periodEnd'],
        notes=data.get('notes'),
        created_by=request.user,
    )
    return Response({
        'settlement': SettlementSerializer(result.settlement).data,
        'preview': SettlementPreviewSerializer(result.preview).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def settlement_detail_view(request, pk):
    """
    GET /api/settlements/{id}
    DELETE /api/settlements/{id} - only the student's most recent settlement
    """
    organization_id = request_organization_id(request)
    if request.method == 'DELETE':
        delete_most_recent(pk, organization_id, created_by=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
    settlement = get_settlement(pk, organization_id)
    return Response(SettlementSerializer(settlement).data)
