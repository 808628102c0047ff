"""
Balance API: staff read / adjust any student in their organization,
students read their own balance.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsFinanceStaff, IsStudent
from core.utils import request_organization_id
from students.utils import get_student_for_user
from .serializers import (
    AdjustBalanceSerializer,
    BalanceSnapshotSerializer,
    BalanceTransactionSerializer,
    TransactionFilterSerializer,
)
from .services import adjust_balance, get_student_balance, list_transactions


def _transactions_response(request, student_id, organization_id):
    filters = TransactionFilterSerializer(data=request.query_params)
    filters.is_valid(raise_exception=True)
    data = filters.validated_data
    page = list_transactions(
        student_id,
        organization_id,
        tx_type=data.get('type'),
        date_from=data.get('dateFrom'),
        date_to=data.get('dateTo'),
        page=data.get('page'),
        page_size=data.get('pageSize'),
    )
    return Response({
        'items': BalanceTransactionSerializer(page.items, many=True).data,
        'meta': {
            'page': page.page,
            'pageSize': page.page_size,
            'total': page.total,
            'hasNext': page.has_next,
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_balance_view(request):
    """GET /api/balance/my"""
    student = get_student_for_user(request.user)
    snapshot = get_student_balance(student.pk, request_organization_id(request))
    return Response(BalanceSnapshotSerializer(snapshot).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def my_transactions_view(request):
    """GET /api/balance/my/transactions?type=&dateFrom=&dateTo=&page=&pageSize="""
    student = get_student_for_user(request.user)
    return _transactions_response(request, student.pk, request_organization_id(request))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def student_balance_view(request, student_id):
    """GET /api/balance/{studentId}"""
    snapshot = get_student_balance(student_id, request_organization_id(request))
    return Response(BalanceSnapshotSerializer(snapshot).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def student_transactions_view(request, student_id):
    """GET /api/balance/{studentId}/transactions"""
    return _transactions_response(request, student_id, request_organization_id(request))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def adjust_balance_view(request, student_id):
    """
    POST /api/balance/{studentId}/adjust
    Body: { amount, description }. Returns the posted transaction.
    """
    serializer = AdjustBalanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    tx = adjust_balance(
        student_id,
        request_organization_id(request),
        serializer.validated_data['amount'],
        serializer.validated_data['description'],
        created_by=request.user,
    )
    return Response(BalanceTransactionSerializer(tx).data, status=status.HTTP_201_CREATED)
