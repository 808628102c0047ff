"""
Payment status endpoints (admin / manager).
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsFinanceStaff
from core.utils import request_organization_id
from .serializers import PaymentCompleteSerializer, PaymentSerializer
from .services import complete_payment, reopen_payment


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def payment_complete_view(request, pk):
    """
    POST /api/payments/{id}/complete
    Body: { paidAt?, method? }
    """
    serializer = PaymentCompleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payment = complete_payment(
        pk,
        request_organization_id(request),
        paid_at=serializer.validated_data.get('paidAt'),
        method=serializer.validated_data.get('method'),
        created_by=request.user,
    )
    return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFinanceStaff])
def payment_reopen_view(request, pk):
    """POST /api/payments/{id}/reopen"""
    payment = reopen_payment(pk, request_organization_id(request), created_by=request.user)
    return Response(PaymentSerializer(payment).data, status=status.HTTP_200_OK)
