"""
Payment status workflow. Completing a payment deposits its amount on the
student's balance; reopening it takes the deposit back.
"""
import logging

from django.utils import timezone

from balance.services import add_deposit, revert_deposit
from core.errors import InvalidOperationError, NotFoundError
from core.transactions import retry_on_conflict
from .models import Payment

logger = logging.getLogger(__name__)


def _lock_payment(payment_id, organization_id):
    try:
        return (
            Payment.objects.select_for_update()
            .select_related('student__user')
            .get(pk=payment_id, organization_id=organization_id)
        )
    except (Payment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Payment {payment_id} not found")


@retry_on_conflict('payment_complete')
def complete_payment(payment_id, organization_id, paid_at=None, method=None, created_by=None):
    """PENDING -> COMPLETED, stamps paid_at and posts a DEPOSIT."""
    payment = _lock_payment(payment_id, organization_id)
    if payment.status != Payment.STATUS_PENDING:
        raise InvalidOperationError(
            f"Payment {payment.id} is {payment.status}; only PENDING payments can be completed"
        )
    payment.status = Payment.STATUS_COMPLETED
    payment.paid_at = paid_at or timezone.now()
    if method:
        payment.payment_method = method
    payment.save(update_fields=['status', 'paid_at', 'payment_method', 'updated_at'])

    add_deposit(
        payment.student_id,
        organization_id,
        payment.amount,
        payment.id,
        description=f"Payment: {payment.description}",
        created_by=created_by,
    )
    logger.info(f"[payment_complete] payment={payment.id} student={payment.student_id} amount={payment.amount}")
    return payment


@retry_on_conflict('payment_reopen')
def reopen_payment(payment_id, organization_id, created_by=None):
    """COMPLETED -> PENDING, clears paid_at and reverts the deposit."""
    payment = _lock_payment(payment_id, organization_id)
    if payment.status != Payment.STATUS_COMPLETED:
        raise InvalidOperationError(
            f"Payment {payment.id} is {payment.status}; only COMPLETED payments can be reopened"
        )
    payment.status = Payment.STATUS_PENDING
    payment.paid_at = None
    payment.save(update_fields=['status', 'paid_at', 'updated_at'])

    revert_deposit(
        payment.student_id,
        organization_id,
        payment.id,
        description=f"Payment reopened: {payment.description}",
        created_by=created_by,
    )
    logger.info(f"[payment_reopen] payment={payment.id} student={payment.student_id}")
    return payment
