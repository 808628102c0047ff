"""
Settlement Engine.

preview: pending payments created in the period are "due", completed
payments paid in the period are "received"; period balance = received - due.
commit: same numbers, persisted as a Settlement and posted to the ledger as
one ADJUSTMENT, under the budget lock.
delete_most_recent: strict LIFO reversal of the newest settlement.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from django.db.models import Count, Sum
from django.utils import timezone

from balance.models import BalanceTransaction, StudentBudget
from balance.services import append_transaction, get_balance, lock_budget
from core.errors import ConsistencyViolation, InvalidOperationError, NotFoundError
from core.transactions import retry_on_conflict
from core.utils import check_period, get_organization
from payments.models import Payment
from students.models import StudentProfile
from students.utils import get_student_profile
from .models import Settlement

logger = logging.getLogger(__name__)

# Newest first; period_end decides, creation order breaks ties.
LIFO_ORDER = ('-period_end', '-created_at', '-id')


@dataclass
class SettlementItem:
    id: int
    amount: Decimal
    currency: str
    description: str
    date: Optional[datetime]
    status: str
    method: Optional[str] = None


@dataclass
class SettlementPreview:
    student_id: int
    student_name: str
    period_start: date
    period_end: date
    total_payments_due: Decimal
    total_payments_received: Decimal
    period_balance: Decimal
    balance_before: Decimal
    balance_after: Decimal
    currency: str
    payments_due: List[SettlementItem] = field(default_factory=list)
    payments_received: List[SettlementItem] = field(default_factory=list)


@dataclass
class SettlementResult:
    settlement: Settlement
    preview: SettlementPreview


@dataclass
class StudentBalanceRow:
    student_id: int
    name: str
    email: str
    current_balance: Decimal
    currency: str
    last_settlement_date: Optional[date]
    pending_payments_count: int
    pending_payments_sum: Decimal


@dataclass
class SettlementInfo:
    student_id: int
    current_balance: Decimal
    currency: str
    last_settlement_date: Optional[date]
    suggested_period_start: Optional[date]


def _item(payment, when):
    return SettlementItem(
        id=payment.id,
        amount=payment.amount,
        currency=payment.currency,
        description=payment.description,
        date=when,
        status=payment.status,
        method=payment.payment_method,
    )


def _period_payments(student, period_start, period_end):
    base = (
        Payment.objects
        .filter(student=student, organization_id=student.user.organization_id)
        .select_related('lesson', 'enrollment__course')
    )
    due = list(
        base.filter(
            status=Payment.STATUS_PENDING,
            created_at__date__gte=period_start,
            created_at__date__lte=period_end,
        ).order_by('created_at', 'id')
    )
    received = list(
        base.filter(
            status=Payment.STATUS_COMPLETED,
            paid_at__isnull=False,
            paid_at__date__gte=period_start,
            paid_at__date__lte=period_end,
        ).order_by('paid_at', 'id')
    )
    return due, received


def _build_preview(student, period_start, period_end, balance_before, currency):
    due, received = _period_payments(student, period_start, period_end)
    total_due = sum((p.amount for p in due), Decimal('0.00'))
    total_received = sum((p.amount for p in received), Decimal('0.00'))
    period_balance = total_received - total_due
    balance_before = Decimal(balance_before)
    return SettlementPreview(
        student_id=student.pk,
        student_name=student.full_name,
        period_start=period_start,
        period_end=period_end,
        total_payments_due=total_due,
        total_payments_received=total_received,
        period_balance=period_balance,
        balance_before=balance_before,
        balance_after=balance_before + period_balance,
        currency=currency,
        payments_due=[_item(p, p.created_at) for p in due],
        payments_received=[_item(p, p.paid_at) for p in received],
    )


def _latest_settlement(student_id, exclude_id=None):
    qs = Settlement.objects.filter(student_id=student_id)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.order_by(*LIFO_ORDER).first()


def preview_settlement(student_id, organization_id, period_start, period_end) -> SettlementPreview:
    """Read-only: nothing is created, not even the budget."""
    check_period(period_start, period_end)
    get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    snapshot = get_balance(student.pk, organization_id)
    return _build_preview(student, period_start, period_end, snapshot.current_balance, snapshot.currency)


@retry_on_conflict('settlement_commit')
def commit_settlement(student_id, organization_id, period_start, period_end, notes=None,
                      created_by=None) -> SettlementResult:
    """
    Re-run the preview under the budget lock, store the Settlement, move the
    balance to balance_after and set last_settlement_date = period_end.
    """
    check_period(period_start, period_end)
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    budget = lock_budget(student, organization)

    latest = _latest_settlement(student.pk)
    if latest is not None and period_end < latest.period_end:
        raise InvalidOperationError(
            f"Period end {period_end} is before the last settlement's period end {latest.period_end}"
        )

    preview = _build_preview(student, period_start, period_end, budget.current_balance, budget.currency)
    settlement = Settlement.objects.create(
        organization=organization,
        student=student,
        budget=budget,
        period_start=period_start,
        period_end=period_end,
        total_payments_due=preview.total_payments_due,
        total_payments_received=preview.total_payments_received,
        balance_before=preview.balance_before,
        balance_after=preview.balance_after,
        currency=preview.currency,
        notes=notes,
        created_by=created_by,
    )

    if preview.period_balance != 0:
        append_transaction(
            budget, BalanceTransaction.TYPE_ADJUSTMENT, preview.period_balance,
            f"Settlement {period_start} - {period_end}",
            created_by=created_by,
            metadata={
                'settlementId': settlement.id,
                'periodStart': period_start.isoformat(),
                'periodEnd': period_end.isoformat(),
            },
        )

    updated = StudentBudget.objects.filter(pk=budget.pk, current_balance=preview.balance_after).update(
        last_settlement_date=period_end,
        last_updated_at=timezone.now(),
    )
    if updated != 1:
        raise ConsistencyViolation(f"Budget {budget.pk} changed during settlement commit")

    logger.info(
        f"[settlement_commit] settlement={settlement.id} student={student.pk} "
        f"period={period_start}..{period_end} due={preview.total_payments_due} "
        f"received={preview.total_payments_received} balance {preview.balance_before} -> {preview.balance_after}"
    )
    return SettlementResult(settlement=settlement, preview=preview)


@retry_on_conflict('settlement_delete')
def delete_most_recent(settlement_id, organization_id, created_by=None):
    """
    Reverse the student's newest settlement: balance back to its
    balance_before, last_settlement_date back to the previous settlement's
    period_end (or None). Any older settlement is rejected.
    """
    settlement = get_settlement(settlement_id, organization_id)
    budget = StudentBudget.objects.select_for_update().get(pk=settlement.budget_id)

    latest = _latest_settlement(settlement.student_id)
    if latest.pk != settlement.pk:
        raise InvalidOperationError(
            f"Only the most recent settlement can be deleted (latest is {latest.pk}, period end {latest.period_end})"
        )
    previous = _latest_settlement(settlement.student_id, exclude_id=settlement.pk)

    delta = settlement.balance_before - budget.current_balance
    if delta != 0:
        append_transaction(
            budget, BalanceTransaction.TYPE_ADJUSTMENT, delta,
            f"Settlement reversal {settlement.period_start} - {settlement.period_end}",
            created_by=created_by,
            metadata={'settlementId': settlement.id, 'reversal': True},
        )

    restored_date = previous.period_end if previous else None
    StudentBudget.objects.filter(pk=budget.pk).update(
        last_settlement_date=restored_date,
        last_updated_at=timezone.now(),
    )
    settlement_pk = settlement.pk
    settlement.delete()
    logger.info(
        f"[settlement_delete] settlement={settlement_pk} student={settlement.student_id} "
        f"balance restored to {settlement.balance_before}, last_settlement_date={restored_date}"
    )


def get_settlement(settlement_id, organization_id) -> Settlement:
    try:
        return Settlement.objects.select_related('student__user').get(
            pk=settlement_id, organization_id=organization_id,
        )
    except (Settlement.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Settlement {settlement_id} not found")


def list_student_settlements(student_id, organization_id):
    student = get_student_profile(student_id, organization_id)
    return list(
        Settlement.objects.filter(student=student).select_related('student__user').order_by(*LIFO_ORDER)
    )


def forecast_first_settlement_start(student_id, organization_id) -> Optional[date]:
    """
    Day after the last settlement's period_end; without settlements the date
    of the student's first payment; None when there is no financial history.
    """
    student = get_student_profile(student_id, organization_id)
    latest = _latest_settlement(student.pk)
    if latest is not None:
        return latest.period_end + timedelta(days=1)
    first_payment = Payment.objects.filter(student=student).order_by('created_at', 'id').first()
    if first_payment is None:
        return None
    return timezone.localtime(first_payment.created_at).date()


def get_settlement_info(student_id, organization_id) -> SettlementInfo:
    snapshot = get_balance(student_id, organization_id)
    return SettlementInfo(
        student_id=snapshot.student_id,
        current_balance=snapshot.current_balance,
        currency=snapshot.currency,
        last_settlement_date=snapshot.last_settlement_date,
        suggested_period_start=forecast_first_settlement_start(student_id, organization_id),
    )


def list_students_with_balance(organization_id) -> List[StudentBalanceRow]:
    """Every active student of the organization with balance and pending payments."""
    organization = get_organization(organization_id)
    pending = {
        row['student_id']: row
        for row in (
            Payment.objects
            .filter(organization_id=organization.pk, status=Payment.STATUS_PENDING)
            .values('student_id')
            .annotate(count=Count('id'), total=Sum('amount'))
        )
    }
    students = (
        StudentProfile.objects
        .filter(user__organization_id=organization.pk, deleted_at__isnull=True)
        .select_related('user', 'budget')
        .order_by('user__full_name', 'id')
    )
    rows = []
    for student in students:
        budget = getattr(student, 'budget', None)
        pending_row = pending.get(student.pk, {})
        rows.append(StudentBalanceRow(
            student_id=student.pk,
            name=student.full_name,
            email=student.user.email,
            current_balance=budget.current_balance if budget else Decimal('0.00'),
            currency=budget.currency if budget else organization.default_currency,
            last_settlement_date=budget.last_settlement_date if budget else None,
            pending_payments_count=pending_row.get('count', 0),
            pending_payments_sum=pending_row.get('total') or Decimal('0.00'),
        ))
    return rows
