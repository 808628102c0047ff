"""
Ledger Store services.
Every write locks the student's budget row, appends one BalanceTransaction
and moves current_balance inside the same transaction.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from core.errors import ConsistencyViolation, InvalidOperationError, NotFoundError
from core.transactions import retry_on_conflict
from core.utils import check_period, get_organization
from lessons.models import Lesson
from payments.models import Payment
from students.utils import get_student_profile
from .models import BalanceTransaction, StudentBudget

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
RECENT_TRANSACTIONS = 10
MAX_PAGE_SIZE = 100


def to_money(value) -> Decimal:
    """Decimal rounded half-up to cents; InvalidOperationError for junk."""
    if value is None or value == '':
        raise InvalidOperationError("Amount is required")
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (ArithmeticError, ValueError):
        raise InvalidOperationError(f"Invalid amount: {value}")


def signed_amount(tx_type, amount) -> Decimal:
    """
    DEPOSIT / LESSON_REFUND always raise the balance, LESSON_CHARGE /
    CANCELLATION_FEE always lower it, ADJUSTMENT / REFUND keep the caller's sign.
    """
    amount = to_money(amount)
    if tx_type in BalanceTransaction.CREDIT_TYPES:
        return abs(amount)
    if tx_type in BalanceTransaction.DEBIT_TYPES:
        return -abs(amount)
    if tx_type in BalanceTransaction.SIGNED_TYPES:
        return amount
    raise InvalidOperationError(f"Unknown transaction type: {tx_type}")


@dataclass
class BalanceSnapshot:
    student_id: int
    current_balance: Decimal
    currency: str
    last_updated_at: Optional[datetime] = None
    last_settlement_date: Optional[date] = None
    recent_transactions: List[BalanceTransaction] = field(default_factory=list)


@dataclass
class TransactionPage:
    items: List[BalanceTransaction]
    page: int
    page_size: int
    total: int

    @property
    def has_next(self):
        return self.page * self.page_size < self.total


def lock_budget(student, organization):
    """
    Budget row locked FOR UPDATE; created on first use. Two requests creating
    the same budget collide on the unique student column: the loser gets
    ConsistencyViolation and its whole transaction is retried.
    """
    budget = StudentBudget.objects.select_for_update().filter(student=student).first()
    if budget is not None:
        return budget
    try:
        with transaction.atomic():
            budget = StudentBudget.objects.create(
                student=student,
                organization=organization,
                current_balance=Decimal('0.00'),
                currency=organization.default_currency,
            )
    except IntegrityError as exc:
        raise ConsistencyViolation(f"Budget for student {student.pk} was created concurrently") from exc
    logger.info(f"[ledger_post] Created budget {budget.id} for student {student.pk} ({budget.currency})")
    return budget


def append_transaction(budget, tx_type, amount, description='', *, lesson_id=None, payment_id=None,
                       created_by=None, metadata=None):
    """
    Append one transaction to a budget the caller has locked and move the
    balance. The update is a compare-and-swap on the balance that was read.
    """
    signed = signed_amount(tx_type, amount)
    before = to_money(budget.current_balance)
    after = before + signed
    now = timezone.now()

    updated = StudentBudget.objects.filter(pk=budget.pk, current_balance=before).update(
        current_balance=after,
        last_updated_at=now,
    )
    if updated != 1:
        raise ConsistencyViolation(f"Balance of budget {budget.pk} moved while posting {tx_type}")

    tx = BalanceTransaction.objects.create(
        budget=budget,
        type=tx_type,
        amount=signed,
        balance_before=before,
        balance_after=after,
        currency=budget.currency,
        description=description or '',
        lesson_id=lesson_id,
        payment_id=payment_id,
        created_by=created_by,
        metadata=metadata or {},
    )
    budget.current_balance = after
    budget.last_updated_at = now
    logger.info(
        f"[ledger_post] student={budget.student_id} type={tx_type} amount={signed} "
        f"balance {before} -> {after} tx={tx.id}"
    )
    return tx


def _get_lesson(lesson_id, organization_id):
    try:
        return Lesson.objects.get(pk=lesson_id, organization_id=organization_id)
    except (Lesson.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Lesson {lesson_id} not found")


def _check_related(organization_id, lesson_id=None, payment_id=None):
    if lesson_id is not None:
        _get_lesson(lesson_id, organization_id)
    if payment_id is not None and not Payment.objects.filter(pk=payment_id, organization_id=organization_id).exists():
        raise NotFoundError(f"Payment {payment_id} not found")


def get_balance(student_id, organization_id) -> BalanceSnapshot:
    """Current balance; 0 in the organization's currency before the first posting."""
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    budget = StudentBudget.objects.filter(student=student).first()
    if budget is None:
        return BalanceSnapshot(student.pk, Decimal('0.00'), organization.default_currency)
    return BalanceSnapshot(
        student_id=student.pk,
        current_balance=budget.current_balance,
        currency=budget.currency,
        last_updated_at=budget.last_updated_at,
        last_settlement_date=budget.last_settlement_date,
    )


@retry_on_conflict('ledger_budget')
def get_student_balance(student_id, organization_id) -> BalanceSnapshot:
    """Balance with the newest transactions. Creates the budget if missing."""
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    budget = lock_budget(student, organization)
    recent = list(
        budget.transactions.select_related('budget').order_by('-created_at', '-id')[:RECENT_TRANSACTIONS]
    )
    return BalanceSnapshot(
        student_id=student.pk,
        current_balance=budget.current_balance,
        currency=budget.currency,
        last_updated_at=budget.last_updated_at,
        last_settlement_date=budget.last_settlement_date,
        recent_transactions=recent,
    )


@retry_on_conflict('ledger_post')
def post_transaction(student_id, organization_id, tx_type, amount, description='',
                     lesson_id=None, payment_id=None, created_by=None, metadata=None):
    """
    Append a transaction and update the budget atomically. No balance floor:
    negative balances are debt.
    """
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    _check_related(organization_id, lesson_id, payment_id)
    budget = lock_budget(student, organization)
    return append_transaction(
        budget, tx_type, amount, description,
        lesson_id=lesson_id,
        payment_id=payment_id,
        created_by=created_by,
        metadata=metadata,
    )


def adjust_balance(student_id, organization_id, amount, description, created_by=None):
    """Manual correction by staff: ADJUSTMENT with the given sign."""
    amount = to_money(amount)
    if amount == 0:
        raise InvalidOperationError("Adjustment amount must not be zero")
    metadata = {'adjustmentType': 'CREDIT' if amount > 0 else 'DEBIT'}
    return post_transaction(
        student_id, organization_id, BalanceTransaction.TYPE_ADJUSTMENT, amount,
        description or 'Manual adjustment',
        created_by=created_by,
        metadata=metadata,
    )


def list_transactions(student_id, organization_id, tx_type=None, date_from=None, date_to=None,
                      page=1, page_size=20) -> TransactionPage:
    """Student's transactions newest first, filtered by type and creation date."""
    student = get_student_profile(student_id, organization_id)
    qs = BalanceTransaction.objects.filter(budget__student=student).select_related('budget')
    if tx_type:
        if tx_type not in dict(BalanceTransaction.TYPE_CHOICES):
            raise InvalidOperationError(f"Unknown transaction type: {tx_type}")
        qs = qs.filter(type=tx_type)
    if date_from and date_to:
        check_period(date_from, date_to)
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)

    page = max(1, int(page or 1))
    page_size = min(max(1, int(page_size or 20)), MAX_PAGE_SIZE)
    offset = (page - 1) * page_size
    total = qs.count()
    items = list(qs.order_by('-created_at', '-id')[offset:offset + page_size])
    return TransactionPage(items=items, page=page, page_size=page_size, total=total)


# ---------- Lesson / payment workflow entry points ----------

@retry_on_conflict('lesson_charge')
def charge_for_lesson(student_id, organization_id, lesson_id, amount, title=None, created_by=None):
    """
    LESSON_CHARGE for a lesson. Idempotent: returns None when the lesson is
    already charged, checked under the budget lock.
    """
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    lesson = _get_lesson(lesson_id, organization_id)
    budget = lock_budget(student, organization)
    already = BalanceTransaction.objects.filter(
        budget=budget, lesson=lesson, type=BalanceTransaction.TYPE_LESSON_CHARGE,
    ).exists()
    if already:
        logger.info(f"[lesson_charge] Lesson {lesson.id} already charged for student {student.pk}, skipping")
        return None
    return append_transaction(
        budget, BalanceTransaction.TYPE_LESSON_CHARGE, amount,
        f"Lesson: {title or lesson.title}",
        lesson_id=lesson.id,
        created_by=created_by,
        metadata={'lessonId': lesson.id},
    )


@retry_on_conflict('lesson_refund')
def refund_lesson(student_id, organization_id, lesson_id, title=None, created_by=None):
    """
    LESSON_REFUND of the lesson's charge. None when the lesson was never
    charged or is already refunded.
    """
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    lesson = _get_lesson(lesson_id, organization_id)
    budget = lock_budget(student, organization)
    lesson_txs = BalanceTransaction.objects.filter(budget=budget, lesson=lesson)
    charge = lesson_txs.filter(type=BalanceTransaction.TYPE_LESSON_CHARGE).order_by('-created_at', '-id').first()
    if charge is None:
        logger.info(f"[lesson_refund] No charge for lesson {lesson.id}, nothing to refund")
        return None
    if lesson_txs.filter(type=BalanceTransaction.TYPE_LESSON_REFUND).exists():
        logger.info(f"[lesson_refund] Lesson {lesson.id} already refunded, skipping")
        return None
    return append_transaction(
        budget, BalanceTransaction.TYPE_LESSON_REFUND, abs(charge.amount),
        f"Refund: {title or lesson.title}",
        lesson_id=lesson.id,
        created_by=created_by,
        metadata={'lessonId': lesson.id, 'chargeTransactionId': charge.id},
    )


@retry_on_conflict('cancellation_fee')
def charge_cancellation_fee(student_id, organization_id, lesson_id, amount, title=None, created_by=None):
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    lesson = _get_lesson(lesson_id, organization_id)
    budget = lock_budget(student, organization)
    return append_transaction(
        budget, BalanceTransaction.TYPE_CANCELLATION_FEE, amount,
        f"Cancellation fee: {title or lesson.title}",
        lesson_id=lesson.id,
        created_by=created_by,
        metadata={'lessonId': lesson.id},
    )


@retry_on_conflict('deposit')
def add_deposit(student_id, organization_id, amount, payment_id, description=None, created_by=None):
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    _check_related(organization_id, payment_id=payment_id)
    budget = lock_budget(student, organization)
    return append_transaction(
        budget, BalanceTransaction.TYPE_DEPOSIT, amount,
        description or f"Deposit (payment #{payment_id})",
        payment_id=payment_id,
        created_by=created_by,
        metadata={'paymentId': payment_id},
    )


@retry_on_conflict('deposit_revert')
def revert_deposit(student_id, organization_id, payment_id, description=None, created_by=None):
    """
    REFUND taking back what is still deposited for the payment. None when
    nothing is left on deposit (never deposited or already reverted).
    """
    organization = get_organization(organization_id)
    student = get_student_profile(student_id, organization_id)
    budget = lock_budget(student, organization)
    deposited = BalanceTransaction.objects.filter(
        budget=budget,
        payment_id=payment_id,
        type__in=[BalanceTransaction.TYPE_DEPOSIT, BalanceTransaction.TYPE_REFUND],
    ).aggregate(total=Sum('amount'))['total'] or Decimal('0')
    if deposited <= 0:
        logger.info(f"[deposit_revert] Nothing deposited for payment {payment_id}, skipping")
        return None
    return append_transaction(
        budget, BalanceTransaction.TYPE_REFUND, -deposited,
        description or f"Deposit reverted (payment #{payment_id})",
        payment_id=payment_id,
        created_by=created_by,
        metadata={'paymentId': payment_id},
    )
