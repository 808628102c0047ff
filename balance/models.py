"""
Ledger Store: one StudentBudget (running balance) per student and the
append-only BalanceTransaction log behind it.
"""
from django.db import models

from core.errors import InvalidOperationError
from students.models import StudentProfile


class StudentBudget(models.Model):
    """
    Running balance per student. current_balance always equals balance_after
    of the student's newest BalanceTransaction (0 when there are none).
    Created on first balance-affecting operation, never deleted.
    """
    student = models.OneToOneField(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='budget',
    )
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='student_budgets',
        db_column='organization_id',
    )
    current_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=0,
        # No floor: a negative balance is debt
    )
    currency = models.CharField(max_length=3)
    last_settlement_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_budgets'
        verbose_name = 'Student Budget'
        verbose_name_plural = 'Student Budgets'
        indexes = [
            models.Index(fields=['organization', 'current_balance'], name='budget_org_balance_idx'),
        ]

    def __str__(self):
        return f"{self.student.full_name}: {self.current_balance} {self.currency}"


class BalanceTransaction(models.Model):
    """
    Immutable ledger entry. balance_after = balance_before + amount, and per
    budget the rows ordered by (created_at, id) form an unbroken chain.
    amount is signed: positive raises the balance, negative lowers it.
    """
    TYPE_DEPOSIT = 'DEPOSIT'
    TYPE_LESSON_CHARGE = 'LESSON_CHARGE'
    TYPE_LESSON_REFUND = 'LESSON_REFUND'
    TYPE_CANCELLATION_FEE = 'CANCELLATION_FEE'
    TYPE_ADJUSTMENT = 'ADJUSTMENT'
    TYPE_REFUND = 'REFUND'

    TYPE_CHOICES = [
        (TYPE_DEPOSIT, 'Deposit'),
        (TYPE_LESSON_CHARGE, 'Lesson charge'),
        (TYPE_LESSON_REFUND, 'Lesson refund'),
        (TYPE_CANCELLATION_FEE, 'Cancellation fee'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
        (TYPE_REFUND, 'Refund'),
    ]
    CREDIT_TYPES = (TYPE_DEPOSIT, TYPE_LESSON_REFUND)
    DEBIT_TYPES = (TYPE_LESSON_CHARGE, TYPE_CANCELLATION_FEE)
    SIGNED_TYPES = (TYPE_ADJUSTMENT, TYPE_REFUND)

    budget = models.ForeignKey(
        StudentBudget,
        on_delete=models.PROTECT,
        related_name='transactions',
    )
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    description = models.CharField(max_length=500, blank=True, default='')
    lesson = models.ForeignKey(
        'lessons.Lesson',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='balance_transactions',
    )
    payment = models.ForeignKey(
        'payments.Payment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='balance_transactions',
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='posted_balance_transactions',
        db_column='created_by_id',
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'balance_transactions'
        verbose_name = 'Balance Transaction'
        verbose_name_plural = 'Balance Transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['budget', 'created_at'], name='baltx_budget_created_idx'),
            models.Index(fields=['lesson', 'type'], name='baltx_lesson_type_idx'),
            models.Index(fields=['payment', 'type'], name='baltx_payment_type_idx'),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} ({self.balance_before} -> {self.balance_after})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvalidOperationError("Balance transactions are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidOperationError("Balance transactions cannot be deleted")

    @property
    def student_id(self):
        return self.budget.student_id
