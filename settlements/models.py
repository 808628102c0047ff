"""
Settlement: committed reconciliation of one student's pending charges
against completed payments over [period_start, period_end].
"""
from django.db import models

from balance.models import StudentBudget
from students.models import StudentProfile


class Settlement(models.Model):
    """
    Snapshot, never edited. balance_after = balance_before + received - due.
    Per student only the one with the latest period_end may be deleted.
    """
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.CASCADE,
        related_name='settlements',
        db_column='organization_id',
    )
    student = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='settlements',
    )
    budget = models.ForeignKey(
        StudentBudget,
        on_delete=models.CASCADE,
        related_name='settlements',
    )
    period_start = models.DateField()
    period_end = models.DateField(db_index=True)
    total_payments_due = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_payments_received = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    balance_before = models.DecimalField(max_digits=12, decimal_places=2)
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_settlements',
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'settlements'
        verbose_name = 'Settlement'
        verbose_name_plural = 'Settlements'
        ordering = ['-period_end', '-created_at', '-id']
        indexes = [
            models.Index(fields=['student', 'period_end'], name='settlement_student_end_idx'),
            models.Index(fields=['organization', 'period_end'], name='settlement_org_end_idx'),
        ]

    def __str__(self):
        return f"{self.student.full_name} {self.period_start}..{self.period_end}: {self.balance_after} {self.currency}"

    @property
    def period_balance(self):
        return self.total_payments_received - self.total_payments_due
