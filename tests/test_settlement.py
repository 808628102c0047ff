"""
Tests for the settlement engine: period math, commit, LIFO deletion and
the helpers that suggest the next period.
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from balance.models import BalanceTransaction, StudentBudget
from balance.management.commands.verify_ledger_chain import chain_problems
from balance.services import adjust_balance, get_balance
from core.errors import InvalidOperationError, NotFoundError
from payments.models import Payment
from settlements.models import Settlement
from settlements.services import (
    commit_settlement,
    delete_most_recent,
    forecast_first_settlement_start,
    get_settlement,
    get_settlement_info,
    list_student_settlements,
    list_students_with_balance,
    preview_settlement,
)
from tests.helpers import aware, make_org, make_payment, make_student

MARCH_START = date(2024, 3, 1)
MARCH_END = date(2024, 3, 31)


class SettlementTestCase(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org, full_name="Anna Nowak")

    def add_march_payments(self):
        make_payment(self.org, self.student, "200", created_at=aware(2024, 3, 5, 9), title="March package")
        make_payment(
            self.org, self.student, "120", status=Payment.STATUS_COMPLETED,
            created_at=aware(2024, 2, 1, 9), paid_at=aware(2024, 3, 10, 12), payment_method="card",
        )
        make_payment(
            self.org, self.student, "50", status=Payment.STATUS_COMPLETED,
            created_at=aware(2024, 2, 1, 9), paid_at=aware(2024, 3, 20, 12),
        )
        # Outside the period
        make_payment(self.org, self.student, "80", created_at=aware(2024, 4, 2, 9))
        make_payment(
            self.org, self.student, "60", status=Payment.STATUS_COMPLETED,
            created_at=aware(2024, 2, 1, 9), paid_at=aware(2024, 2, 28, 12),
        )


class SettlementPreviewTest(SettlementTestCase):
    def test_period_math(self):
        adjust_balance(self.student.pk, self.org.pk, "-40", "Opening debt")
        self.add_march_payments()

        preview = preview_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)

        self.assertEqual(preview.total_payments_due, Decimal("200.00"))
        self.assertEqual(preview.total_payments_received, Decimal("170.00"))
        self.assertEqual(preview.period_balance, Decimal("-30.00"))
        self.assertEqual(preview.balance_before, Decimal("-40.00"))
        self.assertEqual(preview.balance_after, Decimal("-70.00"))
        self.assertEqual(preview.student_name, "Anna Nowak")

    def test_itemization(self):
        self.add_march_payments()
        preview = preview_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)

        self.assertEqual([item.description for item in preview.payments_due], ["March package"])
        self.assertEqual([item.amount for item in preview.payments_received], [Decimal("120.00"), Decimal("50.00")])
        self.assertEqual(preview.payments_received[0].method, "card")

    def test_preview_has_no_side_effects(self):
        self.add_march_payments()
        preview_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        self.assertFalse(StudentBudget.objects.filter(student=self.student).exists())
        self.assertFalse(Settlement.objects.exists())

    def test_inverted_period_rejected(self):
        with self.assertRaises(InvalidOperationError):
            preview_settlement(self.student.pk, self.org.pk, MARCH_END, MARCH_START)

    def test_single_day_period(self):
        self.add_march_payments()
        preview = preview_settlement(self.student.pk, self.org.pk, date(2024, 3, 10), date(2024, 3, 10))
        self.assertEqual(preview.total_payments_received, Decimal("120.00"))
        self.assertEqual(preview.total_payments_due, Decimal("0.00"))

    def test_student_of_other_organization_not_found(self):
        other_org = make_org(slug="other-org", name="Other Org")
        with self.assertRaises(NotFoundError):
            preview_settlement(self.student.pk, other_org.pk, MARCH_START, MARCH_END)


class SettlementCommitTest(SettlementTestCase):
    def test_commit_moves_balance(self):
        adjust_balance(self.student.pk, self.org.pk, "-40", "Opening debt")
        self.add_march_payments()

        result = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END, notes="March")

        settlement = result.settlement
        self.assertEqual(settlement.balance_before, Decimal("-40.00"))
        self.assertEqual(settlement.balance_after, Decimal("-70.00"))
        self.assertEqual(settlement.notes, "March")

        budget = StudentBudget.objects.get(student=self.student)
        self.assertEqual(budget.current_balance, Decimal("-70.00"))
        self.assertEqual(budget.last_settlement_date, MARCH_END)

        adjustment = budget.transactions.order_by("-created_at", "-id").first()
        self.assertEqual(adjustment.type, BalanceTransaction.TYPE_ADJUSTMENT)
        self.assertEqual(adjustment.amount, Decimal("-30.00"))
        self.assertEqual(adjustment.metadata["settlementId"], settlement.id)
        self.assertEqual(chain_problems(budget), [])

    def test_zero_period_balance_posts_nothing(self):
        result = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        self.assertEqual(result.preview.period_balance, Decimal("0.00"))
        self.assertFalse(BalanceTransaction.objects.exists())
        self.assertEqual(StudentBudget.objects.get(student=self.student).last_settlement_date, MARCH_END)

    def test_period_end_before_latest_rejected(self):
        commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        with self.assertRaises(InvalidOperationError):
            commit_settlement(self.student.pk, self.org.pk, date(2024, 2, 1), date(2024, 2, 29))
        self.assertEqual(Settlement.objects.count(), 1)

    def test_failed_commit_leaves_nothing_behind(self):
        self.add_march_payments()
        with patch("settlements.services.append_transaction", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        self.assertFalse(Settlement.objects.exists())
        self.assertFalse(StudentBudget.objects.filter(student=self.student).exists())

    def test_get_settlement_scoped_to_organization(self):
        settlement = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END).settlement
        other_org = make_org(slug="other-org", name="Other Org")
        self.assertEqual(get_settlement(settlement.pk, self.org.pk).pk, settlement.pk)
        with self.assertRaises(NotFoundError):
            get_settlement(settlement.pk, other_org.pk)


class SettlementDeleteTest(SettlementTestCase):
    def test_delete_restores_previous_state(self):
        adjust_balance(self.student.pk, self.org.pk, "-40", "Opening debt")
        self.add_march_payments()
        settlement = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END).settlement

        delete_most_recent(settlement.pk, self.org.pk)

        budget = StudentBudget.objects.get(student=self.student)
        self.assertEqual(budget.current_balance, Decimal("-40.00"))
        self.assertIsNone(budget.last_settlement_date)
        self.assertFalse(Settlement.objects.exists())
        self.assertEqual(chain_problems(budget), [])

    def test_delete_restores_previous_period_end(self):
        commit_settlement(self.student.pk, self.org.pk, date(2024, 2, 1), date(2024, 2, 29))
        march = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END).settlement

        delete_most_recent(march.pk, self.org.pk)

        self.assertEqual(StudentBudget.objects.get(student=self.student).last_settlement_date, date(2024, 2, 29))

    def test_only_most_recent_can_be_deleted(self):
        self.add_march_payments()
        february = commit_settlement(self.student.pk, self.org.pk, date(2024, 2, 1), date(2024, 2, 29)).settlement
        march = commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END).settlement

        with self.assertRaises(InvalidOperationError):
            delete_most_recent(february.pk, self.org.pk)

        delete_most_recent(march.pk, self.org.pk)
        delete_most_recent(february.pk, self.org.pk)
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("0.00"))
        self.assertFalse(Settlement.objects.exists())

    def test_delete_unknown_settlement_not_found(self):
        with self.assertRaises(NotFoundError):
            delete_most_recent(999999, self.org.pk)


class SettlementHelpersTest(SettlementTestCase):
    def test_first_start_without_history(self):
        self.assertIsNone(forecast_first_settlement_start(self.student.pk, self.org.pk))

    def test_first_start_is_first_payment_date(self):
        make_payment(self.org, self.student, "100", created_at=aware(2024, 2, 10, 12))
        make_payment(self.org, self.student, "100", created_at=aware(2024, 3, 10, 12))
        self.assertEqual(forecast_first_settlement_start(self.student.pk, self.org.pk), date(2024, 2, 10))

    def test_next_start_is_day_after_last_period(self):
        commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        self.assertEqual(forecast_first_settlement_start(self.student.pk, self.org.pk), date(2024, 4, 1))

        info = get_settlement_info(self.student.pk, self.org.pk)
        self.assertEqual(info.last_settlement_date, MARCH_END)
        self.assertEqual(info.suggested_period_start, date(2024, 4, 1))

    def test_student_settlements_newest_first(self):
        commit_settlement(self.student.pk, self.org.pk, date(2024, 2, 1), date(2024, 2, 29))
        commit_settlement(self.student.pk, self.org.pk, MARCH_START, MARCH_END)
        settlements = list_student_settlements(self.student.pk, self.org.pk)
        self.assertEqual([s.period_end for s in settlements], [MARCH_END, date(2024, 2, 29)])

    def test_students_with_balance(self):
        other = make_student(self.org, email="bob@test.com", full_name="Bob Kowalski")
        adjust_balance(other.pk, self.org.pk, "25", "Credit")
        make_payment(self.org, self.student, "200", created_at=aware(2024, 3, 5, 9))
        make_payment(self.org, self.student, "50", created_at=aware(2024, 3, 6, 9))

        rows = {row.student_id: row for row in list_students_with_balance(self.org.pk)}

        self.assertEqual(rows[self.student.pk].pending_payments_count, 2)
        self.assertEqual(rows[self.student.pk].pending_payments_sum, Decimal("250.00"))
        self.assertEqual(rows[self.student.pk].current_balance, Decimal("0.00"))
        self.assertEqual(rows[other.pk].current_balance, Decimal("25.00"))
        self.assertEqual(rows[other.pk].pending_payments_count, 0)
