"""
Tests for the student ledger: sign convention, balance chain, idempotent
lesson charges, deposit reversal and transaction immutability.
"""
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from balance import services as ledger
from balance.management.commands.verify_ledger_chain import chain_problems
from balance.models import BalanceTransaction, StudentBudget
from balance.services import (
    add_deposit,
    adjust_balance,
    charge_for_lesson,
    get_balance,
    get_student_balance,
    list_transactions,
    post_transaction,
    refund_lesson,
    revert_deposit,
    signed_amount,
)
from core.errors import InvalidOperationError, NotFoundError
from tests.helpers import aware, make_lesson, make_org, make_payment, make_student, make_teacher


class SignConventionTest(TestCase):
    def test_credit_types_always_positive(self):
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_DEPOSIT, "-50"), Decimal("50.00"))
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_LESSON_REFUND, "20"), Decimal("20.00"))

    def test_debit_types_always_negative(self):
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_LESSON_CHARGE, "20"), Decimal("-20.00"))
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_CANCELLATION_FEE, "-15"), Decimal("-15.00"))

    def test_signed_types_keep_caller_sign(self):
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_ADJUSTMENT, "-5"), Decimal("-5.00"))
        self.assertEqual(signed_amount(BalanceTransaction.TYPE_REFUND, "7.5"), Decimal("7.50"))

    def test_unknown_type_rejected(self):
        with self.assertRaises(InvalidOperationError):
            signed_amount("BONUS", "5")

    def test_invalid_amount_rejected(self):
        with self.assertRaises(InvalidOperationError):
            signed_amount(BalanceTransaction.TYPE_DEPOSIT, "abc")


class LedgerPostingTest(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org)
        self.teacher = make_teacher(self.org)

    def test_balance_is_zero_before_first_posting(self):
        snapshot = get_balance(self.student.pk, self.org.pk)
        self.assertEqual(snapshot.current_balance, Decimal("0.00"))
        self.assertEqual(snapshot.currency, "PLN")
        self.assertFalse(StudentBudget.objects.filter(student=self.student).exists())

    def test_get_student_balance_creates_budget(self):
        snapshot = get_student_balance(self.student.pk, self.org.pk)
        self.assertEqual(snapshot.current_balance, Decimal("0.00"))
        self.assertEqual(snapshot.recent_transactions, [])
        self.assertTrue(StudentBudget.objects.filter(student=self.student).exists())

    def test_postings_form_a_chain(self):
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, "100")
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_CHARGE, "30")
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_ADJUSTMENT, "-10")
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_REFUND, "5")

        budget = StudentBudget.objects.get(student=self.student)
        self.assertEqual(budget.current_balance, Decimal("65.00"))

        txs = list(budget.transactions.order_by("created_at", "id"))
        self.assertEqual([tx.amount for tx in txs], [Decimal("100.00"), Decimal("-30.00"), Decimal("-10.00"), Decimal("5.00")])
        self.assertEqual(txs[0].balance_before, Decimal("0.00"))
        for previous, current in zip(txs, txs[1:]):
            self.assertEqual(current.balance_before, previous.balance_after)
        for tx in txs:
            self.assertEqual(tx.balance_after, tx.balance_before + tx.amount)
        self.assertEqual(txs[-1].balance_after, budget.current_balance)

    def test_stale_read_is_retried_with_fresh_balance(self):
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, "100")
        real_lock_budget = ledger.lock_budget
        calls = []

        def stale_then_fresh(student, organization):
            budget = real_lock_budget(student, organization)
            calls.append(budget.current_balance)
            if len(calls) == 1:
                budget.current_balance = Decimal("40.00")
            return budget

        with patch("balance.services.lock_budget", side_effect=stale_then_fresh):
            tx = post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_CHARGE, "30")

        self.assertEqual(len(calls), 2)
        self.assertEqual(tx.balance_before, Decimal("100.00"))
        self.assertEqual(tx.balance_after, Decimal("70.00"))
        budget = StudentBudget.objects.get(student=self.student)
        self.assertEqual(budget.current_balance, Decimal("70.00"))
        self.assertEqual(budget.transactions.count(), 2)
        self.assertEqual(chain_problems(budget), [])

    def test_negative_balance_allowed(self):
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_CHARGE, "80")
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("-80.00"))

    def test_unknown_student_not_found(self):
        with self.assertRaises(NotFoundError):
            post_transaction(999999, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, "10")

    def test_student_of_other_organization_not_found(self):
        other_org = make_org(slug="other-org", name="Other Org")
        with self.assertRaises(NotFoundError):
            get_balance(self.student.pk, other_org.pk)
        with self.assertRaises(NotFoundError):
            post_transaction(self.student.pk, other_org.pk, BalanceTransaction.TYPE_DEPOSIT, "10")

    def test_adjust_balance_records_direction(self):
        tx = adjust_balance(self.student.pk, self.org.pk, "-25.50", "Correction")
        self.assertEqual(tx.type, BalanceTransaction.TYPE_ADJUSTMENT)
        self.assertEqual(tx.amount, Decimal("-25.50"))
        self.assertEqual(tx.metadata, {"adjustmentType": "DEBIT"})

    def test_adjust_balance_rejects_zero(self):
        with self.assertRaises(InvalidOperationError):
            adjust_balance(self.student.pk, self.org.pk, "0", "Nothing")
        self.assertFalse(BalanceTransaction.objects.exists())

    def test_charge_for_lesson_is_idempotent(self):
        lesson = make_lesson(self.org, self.teacher, self.student, aware(2024, 3, 4, 10), title="Grammar")
        first = charge_for_lesson(self.student.pk, self.org.pk, lesson.pk, "90")
        second = charge_for_lesson(self.student.pk, self.org.pk, lesson.pk, "90")

        self.assertIsNotNone(first)
        self.assertIsNone(second)
        self.assertEqual(first.description, "Lesson: Grammar")
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("-90.00"))

    def test_refund_lesson_reverses_charge_once(self):
        lesson = make_lesson(self.org, self.teacher, self.student, aware(2024, 3, 4, 10))
        self.assertIsNone(refund_lesson(self.student.pk, self.org.pk, lesson.pk))

        charge_for_lesson(self.student.pk, self.org.pk, lesson.pk, "90")
        refund = refund_lesson(self.student.pk, self.org.pk, lesson.pk)
        self.assertEqual(refund.amount, Decimal("90.00"))
        self.assertIsNone(refund_lesson(self.student.pk, self.org.pk, lesson.pk))
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("0.00"))

    def test_revert_deposit_takes_back_what_is_left(self):
        payment = make_payment(self.org, self.student, "100")
        add_deposit(self.student.pk, self.org.pk, "100", payment.pk)

        refund = revert_deposit(self.student.pk, self.org.pk, payment.pk)
        self.assertEqual(refund.type, BalanceTransaction.TYPE_REFUND)
        self.assertEqual(refund.amount, Decimal("-100.00"))
        self.assertIsNone(revert_deposit(self.student.pk, self.org.pk, payment.pk))
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("0.00"))

    def test_deposit_for_payment_of_other_organization_rejected(self):
        other_org = make_org(slug="other-org", name="Other Org")
        other_student = make_student(other_org, email="other@test.com")
        payment = make_payment(other_org, other_student, "100")
        with self.assertRaises(NotFoundError):
            add_deposit(self.student.pk, self.org.pk, "100", payment.pk)

    def test_transactions_are_immutable(self):
        tx = post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, "10")
        tx.description = "changed"
        with self.assertRaises(InvalidOperationError):
            tx.save()
        with self.assertRaises(InvalidOperationError):
            tx.delete()
        self.assertEqual(BalanceTransaction.objects.get(pk=tx.pk).description, "")


class TransactionListTest(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org)
        for amount in ("10", "20", "30"):
            post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, amount)
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_CHARGE, "5")

    def test_newest_first(self):
        page = list_transactions(self.student.pk, self.org.pk)
        self.assertEqual(page.total, 4)
        self.assertEqual(page.items[0].type, BalanceTransaction.TYPE_LESSON_CHARGE)
        self.assertEqual(page.items[-1].amount, Decimal("10.00"))

    def test_filter_by_type(self):
        page = list_transactions(self.student.pk, self.org.pk, tx_type=BalanceTransaction.TYPE_DEPOSIT)
        self.assertEqual(page.total, 3)
        self.assertTrue(all(tx.type == BalanceTransaction.TYPE_DEPOSIT for tx in page.items))

    def test_unknown_type_filter_rejected(self):
        with self.assertRaises(InvalidOperationError):
            list_transactions(self.student.pk, self.org.pk, tx_type="BONUS")

    def test_pagination(self):
        page = list_transactions(self.student.pk, self.org.pk, page=2, page_size=3)
        self.assertEqual(len(page.items), 1)
        self.assertFalse(page.has_next)
        self.assertTrue(list_transactions(self.student.pk, self.org.pk, page=1, page_size=3).has_next)


class VerifyLedgerChainCommandTest(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org)
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_DEPOSIT, "50")
        post_transaction(self.student.pk, self.org.pk, BalanceTransaction.TYPE_LESSON_CHARGE, "20")

    def test_consistent_ledger_passes(self):
        out = StringIO()
        call_command("verify_ledger_chain", stdout=out)
        self.assertIn("OK", out.getvalue())

    def test_drifted_budget_fails(self):
        StudentBudget.objects.filter(student=self.student).update(current_balance=Decimal("999.00"))
        with self.assertRaises(CommandError):
            call_command("verify_ledger_chain", stdout=StringIO(), stderr=StringIO())
