"""
Tests for the payment workflow: completing a payment deposits its amount,
reopening it takes the deposit back.
"""
from decimal import Decimal

from django.test import TestCase

from balance.models import BalanceTransaction
from balance.services import get_balance
from core.errors import InvalidOperationError, NotFoundError
from payments.models import Payment
from payments.services import complete_payment, reopen_payment
from tests.helpers import aware, make_org, make_payment, make_student


class PaymentWorkflowTest(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org)
        self.payment = make_payment(self.org, self.student, "150", title="April package")

    def test_complete_posts_deposit(self):
        payment = complete_payment(self.payment.pk, self.org.pk, paid_at=aware(2024, 4, 2, 12), method="cash")

        self.assertEqual(payment.status, Payment.STATUS_COMPLETED)
        self.assertEqual(payment.paid_at, aware(2024, 4, 2, 12))
        self.assertEqual(payment.payment_method, "cash")
        deposit = BalanceTransaction.objects.get(payment=payment)
        self.assertEqual(deposit.type, BalanceTransaction.TYPE_DEPOSIT)
        self.assertEqual(deposit.amount, Decimal("150.00"))
        self.assertEqual(deposit.description, "Payment: April package")
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("150.00"))

    def test_complete_twice_rejected(self):
        complete_payment(self.payment.pk, self.org.pk)
        with self.assertRaises(InvalidOperationError):
            complete_payment(self.payment.pk, self.org.pk)
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("150.00"))

    def test_reopen_reverts_deposit(self):
        complete_payment(self.payment.pk, self.org.pk)
        payment = reopen_payment(self.payment.pk, self.org.pk)

        self.assertEqual(payment.status, Payment.STATUS_PENDING)
        self.assertIsNone(payment.paid_at)
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("0.00"))
        types = list(
            BalanceTransaction.objects.filter(payment=payment).order_by("created_at", "id").values_list("type", flat=True)
        )
        self.assertEqual(types, [BalanceTransaction.TYPE_DEPOSIT, BalanceTransaction.TYPE_REFUND])

    def test_reopen_pending_rejected(self):
        with self.assertRaises(InvalidOperationError):
            reopen_payment(self.payment.pk, self.org.pk)

    def test_complete_reopen_complete(self):
        complete_payment(self.payment.pk, self.org.pk)
        reopen_payment(self.payment.pk, self.org.pk)
        complete_payment(self.payment.pk, self.org.pk)
        self.assertEqual(get_balance(self.student.pk, self.org.pk).current_balance, Decimal("150.00"))

    def test_payment_of_other_organization_not_found(self):
        other_org = make_org(slug="other-org", name="Other Org")
        with self.assertRaises(NotFoundError):
            complete_payment(self.payment.pk, other_org.pk)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PENDING)
