"""
Tests for the payout qualification rule and payout amounts.
"""
from datetime import timedelta
from decimal import Decimal

from django.test import SimpleTestCase

from lessons.models import LessonStatus
from payouts.models import QualificationReason
from payouts.services.qualification import CancellationPolicy, payout_amount, qualify_lesson
from tests.helpers import aware

START = aware(2024, 3, 10, 12)
LEGACY = CancellationPolicy()


def cancelled(hours_before):
    return START - timedelta(hours=hours_before)


class QualifyLessonTest(SimpleTestCase):
    def test_completed_and_confirmed_pay_full(self):
        for status, reason in (
            (LessonStatus.COMPLETED, QualificationReason.COMPLETED),
            (LessonStatus.CONFIRMED, QualificationReason.CONFIRMED),
        ):
            qualification = qualify_lesson(status, START, None, LEGACY)
            self.assertEqual(qualification.reason, reason)
            self.assertEqual(qualification.percent, 100)

    def test_unpaid_statuses(self):
        self.assertIsNone(qualify_lesson(LessonStatus.SCHEDULED, START, None, LEGACY))
        self.assertIsNone(qualify_lesson(LessonStatus.NO_SHOW, START, None, LEGACY))

    def test_cancelled_without_timestamp_does_not_pay(self):
        self.assertIsNone(qualify_lesson(LessonStatus.CANCELLED, START, None, LEGACY))

    def test_legacy_rule(self):
        self.assertIsNone(qualify_lesson(LessonStatus.CANCELLED, START, cancelled(25), LEGACY))
        late = qualify_lesson(LessonStatus.CANCELLED, START, cancelled(2), LEGACY)
        self.assertEqual(late.reason, QualificationReason.LATE_CANCELLATION)
        self.assertEqual(late.percent, 100)

    def test_exactly_at_threshold_does_not_pay(self):
        self.assertIsNone(qualify_lesson(LessonStatus.CANCELLED, START, cancelled(24), LEGACY))

    def test_teacher_policy(self):
        policy = CancellationPolicy(enabled=True, hours_threshold=48, percent=50)
        late = qualify_lesson(LessonStatus.CANCELLED, START, cancelled(25), policy)
        self.assertEqual(late.percent, 50)
        self.assertIsNone(qualify_lesson(LessonStatus.CANCELLED, START, cancelled(49), policy))

    def test_enabled_policy_without_values_uses_defaults(self):
        policy = CancellationPolicy(enabled=True)
        self.assertEqual(policy.limits(), (24, 100))
        self.assertIsNone(qualify_lesson(LessonStatus.CANCELLED, START, cancelled(30), policy))
        self.assertEqual(qualify_lesson(LessonStatus.CANCELLED, START, cancelled(3), policy).percent, 100)

    def test_disabled_policy_ignores_teacher_values(self):
        policy = CancellationPolicy(enabled=False, hours_threshold=72, percent=30)
        self.assertEqual(policy.limits(), (24, 100))


class PayoutAmountTest(SimpleTestCase):
    def test_amount(self):
        self.assertEqual(payout_amount(60, Decimal("100.00"), 100), Decimal("100.00"))
        self.assertEqual(payout_amount(90, Decimal("100.00"), 50), Decimal("75.00"))

    def test_rounds_half_up_to_cents(self):
        # 45 / 60 * 33.33 = 24.9975
        self.assertEqual(payout_amount(45, Decimal("33.33"), 100), Decimal("25.00"))
        # 30 / 60 * 0.01 = 0.005
        self.assertEqual(payout_amount(30, Decimal("0.01"), 100), Decimal("0.01"))
