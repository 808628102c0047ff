"""
Tests for the balance forecast and the lesson price fallback chain.
"""
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from balance.forecast import UpcomingLesson, forecast_balance, project_balance, resolve_lesson_price
from balance.services import adjust_balance
from lessons.models import LessonStatus
from tests.helpers import aware, make_course, make_enrollment, make_lesson, make_org, make_student, make_teacher


def upcoming(lesson_id, price, day):
    return UpcomingLesson(
        lesson_id=lesson_id,
        title=f"Lesson {lesson_id}",
        scheduled_at=aware(2024, 5, day, 10),
        price=Decimal(price),
    )


class ProjectBalanceTest(SimpleTestCase):
    def test_depletion_at_second_lesson(self):
        lessons = [upcoming(1, "100", 1), upcoming(2, "80", 2), upcoming(3, "50", 3)]

        forecast = project_balance(Decimal("150"), lessons)

        self.assertEqual(forecast.running_balances, [Decimal("50"), Decimal("-30"), Decimal("-80")])
        self.assertEqual(forecast.lessons_until_depletion, 1)
        self.assertEqual(forecast.depletion_date, lessons[1].scheduled_at)
        self.assertEqual(forecast.forecasted_balance_after_all_lessons, Decimal("-80"))
        self.assertEqual(forecast.upcoming_lessons_count, 3)

    def test_no_depletion(self):
        forecast = project_balance(Decimal("100"), [upcoming(1, "60", 1), upcoming(2, "40", 2)])
        self.assertIsNone(forecast.lessons_until_depletion)
        self.assertIsNone(forecast.depletion_date)
        self.assertEqual(forecast.forecasted_balance_after_all_lessons, Decimal("0"))

    def test_already_negative_balance_depletes_at_first_lesson(self):
        forecast = project_balance(Decimal("-10"), [upcoming(1, "20", 1)])
        self.assertEqual(forecast.lessons_until_depletion, 0)

    def test_no_lessons(self):
        forecast = project_balance(Decimal("30"), [])
        self.assertEqual(forecast.lessons, [])
        self.assertEqual(forecast.forecasted_balance_after_all_lessons, Decimal("30"))


class ResolveLessonPriceTest(SimpleTestCase):
    def lesson(self, price=None, teacher_rate=None, course_price=None, enrolled=True):
        enrollment = None
        if enrolled:
            enrollment = SimpleNamespace(course=SimpleNamespace(price_per_lesson=course_price))
        return SimpleNamespace(price_per_lesson=price, teacher_rate=teacher_rate, enrollment=enrollment)

    def test_own_price_wins(self):
        self.assertEqual(resolve_lesson_price(self.lesson("120", "100", "90")), Decimal("120"))

    def test_own_zero_price_counts(self):
        self.assertEqual(resolve_lesson_price(self.lesson(Decimal("0"), "100", "90")), Decimal("0"))

    def test_teacher_rate_then_course_price(self):
        self.assertEqual(resolve_lesson_price(self.lesson(None, "100", "90")), Decimal("100"))
        self.assertEqual(resolve_lesson_price(self.lesson(None, None, "90")), Decimal("90"))

    def test_zero_when_nothing_set(self):
        self.assertEqual(resolve_lesson_price(self.lesson(enrolled=False)), Decimal("0.00"))


class ForecastBalanceTest(TestCase):
    def setUp(self):
        self.org = make_org()
        self.student = make_student(self.org)
        self.teacher = make_teacher(self.org)
        course = make_course(self.org, price_per_lesson=Decimal("90.00"))
        self.enrollment = make_enrollment(self.org, self.student, course)
        self.now = aware(2024, 5, 1, 8)

    def test_forecast_uses_upcoming_lessons_only(self):
        adjust_balance(self.student.pk, self.org.pk, "150", "Prepaid")
        make_lesson(self.org, self.teacher, self.student, aware(2024, 5, 2, 10), enrollment=self.enrollment)
        make_lesson(
            self.org, self.teacher, self.student, aware(2024, 5, 3, 10),
            status=LessonStatus.CONFIRMED, price_per_lesson=Decimal("100.00"),
        )
        # Not upcoming
        make_lesson(self.org, self.teacher, self.student, aware(2024, 4, 30, 10), enrollment=self.enrollment)
        make_lesson(
            self.org, self.teacher, self.student, aware(2024, 5, 4, 10),
            status=LessonStatus.CANCELLED, enrollment=self.enrollment,
        )

        forecast = forecast_balance(self.student.pk, self.org.pk, now=self.now)

        self.assertEqual(forecast.upcoming_lessons_count, 2)
        self.assertEqual([item.price for item in forecast.lessons], [Decimal("90.00"), Decimal("100.00")])
        self.assertEqual(forecast.running_balances, [Decimal("60.00"), Decimal("-40.00")])
        self.assertEqual(forecast.lessons_until_depletion, 1)
        self.assertEqual(forecast.currency, "PLN")
        self.assertEqual(forecast.student_id, self.student.pk)

    def test_forecast_without_budget(self):
        forecast = forecast_balance(self.student.pk, self.org.pk, now=self.now)
        self.assertEqual(forecast.current_balance, Decimal("0.00"))
        self.assertEqual(forecast.lessons, [])
