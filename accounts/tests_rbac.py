"""
Minimal RBAC tests: role-based access control.
- Student / teacher tokens hitting finance staff endpoints return 403
- Staff token hitting the student-only "my balance" endpoint returns 403
- Requests without a token return 401
"""
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.models import Organization


class RBACTests(TestCase):
    def setUp(self):
        self.org = Organization.objects.create(name="Test Org", slug="test-org")
        self.client = APIClient()

        self.manager = User.objects.create_user(
            email="manager@test.pl",
            password="pass123",
            full_name="Manager",
            role="manager",
            organization=self.org,
        )
        self.admin = User.objects.create_user(
            email="admin@test.pl",
            password="pass123",
            full_name="Admin",
            role="admin",
            organization=self.org,
        )
        self.teacher = User.objects.create_user(
            email="teacher@test.pl",
            password="pass123",
            full_name="Teacher",
            role="teacher",
            organization=self.org,
        )
        self.student = User.objects.create_user(
            email="student@test.pl",
            password="pass123",
            full_name="Student",
            role="student",
            organization=self.org,
        )
        self.student_profile = self.student.student_profile

    def _auth_header(self, user: User) -> dict:
        token = str(AccessToken.for_user(user))
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    def test_student_cannot_read_other_balances(self):
        res = self.client.get(f"/api/balance/{self.student_profile.pk}", **self._auth_header(self.student))
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json()["code"], "permission_denied")

    def test_student_cannot_adjust_balance(self):
        res = self.client.post(
            f"/api/balance/{self.student_profile.pk}/adjust",
            {"amount": "100", "description": "Free money"},
            format="json",
            **self._auth_header(self.student),
        )
        self.assertEqual(res.status_code, 403)

    def test_teacher_cannot_use_settlements_or_payouts(self):
        headers = self._auth_header(self.teacher)
        self.assertEqual(self.client.get("/api/settlements/students", **headers).status_code, 403)
        self.assertEqual(self.client.get("/api/payouts/", **headers).status_code, 403)

    def test_student_reads_own_balance(self):
        res = self.client.get("/api/balance/my", **self._auth_header(self.student))
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["studentId"], self.student_profile.pk)

    def test_manager_cannot_use_student_endpoint(self):
        res = self.client.get("/api/balance/my", **self._auth_header(self.manager))
        self.assertEqual(res.status_code, 403)

    def test_finance_staff_allowed(self):
        for user in (self.manager, self.admin):
            headers = self._auth_header(user)
            self.assertEqual(self.client.get("/api/settlements/students", **headers).status_code, 200)
            self.assertEqual(self.client.get("/api/payouts/", **headers).status_code, 200)
            self.assertEqual(
                self.client.get(f"/api/balance/{self.student_profile.pk}", **headers).status_code, 200
            )

    def test_unauthenticated_401(self):
        res = self.client.get("/api/settlements/students")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["code"], "not_authenticated")
