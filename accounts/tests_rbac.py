"""
RBAC and account-status tests.
- Student token hitting teacher/admin endpoints returns 403
- Suspended or deleted accounts get 401 everywhere, even with a valid token
- Login refuses disabled accounts
"""
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.identity import set_account_status
from accounts.models import User, UserProfile


class RBACTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.admin = User.objects.create_user(email="admin@test.edu", password="pass12345", role="admin")
        self.teacher = User.objects.create_user(email="teacher@test.edu", password="pass12345", role="teacher")
        self.student = User.objects.create_user(email="student@test.edu", password="pass12345", role="student")
        UserProfile.objects.create(user=self.student, email=self.student.email, first_name="Sam", last_name="Lee")

    def _auth_header(self, user: User) -> dict:
        token = str(AccessToken.for_user(user))
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    def test_student_hitting_teacher_endpoint_returns_403(self):
        self.client.credentials(**self._auth_header(self.student))
        res = self.client.get("/api/exams")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json()["code"], "permission_denied")

    def test_teacher_hitting_student_endpoint_returns_403(self):
        self.client.credentials(**self._auth_header(self.teacher))
        res = self.client.get("/api/student/assigned-exams")
        self.assertEqual(res.status_code, 403)

    def test_teacher_hitting_admin_endpoint_returns_403(self):
        self.client.credentials(**self._auth_header(self.teacher))
        res = self.client.get("/api/teachers")
        self.assertEqual(res.status_code, 403)

    def test_admin_hitting_admin_endpoint_returns_200(self):
        self.client.credentials(**self._auth_header(self.admin))
        res = self.client.get("/api/teachers")
        self.assertEqual(res.status_code, 200)

    def test_missing_token_returns_401_envelope(self):
        res = self.client.get("/api/auth/me")
        self.assertEqual(res.status_code, 401)
        body = res.json()
        self.assertIn("error", body)
        self.assertEqual(body["code"], "not_authenticated")

    def test_suspended_account_rejected_with_valid_token(self):
        headers = self._auth_header(self.student)
        set_account_status(self.student, User.STATUS_SUSPENDED)
        self.client.credentials(**headers)
        me = self.client.get("/api/auth/me")
        self.assertEqual(me.status_code, 401)
        self.assertEqual(me.json()["code"], "user_inactive")
        self.assertEqual(self.client.get("/api/student/assigned-exams").status_code, 401)

    def test_deleted_account_rejected_with_valid_token(self):
        headers = self._auth_header(self.teacher)
        set_account_status(self.teacher, User.STATUS_DELETED)
        self.client.credentials(**headers)
        self.assertEqual(self.client.get("/api/exams").status_code, 401)

    def test_role_comes_from_account_not_request(self):
        self.client.credentials(**self._auth_header(self.student))
        res = self.client.post("/api/exams", {"name": "Hack", "role": "admin"}, format="json")
        self.assertEqual(res.status_code, 403)


class AuthViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(email="student@test.edu", password="pass12345", role="student")

    def test_login_returns_tokens_and_user(self):
        res = self.client.post("/api/auth/login", {"email": "student@test.edu", "password": "pass12345"}, format="json")
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertIn("accessToken", body)
        self.assertIn("refreshToken", body)
        self.assertEqual(body["user"]["role"], "student")
        self.assertEqual(body["user"]["accountStatus"], "active")

    def test_login_wrong_password_returns_401(self):
        res = self.client.post("/api/auth/login", {"email": "student@test.edu", "password": "nope12345"}, format="json")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["error"], "Invalid email or password.")
        self.assertEqual(res.json()["code"], "invalid_credentials")

    def test_login_missing_fields_returns_400(self):
        res = self.client.post("/api/auth/login", {"email": "student@test.edu"}, format="json")
        self.assertEqual(res.status_code, 400)

    def test_login_suspended_account_returns_401(self):
        set_account_status(self.user, User.STATUS_SUSPENDED)
        res = self.client.post("/api/auth/login", {"email": "student@test.edu", "password": "pass12345"}, format="json")
        self.assertEqual(res.status_code, 401)
        self.assertEqual(res.json()["code"], "user_inactive")

    def test_account_status_drives_is_active(self):
        set_account_status(self.user, User.STATUS_DELETED)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)
        set_account_status(self.user, User.STATUS_ACTIVE)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_active)

    def test_me_returns_profile(self):
        UserProfile.objects.create(user=self.user, first_name="Sam", last_name="Lee")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.user)}")
        res = self.client.get("/api/auth/me")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["fullName"], "Sam Lee")
        self.assertEqual(res.json()["profile"]["firstName"], "Sam")

    def test_change_password(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.user)}")
        bad = self.client.post(
            "/api/auth/change-password",
            {"currentPassword": "wrong", "newPassword": "newpass123"},
            format="json",
        )
        self.assertEqual(bad.status_code, 400)
        short = self.client.post(
            "/api/auth/change-password",
            {"currentPassword": "pass12345", "newPassword": "short"},
            format="json",
        )
        self.assertEqual(short.status_code, 400)
        ok = self.client.post(
            "/api/auth/change-password",
            {"currentPassword": "pass12345", "newPassword": "newpass123"},
            format="json",
        )
        self.assertEqual(ok.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("newpass123"))
