"""
Institution and department endpoints.
"""
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from core.models import Department, Institution


class OrganizationTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin@x.edu", password="pass12345", role="admin")
        self.teacher = User.objects.create_user(email="teacher@x.edu", password="pass12345", role="teacher")

    def _login(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")

    def test_admin_creates_institution_with_default_description(self):
        self._login(self.admin)
        res = self.client.post("/api/institutions", {"name": "X University"}, format="json")
        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.json()["description"], "X University")

    def test_teacher_cannot_write(self):
        self._login(self.teacher)
        res = self.client.post("/api/institutions", {"name": "X University"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.json()["code"], "permission_denied")
        self.assertFalse(Institution.objects.exists())

    def test_teacher_can_read_and_filter_departments(self):
        institution = Institution.objects.create(name="X University")
        Department.objects.create(name="CSE", institution=institution)
        Department.objects.create(name="Loose")
        self._login(self.teacher)
        res = self.client.get(f"/api/departments?institutionId={institution.id}")
        self.assertEqual(res.status_code, 200)
        self.assertEqual([d["name"] for d in res.json()], ["CSE"])
        self.assertEqual(res.json()[0]["institutionName"], "X University")

    def test_admin_creates_department(self):
        institution = Institution.objects.create(name="X University")
        self._login(self.admin)
        res = self.client.post(
            "/api/departments", {"name": "ECE", "code": "ece", "institutionId": institution.id}, format="json",
        )
        self.assertEqual(res.status_code, 201)
        self.assertEqual(Department.objects.get().institution, institution)

    def test_deleting_institution_removes_departments(self):
        institution = Institution.objects.create(name="X University")
        Department.objects.create(name="CSE", institution=institution)
        self._login(self.admin)
        res = self.client.delete(f"/api/institutions/{institution.id}")
        self.assertEqual(res.status_code, 204)
        self.assertFalse(Department.objects.exists())

    def test_unknown_department_returns_404(self):
        self._login(self.teacher)
        res = self.client.get("/api/departments/999")
        self.assertEqual(res.status_code, 404)

    def test_requires_authentication(self):
        res = self.client.get("/api/institutions")
        self.assertEqual(res.status_code, 401)
