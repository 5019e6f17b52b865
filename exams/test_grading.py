"""
Manual grading of submitted responses.
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserProfile
from core.models import Department, Institution
from exams.models import Exam, ExamQuestion, ExamSession, StudentExamAssignment, StudentResponse
from exams.services.grading import grading_status_for


class GradingTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        now = timezone.now()
        self.institution = Institution.objects.create(name="X University")
        self.department = Department.objects.create(name="CSE", institution=self.institution)
        self.teacher = User.objects.create_user(email="teacher@x.edu", password="pass12345", role="teacher")
        UserProfile.objects.create(user=self.teacher, institution=self.institution)
        self.outsider = User.objects.create_user(email="outsider@y.edu", password="pass12345", role="teacher")
        self.student = User.objects.create_user(email="student@x.edu", password="pass12345", role="student")
        UserProfile.objects.create(user=self.student, email=self.student.email, first_name="Sam", last_name="Lee")

        self.exam = Exam.objects.create(
            title="Systems", department=self.department, created_by=self.teacher,
            start_time=now - timedelta(hours=1), end_time=now + timedelta(hours=1),
        )
        self.mcq = ExamQuestion.objects.create(
            exam=self.exam, type="mcq", question_text="Pick 2", options=["1", "2"],
            correct_option=1, marks=2, question_order=1,
        )
        self.saq = ExamQuestion.objects.create(
            exam=self.exam, type="saq", question_text="What is a mutex?", marks=5, question_order=2,
        )
        self.coding = ExamQuestion.objects.create(
            exam=self.exam, type="coding", question_text="Reverse a list", marks=3,
            language="python", question_order=3,
        )
        StudentExamAssignment.objects.create(exam=self.exam, student=self.student, student_email=self.student.email)
        self.session = ExamSession.objects.create(exam=self.exam, user=self.student)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.student)}")
        self.client.post(
            f"/api/student/exam/{self.exam.id}/submit",
            {
                "answers": {str(self.mcq.id): 1, str(self.saq.id): "a lock", str(self.coding.id): "xs[::-1]"},
                "sessionId": self.session.id,
            },
            format="json",
        )
        self._login(self.teacher)

    def _login(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")

    def _grade(self, updates):
        return self.client.patch(f"/api/teacher/grading/{self.session.id}", {"updates": updates}, format="json")

    def test_list_submissions(self):
        res = self.client.get("/api/teacher/grading")
        self.assertEqual(res.status_code, 200)
        [submission] = res.json()["submissions"]
        self.assertEqual(submission["session_id"], self.session.id)
        self.assertEqual(submission["student_name"], "Sam Lee")
        self.assertEqual(
            (submission["mcq_count"], submission["saq_count"], submission["coding_count"]), (1, 1, 1),
        )
        self.assertEqual((submission["graded_count"], submission["pending_count"]), (1, 2))
        self.assertEqual(submission["grading_status"], "partial")

    def test_drafts_are_not_listed(self):
        other = User.objects.create_user(email="s2@x.edu", password="pass12345", role="student")
        draft_session = ExamSession.objects.create(exam=self.exam, user=other)
        StudentResponse.objects.create(exam_session=draft_session, student=other, exam=self.exam, answers={})
        self.assertEqual(len(self.client.get("/api/teacher/grading").json()["submissions"]), 1)

    def test_detail_joins_questions_and_answers(self):
        res = self.client.get(f"/api/teacher/grading/{self.session.id}")
        self.assertEqual(res.status_code, 200)
        items = res.json()["submission"]["responses"]
        self.assertEqual([i["question_type"] for i in items], ["mcq", "saq", "coding"])
        self.assertTrue(items[0]["is_correct"])
        self.assertEqual(items[1]["student_answer"], "a lock")
        self.assertFalse(items[1]["is_graded"])
        self.assertEqual(items[2]["language"], "python")

    def test_partial_then_complete_grading(self):
        res = self._grade([{"questionId": str(self.saq.id), "marksObtained": 4, "feedback": "Good"}])
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["total_score"], 6)
        self.assertEqual(res.json()["grading_status"], "partial")

        res = self._grade([{"questionId": str(self.coding.id), "marksObtained": 3}])
        self.assertEqual(res.json()["grading_status"], "completed")

        response = StudentResponse.objects.get()
        self.assertEqual(response.total_score, 9)
        self.assertEqual(response.auto_graded_score, 2)
        self.assertEqual(response.manual_graded_score, 7)
        self.assertEqual(response.answers[str(self.saq.id)]["teacherFeedback"], "Good")
        self.session.refresh_from_db()
        self.assertEqual(self.session.total_score, 9)

    def test_student_result_shows_feedback(self):
        self._grade([{"questionId": str(self.saq.id), "marksObtained": 5, "feedback": "Exact"}])
        self._login(self.student)
        response = StudentResponse.objects.get()
        result = self.client.get(f"/api/student/results/{response.id}").json()["result"]
        saq = result["questions"][1]
        self.assertEqual((saq["earned_points"], saq["feedback"]), (5, "Exact"))

    def test_marks_above_maximum_return_400(self):
        res = self._grade([{"questionId": str(self.saq.id), "marksObtained": 6}])
        self.assertEqual(res.status_code, 400)
        self.assertIsNone(StudentResponse.objects.get().answers[str(self.saq.id)]["marksObtained"])

    def test_unknown_question_returns_400(self):
        res = self._grade([{"questionId": "999999", "marksObtained": 1}])
        self.assertEqual(res.status_code, 400)

    def test_empty_updates_return_400(self):
        self.assertEqual(self._grade([]).status_code, 400)

    def test_teacher_outside_exam_and_institution_gets_403(self):
        self._login(self.outsider)
        self.assertEqual(self._grade([{"questionId": str(self.saq.id), "marksObtained": 1}]).status_code, 403)
        self.assertEqual(self.client.get("/api/teacher/grading").json()["submissions"], [])

    def test_same_institution_teacher_can_grade(self):
        colleague = User.objects.create_user(email="colleague@x.edu", password="pass12345", role="teacher")
        UserProfile.objects.create(user=colleague, institution=self.institution)
        self._login(colleague)
        self.assertEqual(self._grade([{"questionId": str(self.saq.id), "marksObtained": 1}]).status_code, 200)

    def test_unknown_session_returns_404(self):
        self.assertEqual(self.client.get("/api/teacher/grading/424242").status_code, 404)

    def test_student_cannot_grade(self):
        self._login(self.student)
        self.assertEqual(self.client.get("/api/teacher/grading").status_code, 403)


class GradingStatusTests(TestCase):
    def test_status_rules(self):
        mcq = {"type": "mcq", "marksObtained": 0}
        pending = {"type": "saq", "marksObtained": None}
        graded = {"type": "coding", "marksObtained": 2}
        self.assertEqual(grading_status_for({"1": mcq, "2": graded}), "completed")
        self.assertEqual(grading_status_for({"1": mcq, "2": pending}), "partial")
        self.assertEqual(grading_status_for({"2": pending}), "pending")
        self.assertEqual(grading_status_for({}), "pending")
