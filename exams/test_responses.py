"""
Autosave, submit/scoring and results.
"""
from datetime import timedelta
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User, UserProfile
from core.models import Department
from exams.models import Exam, ExamQuestion, ExamSession, StudentExamAssignment, StudentResponse
from exams.services.responses import grade_answers


class ResponseTestBase(TestCase):
    def setUp(self):
        self.client = APIClient()
        now = timezone.now()
        self.department = Department.objects.create(name="Mathematics")
        self.student = User.objects.create_user(email="student@test.edu", password="pass12345", role="student")
        UserProfile.objects.create(user=self.student, email=self.student.email, first_name="Sam", last_name="Lee")
        self.exam = Exam.objects.create(
            title="Calculus", department=self.department,
            start_time=now - timedelta(hours=1), end_time=now + timedelta(hours=1),
        )
        self.q1 = ExamQuestion.objects.create(
            exam=self.exam, type="mcq", question_text="d/dx x^2 at 1?", options=["1", "2", "3"],
            correct_option=1, marks=2, question_order=1,
        )
        self.q2 = ExamQuestion.objects.create(
            exam=self.exam, type="mcq", question_text="Integral of 0?", options=["C", "0"],
            correct_option=0, marks=3, question_order=2,
        )
        self.q3 = ExamQuestion.objects.create(
            exam=self.exam, type="saq", question_text="Define a limit", marks=5, question_order=3,
        )
        StudentExamAssignment.objects.create(exam=self.exam, student=self.student, student_email=self.student.email)
        self.session = ExamSession.objects.create(exam=self.exam, user=self.student)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(self.student)}")

    def _save(self, answers, session_id=None):
        return self.client.post(
            f"/api/student/exam/{self.exam.id}/save",
            {"answers": answers, "sessionId": session_id or self.session.id},
            format="json",
        )

    def _submit(self, answers):
        return self.client.post(
            f"/api/student/exam/{self.exam.id}/submit",
            {"answers": answers, "sessionId": self.session.id},
            format="json",
        )


class SaveAnswersTests(ResponseTestBase):
    def test_save_creates_draft(self):
        res = self._save({str(self.q1.id): 1})
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.json()["success"])
        response = StudentResponse.objects.get(exam_session=self.session, student=self.student)
        self.assertEqual(response.answers, {str(self.q1.id): 1})
        self.assertEqual(response.total_score, 0)
        self.assertEqual(response.grading_status, "pending")
        self.assertIsNone(response.submitted_at)
        self.assertEqual(response.student_name, "Sam Lee")

    def test_saving_twice_keeps_one_row(self):
        answers = {str(self.q1.id): 1, str(self.q3.id): "approaches"}
        self._save(answers)
        self._save(answers)
        rows = StudentResponse.objects.filter(exam_session=self.session, student=self.student)
        self.assertEqual(rows.count(), 1)
        self.assertEqual(rows.get().answers, answers)

    def test_last_write_replaces_answers(self):
        self._save({str(self.q1.id): 0, str(self.q2.id): 1})
        self._save({str(self.q1.id): 2})
        self.assertEqual(StudentResponse.objects.get().answers, {str(self.q1.id): 2})

    def test_save_on_completed_session_is_rejected_without_mutation(self):
        self.session.status = "completed"
        self.session.save()
        res = self._save({str(self.q1.id): 1})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Cannot save answers for completed exam")
        self.assertFalse(StudentResponse.objects.exists())

    def test_save_with_foreign_session_returns_404(self):
        other = User.objects.create_user(email="other@test.edu", password="pass12345", role="student")
        foreign = ExamSession.objects.create(exam=self.exam, user=other)
        res = self._save({str(self.q1.id): 1}, session_id=foreign.id)
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["error"], "Session not found")

    def test_answers_must_be_an_object(self):
        res = self._save(["not", "an", "object"])
        self.assertEqual(res.status_code, 400)

    def test_non_numeric_session_id_returns_404(self):
        res = self._save({str(self.q1.id): 1}, session_id="abc")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.json()["error"], "Session not found")
        submit = self.client.post(
            f"/api/student/exam/{self.exam.id}/submit",
            {"answers": {}, "sessionId": "abc"},
            format="json",
        )
        self.assertEqual(submit.status_code, 404)
        self.session.refresh_from_db()
        self.assertEqual(self.session.status, "in_progress")

    def test_concurrent_insert_falls_back_to_update(self):
        # Another request inserted the row between our lookup and insert
        StudentResponse.objects.create(
            exam_session=self.session, student=self.student, exam=self.exam, answers={"stale": True},
        )
        with mock.patch.object(StudentResponse.objects, "update_or_create", side_effect=IntegrityError("duplicate")):
            res = self._save({str(self.q1.id): 2})
        self.assertEqual(res.status_code, 200)
        row = StudentResponse.objects.get(exam_session=self.session, student=self.student)
        self.assertEqual(row.answers, {str(self.q1.id): 2})


class SubmitExamTests(ResponseTestBase):
    def test_submit_scores_mcq_and_leaves_saq_pending(self):
        res = self._submit({str(self.q1.id): "1", str(self.q2.id): 1, str(self.q3.id): "a limit is..."})
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["score"], 2)
        self.assertEqual(body["maxScore"], 10)
        self.assertEqual(body["gradingStatus"], "partial")

        self.session.refresh_from_db()
        self.assertEqual(self.session.status, "completed")
        self.assertEqual(self.session.total_score, 2)
        self.assertIsNotNone(self.session.end_time)

        response = StudentResponse.objects.get()
        self.assertIsNotNone(response.submitted_at)
        self.assertTrue(response.answers[str(self.q1.id)]["isCorrect"])
        self.assertIsNone(response.answers[str(self.q3.id)]["marksObtained"])

    def test_submit_twice_returns_400(self):
        self._submit({})
        res = self._submit({})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["error"], "Exam already submitted")

    def test_submit_updates_existing_draft(self):
        self._save({str(self.q1.id): 1})
        self._submit({str(self.q1.id): 1})
        self.assertEqual(StudentResponse.objects.count(), 1)


class GradeAnswersTests(TestCase):
    def test_mcq_only_is_completed(self):
        exam = Exam.objects.create(title="Quiz")
        q = ExamQuestion.objects.create(exam=exam, type="mcq", question_text="?", options=["a", "b"], correct_option=0, marks=4)
        graded, score, maximum, status = grade_answers([q], {str(q.id): 0})
        self.assertEqual((score, maximum, status), (4, 4, "completed"))
        self.assertEqual(graded[str(q.id)]["marksObtained"], 4)

    def test_unparseable_answer_scores_zero(self):
        exam = Exam.objects.create(title="Quiz")
        q = ExamQuestion.objects.create(exam=exam, type="mcq", question_text="?", options=["a", "b"], correct_option=0, marks=4)
        _, score, maximum, _ = grade_answers([q], {str(q.id): "zero"})
        self.assertEqual((score, maximum), (0, 4))


class ResultsTests(ResponseTestBase):
    def test_results_summary_and_detail(self):
        self._submit({str(self.q1.id): 1, str(self.q3.id): "answer"})

        listing = self.client.get("/api/student/results")
        self.assertEqual(listing.status_code, 200)
        results = listing.json()["results"]
        self.assertEqual(len(results), 1)
        summary = results[0]
        self.assertEqual(summary["exam_title"], "Calculus")
        self.assertEqual(summary["department"], "Mathematics")
        self.assertEqual(summary["percentage"], 20)
        self.assertEqual(summary["answered_questions"], 2)
        self.assertEqual(summary["total_questions"], 3)

        detail = self.client.get(f"/api/student/results/{summary['id']}")
        self.assertEqual(detail.status_code, 200)
        questions = detail.json()["result"]["questions"]
        self.assertEqual([q["question_number"] for q in questions], [1, 2, 3])
        self.assertEqual(questions[0]["student_answer"], "2")
        self.assertEqual(questions[0]["correct_answer"], "2")
        self.assertTrue(questions[0]["is_correct"])
        self.assertEqual(questions[2]["earned_points"], 0)

    def test_drafts_are_not_results(self):
        self._save({str(self.q1.id): 1})
        self.assertEqual(self.client.get("/api/student/results").json()["results"], [])

    def test_other_students_result_is_404(self):
        self._submit({})
        response = StudentResponse.objects.get()
        other = User.objects.create_user(email="other@test.edu", password="pass12345", role="student")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(other)}")
        self.assertEqual(self.client.get(f"/api/student/results/{response.id}").status_code, 404)
