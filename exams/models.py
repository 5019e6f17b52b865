"""
Exams, template questions, direct assignments, sessions and responses.
One session per (exam, user), one assignment per (exam, email) and one
response per (session, student) are enforced by unique constraints.
"""
import secrets
import string

from django.db import models
from django.utils import timezone

from accounts.models import User


def generate_unique_code():
    """EXAM-<timestamp>-<random>, upper-case."""
    stamp = format(int(timezone.now().timestamp() * 1000), 'x')
    rand = ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"EXAM-{stamp}-{rand}".upper()


class Exam(models.Model):
    STATUS_DRAFT = 'draft'
    STATUS_ACTIVE = 'active'
    STATUS_ARCHIVED = 'archived'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    department = models.ForeignKey(
        'core.Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exams',
    )
    start_time = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    duration = models.PositiveIntegerField(default=60, help_text='Minutes')
    unique_code = models.CharField(max_length=64, unique=True, default=generate_unique_code)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    max_attempts = models.PositiveIntegerField(default=1)
    shuffle_questions = models.BooleanField(default=False)
    show_results_immediately = models.BooleanField(default=False)
    require_webcam = models.BooleanField(default=False)
    max_violations = models.PositiveIntegerField(default=3)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_exams',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exams'
        verbose_name = 'Exam'
        verbose_name_plural = 'Exams'
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class ExamQuestion(models.Model):
    """
    MCQ / SAQ / Coding question. Rows with user=None are the exam's
    template questions; per-student copies carry a user.
    """
    TYPE_MCQ = 'mcq'
    TYPE_SAQ = 'saq'
    TYPE_CODING = 'coding'
    TYPE_CHOICES = [
        (TYPE_MCQ, 'Multiple choice'),
        (TYPE_SAQ, 'Short answer'),
        (TYPE_CODING, 'Coding'),
    ]

    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='questions')
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='exam_questions',
    )
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    question_text = models.TextField()
    options = models.JSONField(default=list, blank=True)
    correct_option = models.IntegerField(null=True, blank=True)
    grading_guidelines = models.TextField(blank=True, default='')
    starter_code = models.TextField(blank=True, default='')
    language = models.CharField(max_length=30, blank=True, default='')
    test_cases = models.JSONField(default=list, blank=True)
    marks = models.PositiveIntegerField(default=1)
    question_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'exam_questions'
        verbose_name = 'Exam Question'
        verbose_name_plural = 'Exam Questions'
        ordering = ['question_order', 'id']

    def __str__(self):
        return f"{self.exam.title} Q{self.question_order} ({self.type})"


class StudentExamAssignment(models.Model):
    """Direct assignment of an exam to a student email (account may not exist yet)."""
    STATUS_ACTIVE = 'active'
    STATUS_REVOKED = 'revoked'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_REVOKED, 'Revoked'),
    ]

    student_email = models.EmailField(db_index=True)
    student = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exam_assignments',
    )
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='assignments')
    assigned_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_exams',
    )
    department = models.ForeignKey(
        'core.Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exam_assignments',
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    assigned_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_exam_assignments'
        verbose_name = 'Student Exam Assignment'
        verbose_name_plural = 'Student Exam Assignments'
        ordering = ['-assigned_at']
        constraints = [
            models.UniqueConstraint(fields=['exam', 'student_email'], name='uniq_assignment_exam_email'),
        ]

    def __str__(self):
        return f"{self.exam.title} -> {self.student_email} ({self.status})"


class ExamSession(models.Model):
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='sessions')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='exam_sessions')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS)
    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField(null=True, blank=True)
    total_score = models.IntegerField(null=True, blank=True)
    violations_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'exam_sessions'
        verbose_name = 'Exam Session'
        verbose_name_plural = 'Exam Sessions'
        ordering = ['-start_time']
        constraints = [
            models.UniqueConstraint(fields=['exam', 'user'], name='uniq_session_exam_user'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.exam.title} ({self.status})"


class StudentResponse(models.Model):
    GRADING_PENDING = 'pending'
    GRADING_PARTIAL = 'partial'
    GRADING_COMPLETED = 'completed'
    GRADING_CHOICES = [
        (GRADING_PENDING, 'Pending'),
        (GRADING_PARTIAL, 'Partial'),
        (GRADING_COMPLETED, 'Completed'),
    ]

    exam_session = models.ForeignKey(ExamSession, on_delete=models.CASCADE, related_name='responses')
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='exam_responses')
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='responses')
    student_name = models.CharField(max_length=255, blank=True, default='')
    student_email = models.EmailField(blank=True, default='')
    answers = models.JSONField(default=dict, blank=True)
    total_score = models.IntegerField(default=0)
    max_possible_score = models.IntegerField(default=0)
    auto_graded_score = models.IntegerField(default=0)
    manual_graded_score = models.IntegerField(default=0)
    grading_status = models.CharField(max_length=20, choices=GRADING_CHOICES, default=GRADING_PENDING)
    submitted_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_responses'
        verbose_name = 'Student Response'
        verbose_name_plural = 'Student Responses'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['exam_session', 'student'], name='uniq_response_session_student'),
        ]

    def __str__(self):
        return f"{self.student_email} - {self.exam.title}"
