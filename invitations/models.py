"""
Student and teacher invitations (single-use tokens).
"""
from django.db import models

from accounts.models import User
from .tokens import generate_invitation_token


class StudentInvitation(models.Model):
    """Invitation of a student (by email) to one exam"""
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
    ]

    student_email = models.EmailField(db_index=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    department = models.ForeignKey(
        'core.Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='student_invitations',
    )
    exam = models.ForeignKey(
        'exams.Exam',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invitations',
    )
    teacher = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_student_invitations',
    )
    invitation_token = models.CharField(max_length=64, unique=True, default=generate_invitation_token)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    expires_at = models.DateTimeField()
    duration = models.PositiveIntegerField(null=True, blank=True, help_text='Per-invitee duration override (minutes)')
    student = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='student_invitations',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_invitations'
        verbose_name = 'Student Invitation'
        verbose_name_plural = 'Student Invitations'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.student_email} ({self.status})"


class TeacherInvitation(models.Model):
    """
    Invitation of a teacher by an admin.
    institution/department hold raw values: an id, or a legacy department code.
    """
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
    ]

    email = models.EmailField(db_index=True)
    token = models.CharField(max_length=64, unique=True, default=generate_invitation_token)
    admin = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_teacher_invitations',
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    institution = models.CharField(max_length=255, blank=True, default='')
    department = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'teacher_invitations'
        verbose_name = 'Teacher Invitation'
        verbose_name_plural = 'Teacher Invitations'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email} ({self.status})"
