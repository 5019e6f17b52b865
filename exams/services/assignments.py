"""
Direct exam assignments by teachers/admins.
An (exam, student_email) pair has at most one row; re-assigning an active
pair is skipped, re-assigning a revoked one reactivates it.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from accounts.models import User
from config.exceptions import UpstreamFailure
from exams.models import Exam, StudentExamAssignment

logger = logging.getLogger(__name__)


def _resolve_student(email):
    return User.objects.filter(email__iexact=email, role=User.ROLE_STUDENT).first()


def assign_exams(assigned_by, student_email, exam_ids, department):
    """
    Returns (assigned, skipped_count). Every exam must exist and belong
    to the given department.
    """
    exam_ids = list(dict.fromkeys(exam_ids))
    exams = list(Exam.objects.filter(pk__in=exam_ids))
    if len(exams) != len(exam_ids):
        raise ValidationError('One or more exam IDs are invalid')
    foreign = [exam.title for exam in exams if exam.department_id != department.pk]
    if foreign:
        raise ValidationError(f"Exams must belong to the selected department: {', '.join(foreign)}")

    student_email = User.objects.normalize_email(student_email)
    student = _resolve_student(student_email)
    assigned = []
    skipped = 0
    try:
        for exam in exams:
            with transaction.atomic():
                try:
                    with transaction.atomic():
                        assignment, created = StudentExamAssignment.objects.get_or_create(
                            exam=exam,
                            student_email=student_email,
                            defaults={
                                'student': student,
                                'assigned_by': assigned_by,
                                'department': department,
                                'status': StudentExamAssignment.STATUS_ACTIVE,
                            },
                        )
                except IntegrityError:
                    assignment = StudentExamAssignment.objects.get(exam=exam, student_email=student_email)
                    created = False

                if created:
                    assigned.append(assignment)
                elif assignment.status == StudentExamAssignment.STATUS_REVOKED:
                    assignment.status = StudentExamAssignment.STATUS_ACTIVE
                    assignment.assigned_by = assigned_by
                    assignment.department = department
                    if assignment.student_id is None and student is not None:
                        assignment.student = student
                    assignment.save(update_fields=['status', 'assigned_by', 'department', 'student', 'updated_at'])
                    assigned.append(assignment)
                else:
                    skipped += 1
    except DatabaseError as exc:
        logger.exception('Failed to assign exams %s to %s', exam_ids, student_email)
        raise UpstreamFailure('Failed to assign exams') from exc

    logger.info('Assigned %s exam(s) to %s, skipped %s', len(assigned), student_email, skipped)
    return assigned, skipped


def revoke_assignments(user, assignment_ids):
    """Soft-delete (status=revoked). Teachers may only revoke their own assignments."""
    assignments = StudentExamAssignment.objects.filter(pk__in=assignment_ids)
    if not assignments.exists():
        raise NotFound('Assignments not found')
    if user.role == User.ROLE_TEACHER and assignments.exclude(assigned_by=user).exists():
        raise PermissionDenied('You can only unassign exams that you assigned')

    try:
        with transaction.atomic():
            revoked = list(assignments.select_for_update())
            for assignment in revoked:
                assignment.status = StudentExamAssignment.STATUS_REVOKED
                assignment.save(update_fields=['status', 'updated_at'])
    except DatabaseError as exc:
        logger.exception('Failed to revoke assignments %s', assignment_ids)
        raise UpstreamFailure('Failed to unassign exams') from exc

    logger.info('User %s revoked assignments %s', user.pk, [a.pk for a in revoked])
    return revoked


def backfill_student(user):
    """Point assignments made before the account existed at the new account."""
    updated = StudentExamAssignment.objects.filter(
        student_email__iexact=user.email, student__isnull=True,
    ).update(student=user)
    logger.info('Back-filled %s assignment(s) for %s', updated, user.email)
    return updated
