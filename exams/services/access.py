"""
Assignment resolver: is this user allowed to take this exam?
A student is eligible through an active direct assignment or an accepted
invitation, matched by account id or by email.
"""
import logging

from django.db import DatabaseError
from django.db.models import Q
from rest_framework.exceptions import PermissionDenied

from config.exceptions import UpstreamFailure
from exams.models import StudentExamAssignment
from invitations.models import StudentInvitation

logger = logging.getLogger(__name__)


def _owner_filter(user):
    return Q(student=user) | Q(student_email__iexact=user.email)


def resolve_exam_access(exam, user):
    """
    Return the assignment or invitation that grants access.
    Raises PermissionDenied (403) or UpstreamFailure (500).
    """
    try:
        assignment = StudentExamAssignment.objects.filter(
            _owner_filter(user),
            exam=exam,
            status=StudentExamAssignment.STATUS_ACTIVE,
        ).first()
        if assignment is not None:
            return assignment

        invitation = StudentInvitation.objects.filter(
            _owner_filter(user),
            exam=exam,
            status=StudentInvitation.STATUS_ACCEPTED,
        ).first()
    except DatabaseError as exc:
        logger.exception('Exam access lookup failed for exam %s user %s', exam.pk, user.pk)
        raise UpstreamFailure('Failed to verify exam access') from exc

    if invitation is None:
        logger.warning('User %s denied access to exam %s', user.pk, exam.pk)
        raise PermissionDenied('You are not assigned to this exam')
    return invitation


def assigned_exam_ids(user):
    """Exam ids reachable by active assignment or any (pending or accepted) invitation."""
    assignment_ids = StudentExamAssignment.objects.filter(
        _owner_filter(user),
        status=StudentExamAssignment.STATUS_ACTIVE,
    ).values_list('exam_id', flat=True)
    invitation_ids = StudentInvitation.objects.filter(
        _owner_filter(user),
    ).values_list('exam_id', flat=True)
    return set(assignment_ids) | {exam_id for exam_id in invitation_ids if exam_id is not None}
