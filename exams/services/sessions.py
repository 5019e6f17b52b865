"""
Session lifecycle: no session -> in_progress -> completed.
A session is created at most once per (exam, user); the unique constraint
on exam_sessions backs the get_or_create below.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from config.exceptions import UpstreamFailure
from exams.models import Exam, ExamQuestion, ExamSession, StudentExamAssignment, StudentResponse
from exams.services.access import resolve_exam_access
from exams.status import derive_display_status, remaining_seconds
from invitations.models import StudentInvitation

logger = logging.getLogger(__name__)


def start_session(exam, user, now=None):
    """
    Insert-or-return-existing. Returns (session, created).
    Raises PermissionDenied when the user is not eligible.
    """
    resolve_exam_access(exam, user)
    now = now or timezone.now()
    try:
        try:
            with transaction.atomic():
                session, created = ExamSession.objects.get_or_create(
                    exam=exam,
                    user=user,
                    defaults={'status': ExamSession.STATUS_IN_PROGRESS, 'start_time': now},
                )
        except IntegrityError:
            # Lost a race with a concurrent start for the same pair
            session = ExamSession.objects.get(exam=exam, user=user)
            created = False
    except DatabaseError as exc:
        logger.exception('Failed to start session for exam %s user %s', exam.pk, user.pk)
        raise UpstreamFailure('Failed to start exam session') from exc

    if created:
        logger.info('Started session %s for exam %s user %s', session.pk, exam.pk, user.pk)
    else:
        logger.info('Session %s already exists for exam %s user %s', session.pk, exam.pk, user.pk)
    return session, created


def _entries_newest_first(user):
    owner = Q(student=user) | Q(student_email__iexact=user.email)
    invitations = StudentInvitation.objects.filter(owner, exam__isnull=False).order_by('-created_at')
    assignments = StudentExamAssignment.objects.filter(
        owner, status=StudentExamAssignment.STATUS_ACTIVE,
    ).order_by('-assigned_at')

    rows = [(inv.created_at, inv.exam_id, inv, None) for inv in invitations]
    rows += [(a.assigned_at, a.exam_id, None, a) for a in assignments]
    rows.sort(key=lambda row: row[0], reverse=True)

    by_exam = {}
    for _, exam_id, invitation, assignment in rows:
        entry = by_exam.setdefault(exam_id, {'invitation': None, 'assignment': None})
        if invitation is not None and entry['invitation'] is None:
            entry['invitation'] = invitation
        if assignment is not None and entry['assignment'] is None:
            entry['assignment'] = assignment
    # dict keeps first-seen order, i.e. newest first
    return by_exam


def list_assigned_exams(user, now=None):
    """One entry per exam the student was invited to or assigned, newest first."""
    now = now or timezone.now()
    try:
        by_exam = _entries_newest_first(user)
        exams = Exam.objects.filter(pk__in=by_exam.keys()).select_related('department').annotate(
            template_count=Count('questions', filter=Q(questions__user__isnull=True)),
        )
        exams = {exam.pk: exam for exam in exams}
        sessions = {
            s.exam_id: s for s in ExamSession.objects.filter(user=user, exam_id__in=by_exam.keys())
        }
    except DatabaseError as exc:
        logger.exception('Failed to list assigned exams for user %s', user.pk)
        raise UpstreamFailure('Failed to fetch assigned exams') from exc

    results = []
    for exam_id, entry in by_exam.items():
        exam = exams.get(exam_id)
        if exam is None:
            logger.warning('Skipping missing exam %s for user %s', exam_id, user.pk)
            continue
        session = sessions.get(exam_id)
        invitation = entry['invitation']
        assignment = entry['assignment']
        results.append({
            'id': exam.pk,
            'title': exam.title,
            'description': exam.description,
            'department': exam.department.name if exam.department else None,
            'startTime': exam.start_time,
            'endTime': exam.end_time,
            'duration': exam.duration,
            'uniqueCode': exam.unique_code,
            'totalQuestions': exam.template_count,
            'status': derive_display_status(
                now, exam.start_time, exam.end_time, session.status if session else None,
            ),
            'sessionId': session.pk if session else None,
            'sessionStatus': session.status if session else None,
            'sessionStartTime': session.start_time if session else None,
            'score': session.total_score if session else None,
            'invitationId': invitation.pk if invitation else None,
            'invitationStatus': invitation.status if invitation else None,
            'assignmentId': assignment.pk if assignment else None,
        })
    return results


def exam_detail_for_student(exam, user, now=None):
    """
    Exam, template questions, existing session and saved answers.
    Never creates a session; auto-completes one whose time ran out.
    """
    resolve_exam_access(exam, user)
    now = now or timezone.now()

    if exam.start_time and now < exam.start_time:
        raise PermissionDenied('Exam has not started yet')
    if exam.end_time and now > exam.end_time:
        raise PermissionDenied('Exam has expired')

    questions = ExamQuestion.objects.filter(exam=exam, user__isnull=True).order_by('question_order', 'id')
    session = ExamSession.objects.filter(exam=exam, user=user).first()

    remaining = None
    saved_answers = {}
    if session is not None:
        remaining = remaining_seconds(session.start_time, exam.duration, now)
        if remaining == 0 and session.status == ExamSession.STATUS_IN_PROGRESS:
            session.status = ExamSession.STATUS_COMPLETED
            session.end_time = now
            session.save(update_fields=['status', 'end_time'])
            logger.info('Auto-completed timed out session %s', session.pk)
        response = StudentResponse.objects.filter(exam_session=session, student=user).first()
        if response is not None:
            saved_answers = response.answers or {}

    return {
        'exam': exam,
        'teacher_name': exam.created_by.full_name if exam.created_by else '',
        'questions': list(questions),
        'session': session,
        'remaining_time': remaining,
        'saved_answers': saved_answers,
    }
