"""
Response persistence: autosave drafts, submit and score, read results.
One StudentResponse per (exam_session, student).
"""
import logging
import math

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from config.exceptions import UpstreamFailure
from exams.models import ExamQuestion, ExamSession, StudentResponse

logger = logging.getLogger(__name__)


def _owned_session(exam, session_id, user):
    try:
        session_id = int(session_id)
    except (TypeError, ValueError):
        session_id = None
    session = ExamSession.objects.filter(pk=session_id, exam=exam, user=user).first() if session_id else None
    if session is None:
        logger.warning('Session %s not found for exam %s user %s', session_id, exam.pk, user.pk)
        raise NotFound('Session not found')
    return session


def _upsert_response(session, user, values):
    """Update the (session, student) row or insert it; re-read on a lost insert race."""
    profile = getattr(user, 'profile', None)
    defaults = {
        'exam': session.exam,
        'student_name': user.full_name,
        'student_email': (profile.email if profile and profile.email else user.email),
        **values,
    }
    try:
        with transaction.atomic():
            response, created = StudentResponse.objects.update_or_create(
                exam_session=session, student=user, defaults=defaults,
            )
    except IntegrityError:
        with transaction.atomic():
            StudentResponse.objects.filter(exam_session=session, student=user).update(
                updated_at=timezone.now(), **values,
            )
        response = StudentResponse.objects.get(exam_session=session, student=user)
        created = False
    return response, created


def save_answers(exam, session_id, user, answers):
    """
    Replace the stored answers of an in-progress session (last write wins).
    Completed sessions are never touched.
    """
    if not isinstance(answers, dict):
        raise ValidationError('answers must be an object')
    session = _owned_session(exam, session_id, user)
    if session.status != ExamSession.STATUS_IN_PROGRESS:
        raise ValidationError('Cannot save answers for completed exam')

    try:
        response, created = _upsert_response(session, user, {'answers': answers})
    except DatabaseError as exc:
        logger.exception('Failed to save answers for session %s', session.pk)
        raise UpstreamFailure('Failed to save answers') from exc

    logger.info('%s draft response %s for session %s', 'Created' if created else 'Updated', response.pk, session.pk)
    return response


def _is_correct(answer, correct_option):
    if correct_option is None:
        return False
    try:
        return int(answer) == correct_option
    except (TypeError, ValueError):
        return False


def grade_answers(questions, answers):
    """
    Auto-mark MCQs; SAQ and coding answers wait for manual grading.
    Returns (graded_answers, auto_score, max_score, grading_status).
    """
    graded = {}
    auto_score = 0
    max_score = 0
    has_manual = False

    for question in questions:
        key = str(question.pk)
        answer = answers.get(key)
        max_score += question.marks
        if question.type == ExamQuestion.TYPE_MCQ:
            correct = answer is not None and _is_correct(answer, question.correct_option)
            obtained = question.marks if correct else 0
            auto_score += obtained
            graded[key] = {
                'questionId': key,
                'type': question.type,
                'answer': answer,
                'isCorrect': correct,
                'marksObtained': obtained,
                'maxMarks': question.marks,
            }
        else:
            has_manual = True
            graded[key] = {
                'questionId': key,
                'type': question.type,
                'answer': answer or '',
                'marksObtained': None,
                'maxMarks': question.marks,
                'gradingStatus': 'pending',
            }

    status = StudentResponse.GRADING_PARTIAL if has_manual else StudentResponse.GRADING_COMPLETED
    return graded, auto_score, max_score, status


def submit_exam(exam, session_id, user, answers, now=None):
    """Grade, store the final response and complete the session."""
    if not isinstance(answers, dict):
        raise ValidationError('answers must be an object')
    session = _owned_session(exam, session_id, user)
    if session.status == ExamSession.STATUS_COMPLETED:
        raise ValidationError('Exam already submitted')

    now = now or timezone.now()
    questions = ExamQuestion.objects.filter(exam=exam, user__isnull=True).order_by('question_order', 'id')
    graded, auto_score, max_score, grading_status = grade_answers(questions, answers)

    try:
        with transaction.atomic():
            response, _ = _upsert_response(session, user, {
                'answers': graded,
                'total_score': auto_score,
                'max_possible_score': max_score,
                'auto_graded_score': auto_score,
                'manual_graded_score': 0,
                'grading_status': grading_status,
                'submitted_at': now,
            })
            session.status = ExamSession.STATUS_COMPLETED
            session.end_time = now
            session.total_score = auto_score
            session.save(update_fields=['status', 'end_time', 'total_score'])
    except DatabaseError as exc:
        logger.exception('Failed to submit session %s', session.pk)
        raise UpstreamFailure('Failed to submit exam') from exc

    logger.info('Session %s submitted: %s/%s (%s)', session.pk, auto_score, max_score, grading_status)
    return response


def _percentage(total, maximum):
    if not maximum:
        return 0
    return math.floor(total * 100 / maximum + 0.5)


def _answered(answers):
    return sum(
        1 for value in answers.values()
        if isinstance(value, dict) and value.get('answer') not in (None, '')
    )


def _summary(response):
    answers = response.answers or {}
    exam = response.exam
    return {
        'id': response.pk,
        'exam_id': exam.pk,
        'exam_title': exam.title,
        'department': exam.department.name if exam.department else 'N/A',
        'submitted_at': response.submitted_at,
        'total_questions': len(answers),
        'answered_questions': _answered(answers),
        'total_score': response.total_score,
        'max_possible_score': response.max_possible_score,
        'percentage': _percentage(response.total_score, response.max_possible_score),
        'grading_status': response.grading_status,
    }


def list_results(user):
    """Submitted responses of the student, newest first."""
    responses = StudentResponse.objects.filter(
        student=user, submitted_at__isnull=False,
    ).select_related('exam', 'exam__department').order_by('-submitted_at')
    return [_summary(response) for response in responses]


def result_detail(response_id, user):
    """Per-question breakdown of one submitted response."""
    response = StudentResponse.objects.filter(
        pk=response_id, student=user, submitted_at__isnull=False,
    ).select_related('exam', 'exam__department').first()
    if response is None:
        raise NotFound('Result not found')

    answers = response.answers or {}
    questions = ExamQuestion.objects.filter(
        exam=response.exam, user__isnull=True,
    ).order_by('question_order', 'id')

    breakdown = []
    for number, question in enumerate(questions, start=1):
        entry = answers.get(str(question.pk)) or {}
        answer = entry.get('answer')
        options = question.options or []
        if question.type == ExamQuestion.TYPE_MCQ:
            correct_answer = _option_text(options, question.correct_option) or ''
            student_answer = _option_text(options, answer)
            is_correct = bool(entry.get('isCorrect'))
        else:
            correct_answer = question.grading_guidelines
            student_answer = answer or None
            is_correct = (entry.get('marksObtained') or 0) > 0
        breakdown.append({
            'question_number': number,
            'question_text': question.question_text,
            'question_type': question.type,
            'options': options,
            'correct_answer': correct_answer,
            'student_answer': student_answer,
            'is_correct': is_correct,
            'points': question.marks,
            'earned_points': entry.get('marksObtained') or 0,
            'feedback': entry.get('teacherFeedback'),
        })

    result = _summary(response)
    result['total_questions'] = len(breakdown)
    result['questions'] = breakdown
    return result


def _option_text(options, index):
    try:
        index = int(index)
    except (TypeError, ValueError):
        return None
    if 0 <= index < len(options):
        return options[index]
    return None
