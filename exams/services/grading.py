"""
Manual grading of submitted responses by teachers and admins.

MCQs are marked at submit time; SAQ and coding answers carry
marksObtained=None until a grader sets them here. Every grading pass
re-adds the response totals and copies the total onto the session.
"""
import logging

from django.db import DatabaseError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from accounts.models import User
from config.exceptions import UpstreamFailure
from exams.models import ExamQuestion, StudentResponse

logger = logging.getLogger(__name__)


def _visible_to(user):
    """Admins see every submission; teachers see their own exams and their institution's."""
    qs = StudentResponse.objects.filter(submitted_at__isnull=False)
    if user.role == User.ROLE_ADMIN:
        return qs
    scope = Q(exam__created_by=user)
    profile = getattr(user, 'profile', None)
    if profile is not None and profile.institution_id:
        scope |= Q(exam__department__institution_id=profile.institution_id)
    return qs.filter(scope)


def _is_graded(entry):
    if entry.get('type') == ExamQuestion.TYPE_MCQ:
        return True
    return entry.get('marksObtained') is not None


def grading_status_for(answers):
    """completed when every answer is graded, partial when some are, else pending."""
    entries = [entry for entry in answers.values() if isinstance(entry, dict)]
    graded = sum(1 for entry in entries if _is_graded(entry))
    if entries and graded == len(entries):
        return StudentResponse.GRADING_COMPLETED
    if graded:
        return StudentResponse.GRADING_PARTIAL
    return StudentResponse.GRADING_PENDING


def _counts(answers):
    counts = {'mcq_count': 0, 'saq_count': 0, 'coding_count': 0, 'graded_count': 0, 'pending_count': 0}
    for entry in answers.values():
        if not isinstance(entry, dict):
            continue
        kind = entry.get('type')
        if kind in (ExamQuestion.TYPE_MCQ, ExamQuestion.TYPE_SAQ, ExamQuestion.TYPE_CODING):
            counts[f'{kind}_count'] += 1
        if _is_graded(entry):
            counts['graded_count'] += 1
        else:
            counts['pending_count'] += 1
    return counts


def list_submissions(user):
    responses = _visible_to(user).select_related('exam', 'exam__department').order_by('-submitted_at')
    submissions = []
    for response in responses:
        answers = response.answers or {}
        exam = response.exam
        submissions.append({
            'id': response.pk,
            'session_id': response.exam_session_id,
            'exam_id': exam.pk,
            'exam_title': exam.title,
            'student_id': response.student_id,
            'student_name': response.student_name,
            'student_email': response.student_email,
            'department': exam.department.name if exam.department else 'Unknown',
            'submitted_at': response.submitted_at,
            'total_questions': len(answers),
            **_counts(answers),
            'grading_status': response.grading_status,
            'total_score': response.total_score,
            'max_possible_score': response.max_possible_score,
        })
    return submissions


def _submission(session_id, user):
    response = StudentResponse.objects.filter(
        exam_session_id=session_id, submitted_at__isnull=False,
    ).select_related('exam', 'exam__department', 'exam_session').first()
    if response is None:
        raise NotFound('Submission not found')
    if not _visible_to(user).filter(pk=response.pk).exists():
        logger.warning('User %s denied grading access to session %s', user.pk, session_id)
        raise PermissionDenied("You don't have permission to grade this exam")
    return response


def submission_detail(session_id, user):
    """Template questions joined with the student's graded answers."""
    response = _submission(session_id, user)
    exam = response.exam
    session = response.exam_session
    answers = response.answers or {}
    questions = ExamQuestion.objects.filter(exam=exam, user__isnull=True).order_by('question_order', 'id')

    items = []
    for question in questions:
        entry = answers.get(str(question.pk)) or {}
        item = {
            'question_id': question.pk,
            'question_type': question.type,
            'question_text': question.question_text,
            'question_marks': question.marks,
            'student_answer': entry.get('answer'),
            'marks_obtained': entry.get('marksObtained'),
            'is_graded': entry.get('marksObtained') is not None,
            'teacher_feedback': entry.get('teacherFeedback'),
        }
        if question.type == ExamQuestion.TYPE_MCQ:
            item.update(options=question.options, correct_option=question.correct_option,
                        is_correct=entry.get('isCorrect'))
        elif question.type == ExamQuestion.TYPE_SAQ:
            item['grading_guidelines'] = question.grading_guidelines
        else:
            item.update(language=question.language, starter_code=question.starter_code,
                        test_cases=question.test_cases)
        items.append(item)

    return {
        'session_id': session.pk,
        'exam_id': exam.pk,
        'exam_title': exam.title,
        'student_id': response.student_id,
        'student_name': response.student_name,
        'student_email': response.student_email,
        'department': exam.department.name if exam.department else 'Unknown',
        'submitted_at': response.submitted_at,
        'start_time': session.start_time,
        'end_time': session.end_time,
        'duration': exam.duration,
        'total_score': response.total_score,
        'max_possible_score': response.max_possible_score,
        'grading_status': response.grading_status,
        'responses': items,
    }


def grade_submission(session_id, user, updates, now=None):
    """
    Apply marks and feedback per question, then recompute the totals
    and the grading status. Returns the updated response.
    """
    response = _submission(session_id, user)
    now = now or timezone.now()
    try:
        with transaction.atomic():
            response = StudentResponse.objects.select_for_update().get(pk=response.pk)
            answers = response.answers or {}
            for update in updates:
                key = str(update['questionId'])
                entry = answers.get(key)
                if not isinstance(entry, dict):
                    raise ValidationError(f'Question {key} is not part of this submission')
                marks = update['marksObtained']
                if marks is not None and marks > entry.get('maxMarks', 0):
                    raise ValidationError(f"Marks for question {key} cannot exceed {entry.get('maxMarks', 0)}")
                entry['marksObtained'] = marks
                entry['teacherFeedback'] = update.get('feedback')
                entry['gradedBy'] = user.pk
                entry['gradedAt'] = now.isoformat()
                if entry.get('type') != ExamQuestion.TYPE_MCQ:
                    entry['gradingStatus'] = 'completed' if marks is not None else 'pending'

            auto_score = 0
            manual_score = 0
            for entry in answers.values():
                if not isinstance(entry, dict) or entry.get('marksObtained') is None:
                    continue
                if entry.get('type') == ExamQuestion.TYPE_MCQ:
                    auto_score += entry['marksObtained']
                else:
                    manual_score += entry['marksObtained']

            response.answers = answers
            response.auto_graded_score = auto_score
            response.manual_graded_score = manual_score
            response.total_score = auto_score + manual_score
            response.grading_status = grading_status_for(answers)
            response.save(update_fields=[
                'answers', 'auto_graded_score', 'manual_graded_score',
                'total_score', 'grading_status', 'updated_at',
            ])
            session = response.exam_session
            session.total_score = response.total_score
            session.save(update_fields=['total_score'])
    except DatabaseError as exc:
        logger.exception('Failed to grade session %s', session_id)
        raise UpstreamFailure('Failed to update grades') from exc

    logger.info('User %s graded session %s: %s/%s (%s)', user.pk, session_id,
                response.total_score, response.max_possible_score, response.grading_status)
    return response
