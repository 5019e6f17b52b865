"""
Student exam views: listing, detail, start, autosave, submit, results.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsStudent
from exams.models import Exam
from exams.serializers import ExamSessionSerializer, StudentQuestionSerializer
from exams.services import responses, sessions

logger = logging.getLogger(__name__)


def _get_exam(exam_id):
    exam = Exam.objects.select_related('department', 'created_by__profile').filter(pk=exam_id).first()
    if exam is None:
        raise NotFound('Exam not found')
    return exam


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def assigned_exams_view(request):
    """
    GET /api/student/assigned-exams
    One entry per invited/assigned exam with its display status.
    """
    return Response(sessions.list_assigned_exams(request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def student_exam_detail_view(request, exam_id):
    """
    GET /api/student/exam/{id}
    Exam info, template questions (no answers), existing session, saved answers.
    """
    exam = _get_exam(exam_id)
    detail = sessions.exam_detail_for_student(exam, request.user)
    session = detail['session']
    return Response({
        'exam': {
            'id': exam.pk,
            'title': exam.title,
            'description': exam.description,
            'department': exam.department.name if exam.department else None,
            'duration': exam.duration,
            'startTime': exam.start_time,
            'endTime': exam.end_time,
            'uniqueCode': exam.unique_code,
            'requireWebcam': exam.require_webcam,
            'maxViolations': exam.max_violations,
            'teacherName': detail['teacher_name'],
        },
        'session': {
            **ExamSessionSerializer(session).data,
            'remainingTime': detail['remaining_time'],
        } if session else None,
        'questions': StudentQuestionSerializer(detail['questions'], many=True).data,
        'savedAnswers': detail['saved_answers'],
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def start_exam_view(request, exam_id):
    """
    POST /api/student/exam/{id}/start
    Creates the (exam, student) session once; a repeat call returns 400 with the existing one.
    """
    exam = _get_exam(exam_id)
    session, created = sessions.start_session(exam, request.user)
    data = ExamSessionSerializer(session).data
    if not created:
        return Response(
            {'error': 'Exam session already exists', 'code': 'session_exists', 'session': data},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return Response({'success': True, 'session': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def save_answers_view(request, exam_id):
    """
    POST /api/student/exam/{id}/save
    Body: { answers: {questionId: answer}, sessionId }
    """
    exam = _get_exam(exam_id)
    responses.save_answers(
        exam,
        request.data.get('sessionId'),
        request.user,
        request.data.get('answers'),
    )
    return Response({'success': True, 'message': 'Answers saved successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStudent])
def submit_exam_view(request, exam_id):
    """
    POST /api/student/exam/{id}/submit
    Body: { answers, sessionId }. MCQs are auto-marked; SAQ/coding stay pending.
    """
    exam = _get_exam(exam_id)
    response = responses.submit_exam(
        exam,
        request.data.get('sessionId'),
        request.user,
        request.data.get('answers') or {},
    )
    return Response({
        'success': True,
        'score': response.total_score,
        'maxScore': response.max_possible_score,
        'gradingStatus': response.grading_status,
        'message': 'Exam submitted successfully',
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def results_view(request):
    """GET /api/student/results"""
    return Response({'results': responses.list_results(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStudent])
def result_detail_view(request, response_id):
    """GET /api/student/results/{id}"""
    return Response({'result': responses.result_detail(response_id, request.user)})
