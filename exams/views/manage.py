"""
Teacher/admin exam management and direct assignment views.
"""
import logging

from django.db.models import Count, Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsTeacherOrAdmin
from core.models import Department
from exams.models import Exam, StudentExamAssignment
from exams.serializers import (
    AssignExamSerializer,
    ExamCreateSerializer,
    ExamSerializer,
    TeacherQuestionSerializer,
    UnassignExamSerializer,
)
from exams.services.assignments import assign_exams, revoke_assignments

logger = logging.getLogger(__name__)


def _exams_for(user):
    qs = Exam.objects.select_related('department').annotate(
        template_count=Count('questions', filter=Q(questions__user__isnull=True), distinct=True),
        invitation_count=Count('invitations', distinct=True),
        active_assignment_count=Count(
            'assignments',
            filter=Q(assignments__status=StudentExamAssignment.STATUS_ACTIVE),
            distinct=True,
        ),
    )
    if user.role == 'teacher':
        qs = qs.filter(created_by=user)
    return qs


def _with_assigned_count(exams):
    for exam in exams:
        exam.assigned_count = exam.invitation_count + exam.active_assignment_count
    return exams


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def exams_view(request):
    """
    GET /api/exams - teachers see their own exams, admins see all
    POST /api/exams - create exam with inline questions
    """
    if request.method == 'GET':
        exams = _with_assigned_count(list(_exams_for(request.user).order_by('-created_at')))
        return Response(ExamSerializer(exams, many=True).data)

    serializer = ExamCreateSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    exam = serializer.save()
    logger.info('User %s created exam %s', request.user.pk, exam.pk)
    return Response({'success': True, 'exam': ExamSerializer(exam).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def exam_detail_view(request, pk):
    """
    GET/PATCH/DELETE /api/exams/{id}
    """
    exam = _exams_for(request.user).filter(pk=pk).first()
    if exam is None:
        return Response({'error': 'Exam not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    _with_assigned_count([exam])

    if request.method == 'GET':
        questions = exam.questions.filter(user__isnull=True).order_by('question_order', 'id')
        return Response({
            **ExamSerializer(exam).data,
            'questions': TeacherQuestionSerializer(questions, many=True).data,
        })

    if request.method == 'PATCH':
        serializer = ExamSerializer(exam, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    exam.delete()
    logger.info('User %s deleted exam %s', request.user.pk, pk)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def assign_exam_view(request):
    """
    POST /api/students/assign-exam
    Body: { studentEmail, examIds[], departmentId }
    Already-active pairs are reported as skipped.
    """
    serializer = AssignExamSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    department = Department.objects.filter(pk=data['departmentId']).first()
    if department is None:
        return Response({'error': 'Department not found', 'code': 'validation_error'}, status=status.HTTP_400_BAD_REQUEST)

    assigned, skipped = assign_exams(request.user, data['studentEmail'], data['examIds'], department)
    payload = {
        'success': True,
        'assigned': [
            {
                'id': a.pk,
                'examId': a.exam_id,
                'examTitle': a.exam.title,
                'studentEmail': a.student_email,
                'assignedAt': a.assigned_at,
            }
            for a in assigned
        ],
        'skipped': skipped,
    }
    if not assigned:
        payload['message'] = 'All selected exams are already assigned to this student'
        return Response(payload, status=status.HTTP_200_OK)
    payload['message'] = f'Successfully assigned {len(assigned)} exam(s)'
    return Response(payload, status=status.HTTP_201_CREATED)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def unassign_exam_view(request):
    """
    DELETE|POST /api/students/unassign-exam
    Body: { assignmentIds[] }. Assignments are revoked, not deleted.
    """
    serializer = UnassignExamSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    revoked = revoke_assignments(request.user, serializer.validated_data['assignmentIds'])
    return Response({
        'success': True,
        'message': f'Successfully unassigned {len(revoked)} exam(s)',
        'revoked': [
            {'id': a.pk, 'studentEmail': a.student_email, 'examId': a.exam_id}
            for a in revoked
        ],
    })
