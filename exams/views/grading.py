"""
Teacher/admin grading views (/api/teacher/grading...).
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsTeacherOrAdmin
from exams.serializers import GradeSubmissionSerializer
from exams.services import grading


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def submissions_view(request):
    """GET /api/teacher/grading - submitted responses the user may grade, newest first"""
    return Response({
        'submissions': grading.list_submissions(request.user),
        'message': 'Submissions fetched successfully',
    })


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def submission_detail_view(request, session_id):
    """
    GET /api/teacher/grading/{sessionId} - per-question breakdown
    PATCH /api/teacher/grading/{sessionId}
    Body: { updates: [{ questionId, marksObtained, feedback? }] }
    """
    if request.method == 'GET':
        return Response({'submission': grading.submission_detail(session_id, request.user)})

    serializer = GradeSubmissionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    response = grading.grade_submission(session_id, request.user, serializer.validated_data['updates'])
    return Response({
        'message': 'Grades updated successfully',
        'total_score': response.total_score,
        'grading_status': response.grading_status,
    })
