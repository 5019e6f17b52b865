"""
Invitation views: student invitation CRUD, teacher invitations, and the
anonymous validate/accept endpoints used by the signup pages.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdmin, IsTeacherOrAdmin
from . import services
from .models import StudentInvitation, TeacherInvitation
from .serializers import (
    AcceptInvitationSerializer,
    StudentInvitationInputSerializer,
    StudentInvitationSerializer,
    TeacherInvitationInputSerializer,
    TeacherInvitationSerializer,
    TokenSerializer,
)

logger = logging.getLogger(__name__)


def _ids_from(request):
    ids = request.data.get('ids')
    if ids is None and request.data.get('id') is not None:
        ids = [request.data.get('id')]
    if not isinstance(ids, list) or not ids:
        return None
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        return None


@api_view(['GET', 'POST', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def student_invitations_view(request):
    """
    GET /api/students - list invitations, newest first
    POST /api/students - invite { email, firstName, lastName, departmentId, examId, expirationDate? }
    PUT /api/students - update { id, ...same fields }
    DELETE /api/students - { ids: [...] }
    """
    if request.method == 'GET':
        invitations = StudentInvitation.objects.select_related('exam', 'department').order_by('-created_at')
        return Response(StudentInvitationSerializer(invitations, many=True).data)

    if request.method == 'DELETE':
        ids = _ids_from(request)
        if ids is None:
            return Response({'error': 'No invitation IDs provided', 'code': 'validation_error'}, status=status.HTTP_400_BAD_REQUEST)
        services.delete_student_invitations(ids)
        return Response({'success': True})

    serializer = StudentInvitationInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    if request.method == 'PUT':
        invitation = StudentInvitation.objects.filter(pk=request.data.get('id')).first() if request.data.get('id') else None
        if invitation is None:
            return Response({'error': 'Invitation not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
        services.update_student_invitation(
            invitation, data['email'], data['firstName'], data['lastName'],
            data['department'], data['exam'], data['expirationDate'],
        )
        return Response({'success': True, 'message': 'Invitation updated successfully'})

    invitation = services.create_student_invitation(
        request.user, data['email'], data['firstName'], data['lastName'],
        data['department'], data['exam'], data['expirationDate'],
    )
    return Response(
        {'success': True, 'invitation': StudentInvitationSerializer(invitation).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsTeacherOrAdmin])
def student_invitation_detail_view(request, pk):
    """DELETE /api/students/{id}"""
    if not services.delete_student_invitations([pk]):
        return Response({'error': 'Invitation not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({'success': True})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def validate_student_token_view(request):
    """
    POST /api/students/validate-token
    Body: { token }. 404 unknown token, 400 expired or already accepted.
    """
    serializer = TokenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    invitation = services.get_valid_student_invitation(serializer.validated_data['token'])
    return Response({'success': True, 'invitation': services.describe_student_invitation(invitation)})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def accept_student_invitation_view(request):
    """
    POST /api/students/accept-invitation
    Body: { token, password }. Creates the student account.
    """
    serializer = AcceptInvitationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    invitation, _ = services.accept_student_invitation(
        serializer.validated_data['token'],
        serializer.validated_data['password'],
    )
    return Response({
        'success': True,
        'examId': invitation.exam_id,
        'message': 'Account created successfully',
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def teacher_invitations_view(request):
    """
    GET /api/teachers - teacher invitations
    POST /api/teachers - invite { email, firstName, lastName, institution?, department?, expiresAt? }
    """
    if request.method == 'GET':
        invitations = TeacherInvitation.objects.order_by('-created_at')
        return Response(TeacherInvitationSerializer(invitations, many=True).data)

    serializer = TeacherInvitationInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    invitation = services.create_teacher_invitation(
        request.user, data['email'], data['firstName'], data['lastName'],
        data['institution'], data['department'], data['expiresAt'],
    )
    return Response({
        'success': True,
        'invitation': TeacherInvitationSerializer(invitation).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def validate_teacher_token_view(request):
    """POST /api/teacher-invitation/validate"""
    serializer = TokenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    invitation = services.get_valid_teacher_invitation(serializer.validated_data['token'])
    return Response({'valid': True, 'invitation': services.describe_teacher_invitation(invitation)})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def accept_teacher_invitation_view(request):
    """
    POST /api/teacher-invitation
    Body: { token, password }. Creates (or reactivates) the teacher account.
    """
    user, reactivated = services.accept_teacher_invitation(
        request.data.get('token'),
        request.data.get('password'),
    )
    message = 'Teacher account reactivated successfully' if reactivated else 'Teacher account created successfully'
    return Response({'message': message, 'user': {'id': user.pk, 'email': user.email}})
