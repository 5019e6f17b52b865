"""
Institution and department CRUD. Any signed-in user may read; only admins write.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdmin
from core.models import Department, Institution
from core.serializers import DepartmentSerializer, InstitutionSerializer

logger = logging.getLogger(__name__)


def _require_admin(request, view):
    permission = IsAdmin()
    if not permission.has_permission(request, view):
        return Response(
            {'error': 'Admin access required', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN,
        )
    return None


def _not_found(label):
    return Response({'error': f'{label} not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def institutions_view(request):
    """
    GET /api/institutions - list by name
    POST /api/institutions - create { name, description? } (admin)
    """
    if request.method == 'GET':
        return Response(InstitutionSerializer(Institution.objects.order_by('name'), many=True).data)

    denied = _require_admin(request, institutions_view)
    if denied:
        return denied
    serializer = InstitutionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    institution = serializer.save()
    logger.info('Admin %s created institution %s', request.user.pk, institution.pk)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def institution_detail_view(request, pk):
    """
    GET/PUT/PATCH/DELETE /api/institutions/{id}
    Deleting an institution deletes its departments.
    """
    institution = Institution.objects.filter(pk=pk).first()
    if institution is None:
        return _not_found('Institution')
    if request.method == 'GET':
        return Response(InstitutionSerializer(institution).data)

    denied = _require_admin(request, institution_detail_view)
    if denied:
        return denied
    if request.method == 'DELETE':
        institution.delete()
        logger.info('Admin %s deleted institution %s', request.user.pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = InstitutionSerializer(institution, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def departments_view(request):
    """
    GET /api/departments - optional ?institutionId= filter
    POST /api/departments - create { name, code?, description?, institutionId? } (admin)
    """
    if request.method == 'GET':
        qs = Department.objects.select_related('institution').order_by('name')
        institution_id = request.query_params.get('institutionId')
        if institution_id:
            qs = qs.filter(institution_id=institution_id)
        return Response(DepartmentSerializer(qs, many=True).data)

    denied = _require_admin(request, departments_view)
    if denied:
        return denied
    serializer = DepartmentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    department = serializer.save()
    logger.info('Admin %s created department %s', request.user.pk, department.pk)
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def department_detail_view(request, pk):
    """GET/PUT/PATCH/DELETE /api/departments/{id}"""
    department = Department.objects.select_related('institution').filter(pk=pk).first()
    if department is None:
        return _not_found('Department')
    if request.method == 'GET':
        return Response(DepartmentSerializer(department).data)

    denied = _require_admin(request, department_detail_view)
    if denied:
        return denied
    if request.method == 'DELETE':
        department.delete()
        logger.info('Admin %s deleted department %s', request.user.pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = DepartmentSerializer(department, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)
