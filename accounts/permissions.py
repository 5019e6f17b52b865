"""
Custom permissions for role-based access.
Role is always read from the authenticated user, never from the request body.
"""
from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    """Permission check for admin role"""

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'admin'
        )


class IsTeacher(permissions.BasePermission):
    """Permission check for teacher role"""

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'teacher'
        )


class IsStudent(permissions.BasePermission):
    """Permission check for student role"""
    message = 'Only students can access this resource.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role == 'student'
        )


class IsTeacherOrAdmin(permissions.BasePermission):
    """Staff-side endpoints: exam management, invitations, assignments"""
    message = 'Only teachers and admins can perform this action.'

    def has_permission(self, request, view):
        return (
            request.user and
            request.user.is_authenticated and
            request.user.role in ('teacher', 'admin')
        )
