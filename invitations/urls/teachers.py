"""
Teacher invitation URLs
"""
from django.urls import path
from invitations import views

urlpatterns = [
    path('teachers', views.teacher_invitations_view, name='teacher-invitations'),
    path('teacher-invitation', views.accept_teacher_invitation_view, name='teacher-invitation-accept'),
    path('teacher-invitation/validate', views.validate_teacher_token_view, name='teacher-invitation-validate'),
]
