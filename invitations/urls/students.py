"""
/api/students...: student invitations and direct exam assignment
"""
from django.urls import path
from exams.views import manage as exam_views
from invitations import views

urlpatterns = [
    path('students', views.student_invitations_view, name='student-invitations'),
    path('students/assign-exam', exam_views.assign_exam_view, name='students-assign-exam'),
    path('students/unassign-exam', exam_views.unassign_exam_view, name='students-unassign-exam'),
    path('students/validate-token', views.validate_student_token_view, name='students-validate-token'),
    path('students/accept-invitation', views.accept_student_invitation_view, name='students-accept-invitation'),
    path('students/<int:pk>', views.student_invitation_detail_view, name='student-invitation-detail'),
]
