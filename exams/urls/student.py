"""
Student URLs (/api/student/...)
"""
from django.urls import path
from exams.views import student as views

urlpatterns = [
    path('assigned-exams', views.assigned_exams_view, name='student-assigned-exams'),
    path('exam/<int:exam_id>', views.student_exam_detail_view, name='student-exam-detail'),
    path('exam/<int:exam_id>/start', views.start_exam_view, name='student-exam-start'),
    path('exam/<int:exam_id>/save', views.save_answers_view, name='student-exam-save'),
    path('exam/<int:exam_id>/submit', views.submit_exam_view, name='student-exam-submit'),
    path('results', views.results_view, name='student-results'),
    path('results/<int:response_id>', views.result_detail_view, name='student-result-detail'),
]
