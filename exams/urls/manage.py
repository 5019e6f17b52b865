"""
Exam management and grading URLs (/api/exams..., /api/teacher/grading...)
"""
from django.urls import path
from exams.views import grading
from exams.views import manage as views

urlpatterns = [
    path('exams', views.exams_view, name='exams'),
    path('exams/<int:pk>', views.exam_detail_view, name='exam-detail'),
    path('teacher/grading', grading.submissions_view, name='grading-submissions'),
    path('teacher/grading/<int:session_id>', grading.submission_detail_view, name='grading-submission-detail'),
]
