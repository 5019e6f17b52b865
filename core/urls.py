"""
URLs for institutions and departments
"""
from django.urls import path
from core.views import organization as views

urlpatterns = [
    path('institutions', views.institutions_view, name='institutions'),
    path('institutions/<int:pk>', views.institution_detail_view, name='institution-detail'),
    path('departments', views.departments_view, name='departments'),
    path('departments/<int:pk>', views.department_detail_view, name='department-detail'),
]
