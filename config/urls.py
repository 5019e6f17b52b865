"""
URL configuration for the exam portal backend
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)


@require_http_methods(["GET"])
def health_view(request):
    """Minimal health check for connectivity verification. No auth required."""
    return JsonResponse({'status': 'ok', 'service': 'exam-portal'})


@require_http_methods(["GET"])
def api_root(request):
    """Root endpoint - API information"""
    return JsonResponse({
        'name': 'Exam Portal API',
        'version': '1.0.0',
        'endpoints': {
            'health': '/api/health',
            'auth': '/api/auth/',
            'student': '/api/student/',
            'students': '/api/students',
            'exams': '/api/exams',
            'grading': '/api/teacher/grading',
            'docs': '/api/docs/',
            'schema': '/api/schema/',
        }
    })


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api_root, name='api-root'),
    path('api/health', health_view, name='api-health'),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # API endpoints (no trailing slashes)
    path('api/auth/', include('accounts.urls')),
    path('api/student/', include('exams.urls.student')),
    path('api/', include('invitations.urls.students')),
    path('api/', include('invitations.urls.teachers')),
    path('api/', include('exams.urls.manage')),
    path('api/', include('core.urls')),
]
