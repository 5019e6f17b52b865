"""
URLs for accounts app
"""
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

app_name = 'accounts'

urlpatterns = [
    path('login', views.login_view, name='login'),
    path('refresh', TokenRefreshView.as_view(), name='refresh'),
    path('me', views.me_view, name='me'),
    path('change-password', views.change_password_view, name='change-password'),
]
