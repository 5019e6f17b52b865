from django.contrib import admin
from .models import StudentInvitation, TeacherInvitation


@admin.register(StudentInvitation)
class StudentInvitationAdmin(admin.ModelAdmin):
    list_display = ['student_email', 'exam', 'department', 'status', 'expires_at', 'teacher', 'created_at']
    list_filter = ['status', 'department']
    search_fields = ['student_email', 'first_name', 'last_name', 'invitation_token']
    raw_id_fields = ['teacher', 'student']
    readonly_fields = ['invitation_token', 'created_at', 'updated_at']


@admin.register(TeacherInvitation)
class TeacherInvitationAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'status', 'expires_at', 'used_at', 'admin']
    list_filter = ['status']
    search_fields = ['email', 'first_name', 'last_name']
    readonly_fields = ['token', 'created_at', 'used_at']
