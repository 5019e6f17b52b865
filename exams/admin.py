"""
Admin configuration for exams app
"""
from django.contrib import admin
from .models import Exam, ExamQuestion, StudentExamAssignment, ExamSession, StudentResponse


class ExamQuestionInline(admin.TabularInline):
    model = ExamQuestion
    fk_name = 'exam'
    extra = 0
    fields = ['question_order', 'type', 'question_text', 'marks', 'user']
    raw_id_fields = ['user']


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ['title', 'unique_code', 'department', 'status', 'start_time', 'end_time', 'duration', 'created_by']
    list_filter = ['status', 'department']
    search_fields = ['title', 'unique_code']
    readonly_fields = ['unique_code', 'created_at', 'updated_at']
    inlines = [ExamQuestionInline]


@admin.register(StudentExamAssignment)
class StudentExamAssignmentAdmin(admin.ModelAdmin):
    list_display = ['exam', 'student_email', 'student', 'status', 'assigned_by', 'assigned_at']
    list_filter = ['status']
    search_fields = ['student_email', 'exam__title']
    raw_id_fields = ['student', 'assigned_by']


@admin.register(ExamSession)
class ExamSessionAdmin(admin.ModelAdmin):
    list_display = ['exam', 'user', 'status', 'start_time', 'end_time', 'total_score']
    list_filter = ['status']
    search_fields = ['user__email', 'exam__title']
    raw_id_fields = ['user']


@admin.register(StudentResponse)
class StudentResponseAdmin(admin.ModelAdmin):
    list_display = ['exam', 'student_email', 'total_score', 'max_possible_score', 'grading_status', 'submitted_at']
    list_filter = ['grading_status']
    search_fields = ['student_email', 'exam__title']
    raw_id_fields = ['student', 'exam_session']
    readonly_fields = ['updated_at']
