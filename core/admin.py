"""
Admin configuration for core app
"""
from django.contrib import admin
from .models import Institution, Department


@admin.register(Institution)
class InstitutionAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'institution', 'created_at']
    list_filter = ['institution']
    search_fields = ['name', 'code']
    readonly_fields = ['created_at', 'updated_at']
