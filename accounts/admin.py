"""
Admin configuration for accounts app
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserCreationForm, ReadOnlyPasswordHashField
from django import forms
from .models import User, UserProfile


class UserAdminForm(forms.ModelForm):
    """
    Change form with proper password handling.
    Password is read-only (hash display only); use the "Change password" link.
    """
    password = ReadOnlyPasswordHashField(
        label='Password',
        help_text='Raw passwords are not stored. Use the "Change password" link to set a new one.',
    )

    class Meta:
        model = User
        fields = '__all__'


class UserAddForm(UserCreationForm):

    class Meta(UserCreationForm.Meta):
        model = User
        fields = ('email', 'role', 'account_status')


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    fk_name = 'user'
    can_delete = False
    extra = 0


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom User Admin"""
    form = UserAdminForm
    add_form = UserAddForm
    inlines = [UserProfileInline]
    list_display = ['email', 'role', 'account_status', 'is_staff', 'date_joined']
    list_filter = ['role', 'account_status', 'is_staff', 'is_superuser', 'date_joined']
    search_fields = ['email', 'profile__first_name', 'profile__last_name']
    ordering = ['-date_joined']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Role', {'fields': ('role', 'account_status')}),
        ('Permissions', {'fields': ('is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'role', 'account_status', 'password1', 'password2', 'is_staff'),
        }),
    )

    readonly_fields = ['date_joined', 'updated_at', 'last_login']


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'institution', 'department', 'profile_completed']
    list_filter = ['profile_completed', 'institution']
    search_fields = ['email', 'first_name', 'last_name']
    raw_id_fields = ['user', 'created_by']
