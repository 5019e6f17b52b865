"""
Serializers for accounts app
"""
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from django.contrib.auth import get_user_model

from .models import UserProfile

User = get_user_model()


class UserProfileSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    institutionId = serializers.IntegerField(source='institution_id', read_only=True)
    departmentId = serializers.IntegerField(source='department_id', read_only=True)
    institution = serializers.CharField(source='institution.name', read_only=True, default=None)
    department = serializers.CharField(source='department.name', read_only=True, default=None)
    profileCompleted = serializers.BooleanField(source='profile_completed', read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            'firstName', 'lastName', 'institutionId', 'institution',
            'departmentId', 'department', 'profileCompleted',
        ]


class UserSerializer(serializers.ModelSerializer):
    """User serializer for API responses"""
    fullName = serializers.CharField(source='full_name', read_only=True)
    accountStatus = serializers.CharField(source='account_status', read_only=True)
    profile = UserProfileSerializer(read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'email', 'fullName', 'role', 'accountStatus', 'profile']
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """Login serializer"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate(self, attrs):
        email = User.objects.normalize_email(attrs.get('email'))
        password = attrs.get('password')

        try:
            user = User.objects.get(email__iexact=email)
        except User.DoesNotExist:
            raise AuthenticationFailed('Invalid email or password.')

        if not user.check_password(password):
            raise AuthenticationFailed('Invalid email or password.')

        if user.account_status != User.STATUS_ACTIVE:
            raise AuthenticationFailed('User account is disabled.', code='user_inactive')

        attrs['user'] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=8)
