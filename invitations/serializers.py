"""
Serializers for invitations app
"""
from rest_framework import serializers

from core.models import Department
from exams.models import Exam
from .models import StudentInvitation, TeacherInvitation


class StudentInvitationSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source='student_email', read_only=True)
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    examId = serializers.IntegerField(source='exam_id', read_only=True)
    examTitle = serializers.CharField(source='exam.title', read_only=True, default=None)
    departmentId = serializers.IntegerField(source='department_id', read_only=True)
    department = serializers.CharField(source='department.name', read_only=True, default=None)
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    expiresAt = serializers.DateTimeField(source='expires_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = StudentInvitation
        fields = [
            'id', 'email', 'firstName', 'lastName', 'examId', 'examTitle', 'departmentId',
            'department', 'status', 'studentId', 'expiresAt', 'createdAt',
        ]


class StudentInvitationInputSerializer(serializers.Serializer):
    """Create/update body: { email, firstName, lastName, departmentId, examId, expirationDate? }"""
    email = serializers.EmailField()
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    departmentId = serializers.IntegerField()
    examId = serializers.IntegerField()
    expirationDate = serializers.DateTimeField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        department = Department.objects.filter(pk=attrs['departmentId']).first()
        if department is None:
            raise serializers.ValidationError('Department not found')
        exam = Exam.objects.filter(pk=attrs['examId']).first()
        if exam is None:
            raise serializers.ValidationError('Exam not found')
        attrs['department'] = department
        attrs['exam'] = exam
        return attrs


class TeacherInvitationSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    expiresAt = serializers.DateTimeField(source='expires_at', read_only=True)
    usedAt = serializers.DateTimeField(source='used_at', read_only=True)

    class Meta:
        model = TeacherInvitation
        fields = ['id', 'email', 'firstName', 'lastName', 'institution', 'department', 'status', 'expiresAt', 'usedAt']


class TeacherInvitationInputSerializer(serializers.Serializer):
    email = serializers.EmailField()
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    institution = serializers.CharField(required=False, allow_blank=True, default='')
    department = serializers.CharField(required=False, allow_blank=True, default='')
    expiresAt = serializers.DateTimeField(required=False, allow_null=True, default=None)


class TokenSerializer(serializers.Serializer):
    token = serializers.CharField()


class AcceptInvitationSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)
