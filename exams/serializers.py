"""
Serializers for exams app
"""
from django.db import transaction
from rest_framework import serializers

from core.models import Department
from .models import Exam, ExamQuestion, ExamSession


class StudentQuestionSerializer(serializers.ModelSerializer):
    """Question as shown to a student: no correct option, guidelines or test cases."""
    questionText = serializers.CharField(source='question_text')
    questionOrder = serializers.IntegerField(source='question_order')
    starterCode = serializers.CharField(source='starter_code')

    class Meta:
        model = ExamQuestion
        fields = ['id', 'type', 'questionText', 'options', 'marks', 'questionOrder', 'starterCode', 'language']
        read_only_fields = fields


class TeacherQuestionSerializer(serializers.ModelSerializer):
    questionText = serializers.CharField(source='question_text')
    questionOrder = serializers.IntegerField(source='question_order')
    correctAnswer = serializers.IntegerField(source='correct_option', allow_null=True)
    gradingGuidelines = serializers.CharField(source='grading_guidelines')
    starterCode = serializers.CharField(source='starter_code')
    testCases = serializers.JSONField(source='test_cases')

    class Meta:
        model = ExamQuestion
        fields = [
            'id', 'type', 'questionText', 'options', 'correctAnswer', 'gradingGuidelines',
            'starterCode', 'language', 'testCases', 'marks', 'questionOrder',
        ]
        read_only_fields = fields


class ExamSessionSerializer(serializers.ModelSerializer):
    examId = serializers.IntegerField(source='exam_id', read_only=True)
    userId = serializers.IntegerField(source='user_id', read_only=True)
    startTime = serializers.DateTimeField(source='start_time', read_only=True)
    endTime = serializers.DateTimeField(source='end_time', read_only=True)
    totalScore = serializers.IntegerField(source='total_score', read_only=True)
    violationsCount = serializers.IntegerField(source='violations_count', read_only=True)

    class Meta:
        model = ExamSession
        fields = ['id', 'examId', 'userId', 'status', 'startTime', 'endTime', 'totalScore', 'violationsCount']


class ExamSerializer(serializers.ModelSerializer):
    """Exam list/detail for teachers and admins"""
    departmentId = serializers.IntegerField(source='department_id', read_only=True)
    department = serializers.CharField(source='department.name', read_only=True, default=None)
    startTime = serializers.DateTimeField(source='start_time', read_only=True)
    endTime = serializers.DateTimeField(source='end_time', read_only=True)
    uniqueCode = serializers.CharField(source='unique_code', read_only=True)
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    maxAttempts = serializers.IntegerField(source='max_attempts', read_only=True)
    requireWebcam = serializers.BooleanField(source='require_webcam', read_only=True)
    maxViolations = serializers.IntegerField(source='max_violations', read_only=True)
    totalQuestions = serializers.SerializerMethodField()
    assignedStudents = serializers.SerializerMethodField()

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'departmentId', 'department', 'startTime', 'endTime',
            'duration', 'uniqueCode', 'status', 'maxAttempts', 'requireWebcam', 'maxViolations',
            'createdBy', 'createdAt', 'totalQuestions', 'assignedStudents',
        ]

    def get_totalQuestions(self, obj):
        count = getattr(obj, 'template_count', None)
        if count is None:
            count = obj.questions.filter(user__isnull=True).count()
        return count

    def get_assignedStudents(self, obj):
        count = getattr(obj, 'assigned_count', None)
        if count is None:
            count = obj.invitations.count() + obj.assignments.filter(status='active').count()
        return count


class QuestionInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ExamQuestion.TYPE_CHOICES)
    question = serializers.CharField()
    options = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    correctAnswer = serializers.IntegerField(required=False, allow_null=True, default=None)
    gradingGuidelines = serializers.CharField(required=False, allow_blank=True, default='')
    codeTemplate = serializers.CharField(required=False, allow_blank=True, default='')
    programmingLanguage = serializers.CharField(required=False, allow_blank=True, default='')
    testCases = serializers.ListField(required=False, default=list)
    points = serializers.IntegerField(min_value=0, required=False, default=1)
    order = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs['type'] == ExamQuestion.TYPE_MCQ:
            options = attrs.get('options') or []
            if len(options) < 2:
                raise serializers.ValidationError('MCQ questions need at least two options')
            correct = attrs.get('correctAnswer')
            if correct is None or not 0 <= correct < len(options):
                raise serializers.ValidationError('MCQ correctAnswer must index one of the options')
        return attrs


class ExamCreateSerializer(serializers.Serializer):
    """Create an exam together with its template questions"""
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    departmentId = serializers.IntegerField(required=False, allow_null=True, default=None)
    startDate = serializers.DateTimeField(required=False, allow_null=True, default=None)
    endDate = serializers.DateTimeField(required=False, allow_null=True, default=None)
    duration = serializers.IntegerField(min_value=1, required=False, default=60)
    status = serializers.ChoiceField(choices=Exam.STATUS_CHOICES, required=False, default=Exam.STATUS_DRAFT)
    requireWebcam = serializers.BooleanField(required=False, default=False)
    maxViolations = serializers.IntegerField(min_value=0, required=False, default=3)
    questions = QuestionInputSerializer(many=True, required=False, default=list)

    def validate_departmentId(self, value):
        if value is not None and not Department.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Department not found')
        return value

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and end <= start:
            raise serializers.ValidationError('endDate must be after startDate')
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        user = self.context['request'].user
        department_id = validated_data['departmentId']
        if department_id is None:
            profile = getattr(user, 'profile', None)
            department_id = profile.department_id if profile else None

        exam = Exam.objects.create(
            title=validated_data['name'],
            description=validated_data['description'],
            department_id=department_id,
            start_time=validated_data['startDate'],
            end_time=validated_data['endDate'],
            duration=validated_data['duration'],
            status=validated_data['status'],
            require_webcam=validated_data['requireWebcam'],
            max_violations=validated_data['maxViolations'],
            created_by=user,
        )
        ExamQuestion.objects.bulk_create([
            ExamQuestion(
                exam=exam,
                type=q['type'],
                question_text=q['question'],
                options=q['options'] if q['type'] == ExamQuestion.TYPE_MCQ else [],
                correct_option=q['correctAnswer'] if q['type'] == ExamQuestion.TYPE_MCQ else None,
                grading_guidelines=q['gradingGuidelines'],
                starter_code=q['codeTemplate'],
                language=q['programmingLanguage'],
                test_cases=q['testCases'],
                marks=q['points'],
                question_order=q['order'] if q['order'] is not None else index,
            )
            for index, q in enumerate(validated_data['questions'], start=1)
        ])
        return exam


class AssignExamSerializer(serializers.Serializer):
    studentEmail = serializers.EmailField()
    examIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    departmentId = serializers.IntegerField()


class UnassignExamSerializer(serializers.Serializer):
    assignmentIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class GradingUpdateSerializer(serializers.Serializer):
    questionId = serializers.CharField()
    marksObtained = serializers.IntegerField(min_value=0, allow_null=True)
    feedback = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class GradeSubmissionSerializer(serializers.Serializer):
    updates = GradingUpdateSerializer(many=True, allow_empty=False)
