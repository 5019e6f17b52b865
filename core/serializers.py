"""
Serializers for core app
"""
from rest_framework import serializers
from .models import Institution, Department


class InstitutionSerializer(serializers.ModelSerializer):
    description = serializers.CharField(required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Institution
        fields = ['id', 'name', 'description', 'createdAt']

    def create(self, validated_data):
        # Description defaults to the name
        if not validated_data.get('description'):
            validated_data['description'] = validated_data['name']
        return super().create(validated_data)


class DepartmentSerializer(serializers.ModelSerializer):
    institutionId = serializers.PrimaryKeyRelatedField(
        source='institution',
        queryset=Institution.objects.all(),
        required=False,
        allow_null=True,
    )
    institutionName = serializers.CharField(source='institution.name', read_only=True, default=None)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Department
        fields = ['id', 'name', 'code', 'description', 'institutionId', 'institutionName', 'createdAt']
        extra_kwargs = {
            'code': {'required': False, 'allow_null': True, 'allow_blank': True},
            'description': {'required': False, 'allow_null': True, 'allow_blank': True},
        }
