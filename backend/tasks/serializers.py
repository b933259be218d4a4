from rest_framework import serializers
from backend.core.models import User
from backend.core.serializers import UserSummarySerializer
from .models import Task


class AssigneeField(serializers.PrimaryKeyRelatedField):
    """User id of the new owner; null or 0 makes the task general"""

    def __init__(self, **kwargs):
        kwargs.setdefault('queryset', User.objects.all())
        kwargs.setdefault('allow_null', True)
        kwargs.setdefault('required', False)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if data in (0, '0'):
            return None
        return super().to_internal_value(data)


class TaskSerializer(serializers.ModelSerializer):
    user = serializers.PrimaryKeyRelatedField(read_only=True)
    user_detail = UserSummarySerializer(source='user', read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    is_general = serializers.BooleanField(read_only=True)

    class Meta:
        model = Task
        fields = [
            'id', 'title', 'description', 'user', 'user_detail', 'is_general', 'status', 'feedback',
            'pdf_name', 'pdf_url', 'work_order', 'completed_at', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class TaskCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255, error_messages={'blank': 'Title is required', 'required': 'Title is required'})
    description = serializers.CharField(required=False, allow_blank=True, default='')
    user = AssigneeField()
    pdf_name = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
    pdf_url = serializers.URLField(required=False, allow_blank=True, max_length=500, default='')

    def validate_user(self, value):
        if value is not None and not value.is_active:
            raise serializers.ValidationError('Cannot assign a task to an inactive user')
        return value


class TaskUpdateSerializer(serializers.Serializer):
    """
    Partial task update.

    Plain fields are written directly; user and status changes are routed
    through the lifecycle functions by the view.
    """
    title = serializers.CharField(required=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    pdf_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    pdf_url = serializers.URLField(required=False, allow_blank=True, max_length=500)
    user = AssigneeField()
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES, required=False)
    feedback = serializers.CharField(required=False, allow_blank=True)

    PLAIN_FIELDS = ('title', 'description', 'pdf_name', 'pdf_url')


class TaskAssignSerializer(serializers.Serializer):
    user = AssigneeField(required=True)


class TaskCompleteSerializer(serializers.Serializer):
    feedback = serializers.CharField(required=False, allow_blank=True, default='')
