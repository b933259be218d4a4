from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    task_title = serializers.CharField(source='task.title', read_only=True, default=None)

    class Meta:
        model = Notification
        fields = ['id', 'user', 'task', 'task_title', 'message', 'read', 'created_at']
        read_only_fields = ['id', 'user', 'task', 'task_title', 'message', 'created_at']


class NotificationUpdateSerializer(serializers.Serializer):
    """Body of a notification update; only marking as read is allowed"""
    read = serializers.BooleanField(required=False, default=True)

    def validate_read(self, value):
        if not value:
            raise serializers.ValidationError('Notifications cannot be marked unread')
        return value
