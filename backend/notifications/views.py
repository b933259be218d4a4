import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.exceptions import Forbidden
from .models import Notification
from .serializers import NotificationSerializer, NotificationUpdateSerializer
from . import services

logger = logging.getLogger(__name__)


def get_own_notification(request, pk):
    """404 when the notification does not exist, 403 when it belongs to someone else"""
    notification = get_object_or_404(Notification.objects.select_related('task'), pk=pk)
    if notification.user_id != request.user.id:
        raise Forbidden('Access denied')
    return notification


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Notifications of the current user, newest first"""
    notifications = Notification.objects.select_related('task').filter(user=request.user)
    if request.query_params.get('unread', '').lower() == 'true':
        notifications = notifications.filter(read=False)
    serializer = NotificationSerializer(notifications, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_unread_count(request):
    return Response({'count': services.unread_count(request.user)})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def notification_detail(request, pk):
    """Retrieve, mark as read or delete a notification"""
    notification = get_own_notification(request, pk)

    if request.method == 'GET':
        return Response(NotificationSerializer(notification).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = NotificationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.mark_read(notification)
        return Response(NotificationSerializer(notification).data)
    else:  # DELETE
        notification.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT', 'POST'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    notification = get_own_notification(request, pk)
    services.mark_read(notification)
    return Response(NotificationSerializer(notification).data)


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    """Mark all unread notifications of the current user as read"""
    updated = services.mark_all_read(request.user)
    logger.info(f"User {request.user.id} marked {updated} notifications as read")
    return Response({'updated': updated})
