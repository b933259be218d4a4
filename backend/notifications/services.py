"""Notification creation and read-state helpers"""
import logging

from .models import Notification

logger = logging.getLogger(__name__)


def create_notification(user, message, task=None):
    """
    Create a notification for a single recipient

    Args:
        user: Recipient of the notification
        message: Text shown to the recipient
        task: Task the notification refers to
    """
    notification = Notification.objects.create(user=user, task=task, message=message)
    logger.info(f"Notification {notification.id} created for user {user.id}")
    return notification


def unread_count(user):
    return Notification.objects.filter(user=user, read=False).count()


def mark_read(notification):
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return notification


def mark_all_read(user):
    """Mark every unread notification of the user as read, returns the number updated"""
    return Notification.objects.filter(user=user, read=False).update(read=True)
