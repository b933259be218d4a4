"""
Task lifecycle

Tasks start open and end afgerond. Ownership moves with assign_task, completion
goes through complete_task, which also notifies the admin when an employee
finishes a task. Views never change status or owner directly.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from backend.core.exceptions import DomainValidationError, Forbidden
from backend.core.models import User
from backend.core.permissions import is_admin_user
from backend.notifications.models import Notification
from backend.notifications.services import create_notification
from .models import Task

logger = logging.getLogger(__name__)


def task_queryset():
    return Task.objects.select_related('user', 'created_by', 'work_order')


def active_tasks_for(user):
    """Open tasks owned by the user plus open general tasks"""
    return task_queryset().filter(
        Q(user=user) | Q(user__isnull=True)
    ).exclude(status=Task.STATUS_COMPLETED)


def completed_tasks_for(user):
    queryset = task_queryset().filter(status=Task.STATUS_COMPLETED)
    if not is_admin_user(user):
        queryset = queryset.filter(user=user)
    return queryset.order_by('-completed_at', '-id')


def can_view_task(task, user):
    return is_admin_user(user) or task.user_id is None or task.user_id == user.id


def can_act_on_task(task, user):
    """Admin, the current owner, or anyone when the task is general"""
    return can_view_task(task, user)


def get_admin_recipient():
    """
    The admin who receives completion notifications.

    NOTIFICATION_ADMIN_EMAIL wins when it names an active admin; otherwise the
    admin with the lowest id is used.
    """
    admins = User.objects.filter(role=User.ROLE_ADMIN, is_active=True)
    email = getattr(settings, 'NOTIFICATION_ADMIN_EMAIL', '')
    if email:
        configured = admins.filter(email__iexact=email).first()
        if configured:
            return configured
        logger.warning(f"NOTIFICATION_ADMIN_EMAIL {email} is not an active admin, falling back")
    return admins.order_by('id').first()


def create_task(title, created_by, description='', user=None, pdf_name='', pdf_url='', work_order=None):
    task = Task.objects.create(
        title=title,
        description=description,
        user=user,
        pdf_name=pdf_name,
        pdf_url=pdf_url,
        work_order=work_order,
        created_by=created_by,
        status=Task.STATUS_OPEN,
    )
    owner = f"user {user.id}" if user else "general"
    logger.info(f"Task {task.id} created by user {getattr(created_by, 'id', None)} ({owner})")
    return task


def _ensure_open(task):
    if task.status != Task.STATUS_OPEN:
        raise DomainValidationError('Task is already completed', details={'status': task.status})


def assign_task(task, user, actor):
    """Hand the task to another user, or make it general when user is None"""
    _ensure_open(task)
    if not can_act_on_task(task, actor):
        raise Forbidden('Access denied')
    if user is not None and not user.is_active:
        raise DomainValidationError('Cannot assign a task to an inactive user', details={'user': user.id})

    previous = task.user_id
    task.user = user
    task.save(update_fields=['user', 'updated_at'])
    logger.info(f"Task {task.id} reassigned from {previous} to {user.id if user else None} by user {actor.id}")
    return task


def complete_task(task, feedback, actor):
    """
    Close an open task with feedback.

    A non-admin completion notifies the admin recipient exactly once.
    """
    _ensure_open(task)
    if not can_act_on_task(task, actor):
        raise Forbidden('Access denied')
    feedback = (feedback or '').strip()
    if not feedback:
        raise DomainValidationError('Feedback is required', details={'feedback': 'This field may not be blank.'})

    with transaction.atomic():
        task.status = Task.STATUS_COMPLETED
        task.feedback = feedback
        task.completed_at = timezone.now()
        task.save(update_fields=['status', 'feedback', 'completed_at', 'updated_at'])

        if not is_admin_user(actor):
            recipient = get_admin_recipient()
            if recipient is None:
                logger.warning(f"Task {task.id} completed but no admin exists to notify")
            else:
                create_notification(
                    user=recipient,
                    task=task,
                    message=f'Taak "{task.title}" is afgerond door {actor.display_name}',
                )

    logger.info(f"Task {task.id} completed by user {actor.id}")
    return task


def _format_amount(value):
    return f"€{value:.2f}"


def _format_percentage(value):
    return f"{value.normalize():f}"


def render_work_order_description(work_order):
    """Plain text rendering of a work order used as the task description"""
    lines = [
        f"Klant: {work_order.customer_name}",
        f"Telefoon: {work_order.phone}",
    ]
    if work_order.email:
        lines.append(f"E-mail: {work_order.email}")
    if work_order.address:
        place = ' '.join(part for part in [work_order.postal_code, work_order.city] if part)
        lines.append(f"Adres: {work_order.address}, {place}" if place else f"Adres: {work_order.address}")

    lines += ['', f"Werk: {work_order.description}", '', 'Artikelen:']
    for item in work_order.items.all():
        lines.append(
            f"- {item.name}: {item.quantity}x {_format_amount(item.price)} "
            f"({_format_percentage(item.vat_percentage)}% BTW)"
        )

    lines += ['', f"Totaal: {_format_amount(work_order.total)}"]
    if work_order.notes:
        lines += ['', f"Opmerkingen: {work_order.notes}"]
    return '\n'.join(lines)


def create_task_from_work_order(work_order):
    """The single task that tracks a work order, owned by its creator"""
    return create_task(
        title=f"Werkorder: {work_order.customer_name}",
        description=render_work_order_description(work_order),
        user=work_order.created_by,
        created_by=work_order.created_by,
        work_order=work_order,
    )


def delete_task(task):
    """Remove the task together with the notifications that point at it"""
    task_id = task.id
    with transaction.atomic():
        removed, _ = Notification.objects.filter(task=task).delete()
        task.delete()
    logger.info(f"Task {task_id} deleted along with {removed} notifications")
