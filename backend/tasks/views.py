import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.shortcuts import get_object_or_404
from backend.core.exceptions import DomainValidationError, Forbidden
from backend.core.models import User
from backend.core.permissions import IsAdminRole, is_admin_user
from .filters import TaskFilter
from .models import Task
from .serializers import (
    TaskSerializer, TaskCreateSerializer, TaskUpdateSerializer,
    TaskAssignSerializer, TaskCompleteSerializer
)
from . import services

logger = logging.getLogger(__name__)


def get_visible_task(request, pk):
    """Fetch a task the current user may see, 404 when missing, 403 when hidden"""
    task = get_object_or_404(services.task_queryset(), pk=pk)
    if not services.can_view_task(task, request.user):
        raise Forbidden('Access denied')
    return task


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    """List all tasks (admin) or create a task (any user)"""
    if request.method == 'GET':
        if not is_admin_user(request.user):
            return Response({'error': 'Admin role required.'}, status=status.HTTP_403_FORBIDDEN)
        filterset = TaskFilter(request.query_params, queryset=services.task_queryset().all())
        if not filterset.is_valid():
            errors = {field: list(messages) for field, messages in filterset.errors.items()}
            raise DomainValidationError('Invalid filter', details=errors)
        serializer = TaskSerializer(filterset.qs, many=True)
        return Response(serializer.data)

    serializer = TaskCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    task = services.create_task(created_by=request.user, **serializer.validated_data)
    return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_my_tasks(request):
    """Open tasks of the current user plus open general tasks"""
    tasks = services.active_tasks_for(request.user)
    return Response(TaskSerializer(tasks, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_completed(request):
    """Completed tasks; own tasks for users, all for admins"""
    tasks = services.completed_tasks_for(request.user)
    return Response(TaskSerializer(tasks, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def task_by_user(request, user_id):
    """All tasks assigned to one user"""
    user = get_object_or_404(User, pk=user_id)
    tasks = services.task_queryset().filter(user=user)
    return Response(TaskSerializer(tasks, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    """Retrieve, update or delete a task"""
    if request.method == 'DELETE':
        if not is_admin_user(request.user):
            return Response({'error': 'Admin role required.'}, status=status.HTTP_403_FORBIDDEN)
        task = get_object_or_404(Task, pk=pk)
        services.delete_task(task)
        return Response(status=status.HTTP_204_NO_CONTENT)

    task = get_visible_task(request, pk)
    if request.method == 'GET':
        return Response(TaskSerializer(task).data)

    serializer = TaskUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    new_status = data.get('status', task.status)
    if task.status == Task.STATUS_COMPLETED and new_status == Task.STATUS_OPEN:
        raise DomainValidationError('A completed task cannot be reopened', details={'status': new_status})
    completing = task.status == Task.STATUS_OPEN and new_status == Task.STATUS_COMPLETED

    # Feedback is only written together with the completing transition
    if 'feedback' in data and not completing:
        raise DomainValidationError(
            'Feedback can only be given when completing a task',
            details={'feedback': ['Set status to afgerond to submit feedback.']}
        )

    plain_fields = [field for field in TaskUpdateSerializer.PLAIN_FIELDS if field in data]
    if plain_fields and not (is_admin_user(request.user) or task.user_id == request.user.id):
        raise Forbidden('Only the owner or an admin can edit this task')

    with transaction.atomic():
        if plain_fields:
            for field in plain_fields:
                setattr(task, field, data[field])
            task.save(update_fields=plain_fields + ['updated_at'])

        if 'user' in data and data['user'] != task.user:
            services.assign_task(task, data['user'], request.user)

        if completing:
            services.complete_task(task, data.get('feedback', ''), request.user)

    return Response(TaskSerializer(task).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_assign(request, pk):
    """Forward a task to another user, or back to the general pool"""
    task = get_visible_task(request, pk)
    serializer = TaskAssignSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.assign_task(task, serializer.validated_data['user'], request.user)
    return Response(TaskSerializer(task).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_complete(request, pk):
    """Mark an open task as afgerond with feedback"""
    task = get_visible_task(request, pk)
    serializer = TaskCompleteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.complete_task(task, serializer.validated_data['feedback'], request.user)
    return Response(TaskSerializer(task).data)
