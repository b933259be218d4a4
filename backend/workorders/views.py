import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backend.core.exceptions import Forbidden
from backend.core.permissions import IsAdminRole, is_admin_user
from backend.tasks.serializers import TaskSerializer
from .models import WorkOrder
from .serializers import WorkOrderSerializer, WorkOrderCreateSerializer, WorkOrderStatusSerializer
from . import services

logger = logging.getLogger(__name__)


def work_order_queryset():
    return WorkOrder.objects.select_related('created_by', 'task').prefetch_related('items')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def work_order_list_create(request):
    """List all work orders (admin) or create one together with its task (any user)"""
    if request.method == 'GET':
        if not is_admin_user(request.user):
            return Response({'error': 'Admin role required.'}, status=status.HTTP_403_FORBIDDEN)
        serializer = WorkOrderSerializer(work_order_queryset().all(), many=True)
        return Response(serializer.data)

    serializer = WorkOrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    work_order, task = services.create_work_order(serializer.validated_data, request.user)
    work_order = work_order_queryset().get(pk=work_order.pk)
    return Response({
        'work_order': WorkOrderSerializer(work_order).data,
        'task': TaskSerializer(task).data,
        'message': 'Werkorder succesvol aangemaakt en toegevoegd aan taken',
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def work_order_detail(request, pk):
    """Retrieve a work order (admin or the user who created it)"""
    work_order = get_object_or_404(work_order_queryset(), pk=pk)
    if not (is_admin_user(request.user) or work_order.created_by_id == request.user.id):
        raise Forbidden('Access denied')
    return Response(WorkOrderSerializer(work_order).data)


@api_view(['PATCH', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def work_order_update_status(request, pk):
    work_order = get_object_or_404(WorkOrder, pk=pk)
    serializer = WorkOrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    services.update_status(work_order, serializer.validated_data['status'])
    return Response(WorkOrderSerializer(work_order).data)
