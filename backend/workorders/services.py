import logging

from django.db import transaction
from backend.tasks.services import create_task_from_work_order
from .models import WorkOrder, WorkOrderItem

logger = logging.getLogger(__name__)


def create_work_order(data, created_by):
    """
    Create a work order, its items and the task that tracks it in one transaction

    Args:
        data: Validated work order fields, with an optional 'items' list
        created_by: User placing the order; the task is assigned to them

    Returns:
        (work_order, task)
    """
    data = dict(data)
    items = data.pop('items', [])
    with transaction.atomic():
        work_order = WorkOrder.objects.create(created_by=created_by, **data)
        WorkOrderItem.objects.bulk_create(
            [WorkOrderItem(work_order=work_order, **item) for item in items]
        )
        work_order.recalculate_totals()
        work_order.save(update_fields=['subtotal', 'vat_amount', 'total', 'updated_at'])
        task = create_task_from_work_order(work_order)

    logger.info(f"Work order {work_order.id} created by user {created_by.id} with task {task.id}")
    return work_order, task


def update_status(work_order, new_status):
    previous = work_order.status
    work_order.status = new_status
    work_order.save(update_fields=['status', 'updated_at'])
    logger.info(f"Work order {work_order.id} status changed from {previous} to {new_status}")
    return work_order
