from django.db import models
from backend.core.models import User
from backend.workorders.models import WorkOrder


class Task(models.Model):
    """
    Unit of work for an employee.

    A task without a user is a "general" task, visible to every authenticated
    user until someone claims or completes it.
    """
    STATUS_OPEN = 'open'
    STATUS_COMPLETED = 'afgerond'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_COMPLETED, 'Afgerond'),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    feedback = models.TextField(blank=True)
    pdf_name = models.CharField(max_length=255, blank=True)
    pdf_url = models.URLField(max_length=500, blank=True)
    work_order = models.OneToOneField(WorkOrder, on_delete=models.SET_NULL, null=True, blank=True, related_name='task')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_tasks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    @property
    def is_general(self):
        return self.user_id is None

    @property
    def is_completed(self):
        return self.status == self.STATUS_COMPLETED

    class Meta:
        db_table = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='idx_task_user_status'),
        ]
