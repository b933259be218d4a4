from django.contrib import admin
from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'status', 'created_by', 'created_at', 'completed_at']
    list_filter = ['status', 'created_at']
    search_fields = ['title', 'description', 'user__email', 'user__name']
    readonly_fields = ['completed_at', 'created_at', 'updated_at']
    raw_id_fields = ['user', 'created_by', 'work_order']
