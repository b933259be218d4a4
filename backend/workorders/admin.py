from django.contrib import admin
from .models import WorkOrder, WorkOrderItem


class WorkOrderItemInline(admin.TabularInline):
    model = WorkOrderItem
    extra = 0


@admin.register(WorkOrder)
class WorkOrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer_name', 'date', 'status', 'total', 'created_by', 'created_at']
    list_filter = ['status', 'date']
    search_fields = ['customer_name', 'phone', 'email', 'city']
    readonly_fields = ['subtotal', 'vat_amount', 'total', 'created_at', 'updated_at']
    raw_id_fields = ['customer', 'created_by']
    inlines = [WorkOrderItemInline]
