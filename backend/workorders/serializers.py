from decimal import Decimal

from rest_framework import serializers
from backend.core.serializers import UserSummarySerializer
from .models import WorkOrder, WorkOrderItem

# Snapshot fields copied from a linked customer when the request leaves them empty
SNAPSHOT_FIELDS = {
    'customer_name': 'name',
    'phone': 'phone',
    'email': 'email',
    'address': 'address',
    'postal_code': 'postal_code',
    'city': 'city',
}


class WorkOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkOrderItem
        fields = ['id', 'name', 'quantity', 'price', 'vat_percentage']
        extra_kwargs = {
            'quantity': {'min_value': 1},
            'price': {'min_value': Decimal('0.00')},
            'vat_percentage': {'min_value': Decimal('0.00'), 'required': False},
        }


class WorkOrderSerializer(serializers.ModelSerializer):
    items = WorkOrderItemSerializer(many=True, read_only=True)
    created_by = UserSummarySerializer(read_only=True)
    task = serializers.SerializerMethodField()

    class Meta:
        model = WorkOrder
        fields = [
            'id', 'customer', 'customer_name', 'phone', 'email', 'address', 'postal_code', 'city',
            'description', 'date', 'notes', 'items', 'subtotal', 'vat_amount', 'total', 'status',
            'task', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_task(self, obj):
        task = getattr(obj, 'task', None)
        return task.id if task else None


class WorkOrderCreateSerializer(serializers.ModelSerializer):
    """Incoming work order; totals are never read from the request"""
    items = WorkOrderItemSerializer(many=True, required=False)

    class Meta:
        model = WorkOrder
        fields = [
            'customer', 'customer_name', 'phone', 'email', 'address', 'postal_code', 'city',
            'description', 'date', 'notes', 'items'
        ]
        extra_kwargs = {
            'customer_name': {'required': False, 'allow_blank': True},
            'phone': {'required': False, 'allow_blank': True},
            'description': {'required': False, 'allow_blank': True},
        }

    def validate(self, attrs):
        customer = attrs.get('customer')
        if customer is not None:
            for field, source in SNAPSHOT_FIELDS.items():
                if not attrs.get(field):
                    attrs[field] = getattr(customer, source)

        missing = {
            field: 'This field is required.'
            for field in ('customer_name', 'phone', 'description')
            if not (attrs.get(field) or '').strip()
        }
        if missing:
            raise serializers.ValidationError(missing)
        return attrs


class WorkOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=WorkOrder.STATUS_CHOICES)
