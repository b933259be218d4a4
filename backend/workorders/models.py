from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP
from backend.core.models import User
from backend.parties.models import Customer

CENT = Decimal('0.01')


def calculate_totals(items):
    """
    Totals for a list of line items.

    Each item exposes quantity, price and vat_percentage, either as attributes
    or as dict keys. Subtotal and VAT are summed first and rounded to cents once.
    """
    subtotal = Decimal('0')
    vat_amount = Decimal('0')
    for item in items:
        if isinstance(item, dict):
            quantity, price, vat = item['quantity'], item['price'], item.get('vat_percentage', 0)
        else:
            quantity, price, vat = item.quantity, item.price, item.vat_percentage
        line = Decimal(quantity) * Decimal(str(price))
        subtotal += line
        vat_amount += line * Decimal(str(vat)) / Decimal('100')

    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)
    vat_amount = vat_amount.quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        'subtotal': subtotal,
        'vat_amount': vat_amount,
        'total': subtotal + vat_amount,
    }


class WorkOrder(models.Model):
    """Billable job with a snapshot of the customer's contact details"""
    STATUS_OPEN = 'open'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='work_orders')
    # Snapshot at creation time; later customer edits do not change the order
    customer_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    city = models.CharField(max_length=100, blank=True)
    description = models.TextField()
    date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    vat_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='work_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Werkorder {self.id} - {self.customer_name}"

    def recalculate_totals(self):
        """Recompute subtotal, VAT and total from the saved items"""
        totals = calculate_totals(self.items.all())
        self.subtotal = totals['subtotal']
        self.vat_amount = totals['vat_amount']
        self.total = totals['total']
        return totals

    class Meta:
        db_table = 'work_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_by', '-created_at'], name='idx_workorder_creator'),
        ]


class WorkOrderItem(models.Model):
    """Work order line items"""
    work_order = models.ForeignKey(WorkOrder, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    vat_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('21.00'),
                                         validators=[MinValueValidator(Decimal('0.00'))])

    def get_line_total(self):
        """Calculate line total excluding VAT"""
        return self.quantity * self.price

    def __str__(self):
        return f"{self.name} x{self.quantity}"

    class Meta:
        db_table = 'work_order_items'
        ordering = ['id']
