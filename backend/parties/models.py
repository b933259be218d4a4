from django.db import models
from backend.catalog.models import Product


class Customer(models.Model):
    """Customers and the products installed at their premises"""
    name = models.CharField(max_length=200, db_index=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)  # free text, one note per line
    products = models.ManyToManyField(Product, through='CustomerProduct', related_name='customers', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']


class CustomerProduct(models.Model):
    """Join row between a customer and a product"""
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='customer_products')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='customer_products')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.customer.name} - {self.product.name}"

    class Meta:
        db_table = 'customer_products'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['customer', 'product'], name='uniq_customer_product'),
        ]
