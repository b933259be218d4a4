from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')


def price_including_btw(selling_price, btw_percentage):
    """Selling price with Dutch VAT applied, rounded to cents"""
    selling_price = Decimal(str(selling_price or 0))
    btw = Decimal(str(btw_percentage or 0))
    return (selling_price * (1 + btw / Decimal('100'))).quantize(CENT, rounding=ROUND_HALF_UP)


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=200, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """
    Product master.

    price_incl_btw and is_low_stock are derived from the price and stock fields
    and recomputed on every save; they are never written directly.
    """
    article_number = models.CharField(max_length=100, unique=True, db_index=True)
    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    purchase_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    selling_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    btw_percentage = models.PositiveSmallIntegerField(default=21)
    price_incl_btw = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), editable=False)
    image = models.URLField(blank=True)
    stock = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    min_stock = models.IntegerField(default=5, validators=[MinValueValidator(0)])
    is_low_stock = models.BooleanField(default=False, editable=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.article_number})"

    def refresh_derived_fields(self):
        self.price_incl_btw = price_including_btw(self.selling_price, self.btw_percentage)
        self.is_low_stock = self.stock <= self.min_stock

    def save(self, *args, **kwargs):
        self.refresh_derived_fields()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            # Derived fields always travel with a partial save
            kwargs['update_fields'] = set(update_fields) | {'price_incl_btw', 'is_low_stock', 'updated_at'}
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
