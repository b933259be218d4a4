"""
Cache invalidation signals
Automatically invalidate cached lists when catalog data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from backend.catalog.models import Category, Product
from .cache_utils import invalidate_prefix, CATEGORIES_PREFIX, LOW_STOCK_PREFIX

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Category)
def invalidate_categories_cache(sender, instance, **kwargs):
    invalidate_prefix(CATEGORIES_PREFIX)
    # Category names are embedded in the low-stock payload
    invalidate_prefix(LOW_STOCK_PREFIX)


@receiver([post_save, post_delete], sender=Product)
def invalidate_low_stock_cache(sender, instance, **kwargs):
    invalidate_prefix(LOW_STOCK_PREFIX)
