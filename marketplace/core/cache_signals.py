"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import invalidate_products_cache, invalidate_dashboard_cache

logger = logging.getLogger(__name__)

PRODUCT_MODELS = {'Product'}
DASHBOARD_MODELS = {'Order', 'User'}


@receiver([post_save, post_delete])
def invalidate_products_cache_on_change(sender, instance, **kwargs):
    """Invalidate products cache when the catalog changes"""
    if sender.__name__ in PRODUCT_MODELS:
        invalidate_products_cache()
        logger.debug(f"Products cache invalidated by {sender.__name__}#{instance.pk}")


@receiver([post_save, post_delete])
def invalidate_dashboard_cache_on_change(sender, instance, **kwargs):
    """Invalidate dashboard stats when orders or accounts change"""
    if sender.__name__ in DASHBOARD_MODELS:
        invalidate_dashboard_cache()
        logger.debug(f"Dashboard cache invalidated by {sender.__name__}#{instance.pk}")
