"""
Daily demand aggregation and supply-offer decisions

Vendor orders add to the (product, day) demand row, cancellations give it
back, and accepted supply offers cover it. Every update locks the demand row
and recomputes ``remaining_demand`` from the stored totals in the same write,
so concurrent orders and offers on one product/day serialise on that row.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from .models import DailyDemand, SupplyOffer

logger = logging.getLogger('marketplace.supply')


def demand_day_for(order):
    """Demand day an order counts towards (local calendar date of placement)"""
    return timezone.localdate(order.order_date)


@transaction.atomic
def add_demand(product, day, quantity):
    demand, _ = DailyDemand.objects.select_for_update().get_or_create(
        product=product,
        date=day,
    )
    demand.total_demand += quantity
    demand.recalculate_remaining()
    demand.save(update_fields=['total_demand', 'remaining_demand', 'updated_at'])
    logger.info(f"Demand for product {product.pk} on {day} +{quantity} -> total {demand.total_demand}, remaining {demand.remaining_demand}")
    return demand


@transaction.atomic
def release_demand(product, day, quantity):
    """Give back cancelled quantity; total demand never drops below what was already fulfilled"""
    demand = DailyDemand.objects.select_for_update().filter(product=product, date=day).first()
    if demand is None:
        logger.warning(f"No demand row for product {product.pk} on {day}; nothing to release")
        return None
    demand.total_demand = max(demand.total_demand - quantity, demand.fulfilled_quantity)
    demand.recalculate_remaining()
    demand.save(update_fields=['total_demand', 'remaining_demand', 'updated_at'])
    logger.info(f"Demand for product {product.pk} on {day} -{quantity} -> total {demand.total_demand}, remaining {demand.remaining_demand}")
    return demand


def record_order_demand(order):
    day = demand_day_for(order)
    for item in order.items.select_related('product'):
        add_demand(item.product, day, item.quantity)


def release_order_demand(order):
    day = demand_day_for(order)
    for item in order.items.select_related('product'):
        release_demand(item.product, day, item.quantity)


@transaction.atomic
def allocate_offer(offer):
    """
    Cover the offer's demand day with the offered quantity, capped at what is
    still remaining. Returns the quantity allocated.
    """
    demand = DailyDemand.objects.select_for_update().filter(
        product=offer.product, date=offer.demand_date
    ).first()
    if demand is None:
        logger.warning(f"Offer {offer.pk}: no demand for product {offer.product_id} on {offer.demand_date}; nothing allocated")
        return 0

    allocated = min(offer.available_quantity, demand.remaining_demand)
    demand.fulfilled_quantity += allocated
    demand.recalculate_remaining()
    demand.save(update_fields=['fulfilled_quantity', 'remaining_demand', 'updated_at'])
    logger.info(f"Offer {offer.pk} allocated {allocated} to product {offer.product_id} on {offer.demand_date}; remaining {demand.remaining_demand}")
    return allocated


def get_daily_demand(day=None):
    day = day or timezone.localdate()
    return (
        DailyDemand.objects.filter(date=day)
        .select_related('product')
        .order_by('-remaining_demand', 'product__name')
    )


@transaction.atomic
def change_offer_status(offer, new_status):
    """Move an offer along pending -> accepted/rejected, accepted -> fulfilled"""
    offer = SupplyOffer.objects.select_for_update().get(pk=offer.pk)
    if new_status not in dict(SupplyOffer.STATUS_CHOICES):
        raise ValidationError({'status': f'"{new_status}" is not a valid offer status.'})
    if not offer.can_transition_to(new_status):
        raise ValidationError({'error': f'Cannot change offer status from {offer.status} to {new_status}'})

    old_status = offer.status
    offer.status = new_status
    update_fields = ['status', 'updated_at']
    if new_status == SupplyOffer.STATUS_ACCEPTED:
        offer.allocated_quantity = allocate_offer(offer)
        update_fields.append('allocated_quantity')
    offer.save(update_fields=update_fields)
    logger.info(f"Offer {offer.pk} status {old_status} -> {new_status}")
    return offer, old_status


@transaction.atomic
def update_pending_offer(offer, changes):
    """Apply a supplier's edits; the offer must still be pending once locked"""
    offer = SupplyOffer.objects.select_for_update().get(pk=offer.pk)
    if offer.status != SupplyOffer.STATUS_PENDING:
        raise ValidationError({'error': f'Cannot edit an offer that is {offer.status}'})

    for field, value in changes.items():
        setattr(offer, field, value)
    offer.save(update_fields=[*changes, 'updated_at'])
    logger.info(f"Offer {offer.pk} edited: {', '.join(changes) or 'no changes'}")
    return offer
