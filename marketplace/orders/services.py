"""
Order placement, status changes and the vendor cart

Business-rule violations raise DRF ``ValidationError`` so views can let them
surface as 400 responses.
"""
import logging
import uuid

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError, PermissionDenied

from marketplace.catalog.pricing import MAX_AMOUNT, MAX_QUANTITY, price_line, summarize
from marketplace.supply.services import record_order_demand, release_order_demand
from .models import Order, OrderItem, Cart, CartItem

logger = logging.getLogger('marketplace.orders')


def generate_order_number():
    order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    while Order.objects.filter(order_number=order_number).exists():
        order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{str(uuid.uuid4())[:8].upper()}"
    return order_number


def validate_order_lines(items):
    if not items:
        raise ValidationError({'error': 'Order must contain at least one item'})
    seen = set()
    for item in items:
        product = item['product']
        if product.pk in seen:
            raise ValidationError({'error': f"{product.name} appears more than once in the order"})
        seen.add(product.pk)
        if not product.is_active:
            raise ValidationError({'error': f"{product.name} is no longer available"})
        if item['quantity'] < 1:
            raise ValidationError({'error': f"Quantity for {product.name} must be at least 1"})
        if item['quantity'] > MAX_QUANTITY:
            raise ValidationError({'error': f"Quantity for {product.name} cannot exceed {MAX_QUANTITY}"})


@transaction.atomic
def place_order(vendor, items, delivery_address, notes='', payment_method=Order.PAYMENT_CASH_ON_DELIVERY):
    """
    Create a pending order for ``vendor`` from ``items`` (dicts of product and
    quantity), price every line with its bulk discount and add the quantities
    to the day's demand.
    """
    if not vendor.is_vendor:
        raise PermissionDenied('Only vendors can place orders')
    if not (delivery_address or '').strip():
        raise ValidationError({'delivery_address': ['Delivery address is required.']})
    if payment_method != Order.PAYMENT_CASH_ON_DELIVERY:
        raise ValidationError({'error': f'Unsupported payment method: {payment_method}'})
    validate_order_lines(items)

    lines = [price_line(item['product'], item['quantity']) for item in items]
    total_amount = summarize(lines).total_amount
    if total_amount > MAX_AMOUNT:
        raise ValidationError({'error': f'Order total cannot exceed {MAX_AMOUNT}'})

    order = Order.objects.create(
        order_number=generate_order_number(),
        vendor=vendor,
        payment_method=payment_method,
        delivery_address=delivery_address.strip(),
        notes=notes or '',
    )

    for item, line in zip(items, lines):
        OrderItem.objects.create(
            order=order,
            product=item['product'],
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.total_price,
            discount_applied=line.discount_applied,
        )

    order.total_amount = total_amount
    order.save(update_fields=['total_amount', 'updated_at'])

    record_order_demand(order)
    logger.info(f"Order {order.order_number} placed by {vendor.email}: {len(lines)} item(s), total {order.total_amount}")
    return order


@transaction.atomic
def update_order_status(order, new_status):
    """Apply one lifecycle step; returns the locked, updated order and its previous status"""
    order = Order.objects.select_for_update().get(pk=order.pk)
    if new_status not in dict(Order.STATUS_CHOICES):
        raise ValidationError({'status': [f'"{new_status}" is not a valid order status.']})
    if not order.can_transition_to(new_status):
        raise ValidationError({'error': f'Cannot change order status from {order.status} to {new_status}'})

    old_status = order.status
    order.status = new_status
    update_fields = ['status', 'updated_at']
    if new_status == Order.STATUS_DELIVERED:
        order.delivery_date = timezone.now()
        update_fields.append('delivery_date')
    order.save(update_fields=update_fields)

    if new_status == Order.STATUS_CANCELLED:
        release_order_demand(order)

    logger.info(f"Order {order.order_number} status {old_status} -> {new_status}")
    return order, old_status


def cancel_order(order, user):
    """Vendor-side cancellation of their own order while it is still pending"""
    if order.vendor_id != user.id:
        raise PermissionDenied('You can only cancel your own orders')
    if not order.is_cancellable_by_vendor:
        raise ValidationError({'error': f'Only pending orders can be cancelled; this order is {order.status}'})
    return update_order_status(order, Order.STATUS_CANCELLED)


# Cart

def get_cart(vendor):
    cart, _ = Cart.objects.get_or_create(vendor=vendor)
    return cart


def cart_lines(cart):
    """Cart items paired with their live price"""
    items = cart.items.select_related('product').order_by('id')
    return [(item, price_line(item.product, item.quantity)) for item in items]


def add_to_cart(vendor, product, quantity):
    if quantity < 1:
        raise ValidationError({'quantity': ['Quantity must be at least 1.']})
    if quantity > MAX_QUANTITY:
        raise ValidationError({'quantity': [f'Quantity cannot exceed {MAX_QUANTITY}.']})
    if not product.is_active:
        raise ValidationError({'error': f"{product.name} is not available"})
    cart = get_cart(vendor)
    item, created = CartItem.objects.get_or_create(cart=cart, product=product, defaults={'quantity': quantity})
    if not created:
        if item.quantity + quantity > MAX_QUANTITY:
            raise ValidationError({'quantity': [f'{product.name} would exceed {MAX_QUANTITY} units in the cart.']})
        item.quantity += quantity
        item.save(update_fields=['quantity'])
    cart.save(update_fields=['updated_at'])
    return cart


def set_cart_quantity(vendor, product_id, quantity):
    """Set a line's quantity; zero or less removes the line"""
    cart = get_cart(vendor)
    item = cart.items.filter(product_id=product_id).first()
    if item is None:
        raise ValidationError({'error': 'Product is not in the cart'})
    if quantity <= 0:
        item.delete()
    else:
        item.quantity = quantity
        item.save(update_fields=['quantity'])
    cart.save(update_fields=['updated_at'])
    return cart


def remove_from_cart(vendor, product_id):
    cart = get_cart(vendor)
    deleted, _ = cart.items.filter(product_id=product_id).delete()
    if not deleted:
        raise ValidationError({'error': 'Product is not in the cart'})
    return cart


def clear_cart(vendor):
    cart = get_cart(vendor)
    cart.items.all().delete()
    return cart


@transaction.atomic
def checkout_cart(vendor, delivery_address, notes='', payment_method=Order.PAYMENT_CASH_ON_DELIVERY):
    cart = get_cart(vendor)
    items = [
        {'product': item.product, 'quantity': item.quantity}
        for item in cart.items.select_related('product').order_by('id')
    ]
    if not items:
        raise ValidationError({'error': 'Cart is empty'})

    order = place_order(vendor, items, delivery_address, notes=notes, payment_method=payment_method)
    cart.items.all().delete()
    return order
