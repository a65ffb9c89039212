from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from marketplace.catalog.models import Product
from marketplace.core.models import User


class Order(models.Model):
    """Vendor orders"""
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_PROCESSING = 'processing'
    STATUS_DISPATCHED = 'dispatched'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_DISPATCHED, 'Dispatched'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    # Delivered and cancelled are terminal
    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: [STATUS_CONFIRMED, STATUS_CANCELLED],
        STATUS_CONFIRMED: [STATUS_PROCESSING, STATUS_CANCELLED],
        STATUS_PROCESSING: [STATUS_DISPATCHED, STATUS_CANCELLED],
        STATUS_DISPATCHED: [STATUS_DELIVERED],
        STATUS_DELIVERED: [],
        STATUS_CANCELLED: [],
    }

    PAYMENT_CASH_ON_DELIVERY = 'cash_on_delivery'
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CASH_ON_DELIVERY, 'Cash on Delivery'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    vendor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='orders')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_CASH_ON_DELIVERY)
    delivery_address = models.TextField()
    order_date = models.DateTimeField(default=timezone.now, db_index=True)
    delivery_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, [])

    @property
    def is_cancellable_by_vendor(self):
        return self.status == self.STATUS_PENDING

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['vendor', '-order_date'], name='idx_order_vendor_date'),
        ]


class OrderItem(models.Model):
    """Order lines, priced when the order was placed"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_applied = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'), help_text='Bulk discount percentage')

    def __str__(self):
        return f"{self.order.order_number}: {self.product.name} x{self.quantity}"

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class Cart(models.Model):
    """One open cart per vendor"""
    vendor = models.OneToOneField(User, on_delete=models.CASCADE, related_name='cart')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Cart of {self.vendor.email}"

    class Meta:
        db_table = 'carts'


class CartItem(models.Model):
    """Cart lines; prices always come from the product at read time"""
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product'], name='uniq_cartitem_cart_product'),
        ]
