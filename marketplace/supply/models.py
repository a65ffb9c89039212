from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
from marketplace.catalog.models import Product
from marketplace.core.models import User


class DailyDemand(models.Model):
    """Per-product total ordered by vendors on a day versus what suppliers have covered"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='daily_demand')
    date = models.DateField(db_index=True)
    total_demand = models.PositiveIntegerField(default=0)
    fulfilled_quantity = models.PositiveIntegerField(default=0)
    remaining_demand = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} on {self.date}: {self.remaining_demand}/{self.total_demand} remaining"

    def recalculate_remaining(self):
        self.remaining_demand = self.total_demand - self.fulfilled_quantity
        return self.remaining_demand

    class Meta:
        db_table = 'daily_demand'
        ordering = ['-date', '-remaining_demand']
        constraints = [
            models.UniqueConstraint(fields=['product', 'date'], name='uniq_daily_demand_product_date'),
        ]


class SupplyOffer(models.Model):
    """Supplier's offer of quantity and price against a day's demand"""
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_FULFILLED, 'Fulfilled'),
    ]

    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: [STATUS_ACCEPTED, STATUS_REJECTED],
        STATUS_ACCEPTED: [STATUS_FULFILLED],
        STATUS_REJECTED: [],
        STATUS_FULFILLED: [],
    }

    supplier = models.ForeignKey(User, on_delete=models.CASCADE, related_name='supply_offers')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='supply_offers')
    available_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    delivery_date = models.DateField()
    demand_date = models.DateField(default=timezone.localdate, help_text='Demand day this offer answers')
    allocated_quantity = models.PositiveIntegerField(default=0, help_text='Demand covered when the offer was accepted')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Offer #{self.pk} {self.product.name} x{self.available_quantity} by {self.supplier.email}"

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, [])

    def get_total_value(self):
        return self.available_quantity * self.price_per_unit

    class Meta:
        db_table = 'supply_offers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['supplier', 'status'], name='idx_offer_supplier_status'),
            models.Index(fields=['product', 'demand_date'], name='idx_offer_product_day'),
        ]
