from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from marketplace.core.models import User


class SpecialRequest(models.Model):
    """Vendor request for an item outside the regular catalog"""
    URGENCY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
    ]

    STATUS_OPEN = 'open'
    STATUS_RESPONDED = 'responded'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_RESPONDED, 'Responded'),
        (STATUS_FULFILLED, 'Fulfilled'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    ACCEPTING_STATUSES = (STATUS_OPEN, STATUS_RESPONDED)

    vendor = models.ForeignKey(User, on_delete=models.CASCADE, related_name='special_requests')
    item_name = models.CharField(max_length=255)
    description = models.TextField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit = models.CharField(max_length=20)
    budget_per_unit = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0.01'))])
    urgency = models.CharField(max_length=20, choices=URGENCY_CHOICES, default='normal')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.item_name} x{self.quantity} {self.unit} ({self.status})"

    @property
    def is_open_for_responses(self):
        return self.status in self.ACCEPTING_STATUSES

    class Meta:
        db_table = 'special_requests'
        ordering = ['-created_at']


class SpecialRequestResponse(models.Model):
    """Supplier quote answering a special request"""
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    request = models.ForeignKey(SpecialRequest, on_delete=models.CASCADE, related_name='responses')
    supplier = models.ForeignKey(User, on_delete=models.CASCADE, related_name='special_request_responses')
    available_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_unit = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    message = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Response #{self.pk} to request #{self.request_id} by {self.supplier.email}"

    class Meta:
        db_table = 'special_request_responses'
        ordering = ['created_at']
