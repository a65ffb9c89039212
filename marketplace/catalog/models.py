from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal


class Product(models.Model):
    """Raw material offered to vendors, with an optional bulk discount"""
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, db_index=True)
    unit = models.CharField(max_length=20, help_text='kg, L, pieces, etc.')
    base_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    image_url = models.URLField(blank=True)
    bulk_discount_threshold = models.PositiveIntegerField(default=0, help_text='Minimum quantity for the bulk discount; 0 disables it')
    bulk_discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))],
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.unit})"

    @property
    def has_bulk_discount(self):
        return self.bulk_discount_threshold > 0 and self.bulk_discount_percentage > 0

    class Meta:
        db_table = 'products'
        ordering = ['name']
