from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'unit', 'base_price', 'bulk_discount_threshold', 'bulk_discount_percentage', 'is_active']
    list_filter = ['category', 'is_active']
    search_fields = ['name', 'description', 'category']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
