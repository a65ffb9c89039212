from django.contrib import admin
from .models import Order, OrderItem, Cart, CartItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ['product']
    readonly_fields = ['unit_price', 'total_price', 'discount_applied']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'vendor', 'status', 'total_amount', 'order_date', 'delivery_date']
    list_filter = ['status', 'payment_method', 'order_date']
    search_fields = ['order_number', 'vendor__email', 'delivery_address']
    raw_id_fields = ['vendor']
    readonly_fields = ['order_number', 'total_amount', 'created_at', 'updated_at']
    date_hierarchy = 'order_date'
    inlines = [OrderItemInline]


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    raw_id_fields = ['product']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['vendor', 'updated_at']
    search_fields = ['vendor__email']
    raw_id_fields = ['vendor']
    inlines = [CartItemInline]
