from django.contrib import admin
from .models import DailyDemand, SupplyOffer


@admin.register(SupplyOffer)
class SupplyOfferAdmin(admin.ModelAdmin):
    list_display = ['id', 'product', 'supplier', 'available_quantity', 'price_per_unit', 'demand_date', 'allocated_quantity', 'status']
    list_filter = ['status', 'demand_date']
    search_fields = ['product__name', 'supplier__email']
    raw_id_fields = ['product', 'supplier']
    readonly_fields = ['allocated_quantity', 'created_at', 'updated_at']


@admin.register(DailyDemand)
class DailyDemandAdmin(admin.ModelAdmin):
    list_display = ['date', 'product', 'total_demand', 'fulfilled_quantity', 'remaining_demand']
    list_filter = ['date']
    search_fields = ['product__name']
    date_hierarchy = 'date'
    readonly_fields = ['created_at', 'updated_at']
