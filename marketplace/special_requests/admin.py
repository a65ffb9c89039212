from django.contrib import admin
from .models import SpecialRequest, SpecialRequestResponse


class SpecialRequestResponseInline(admin.TabularInline):
    model = SpecialRequestResponse
    extra = 0
    raw_id_fields = ['supplier']


@admin.register(SpecialRequest)
class SpecialRequestAdmin(admin.ModelAdmin):
    list_display = ['item_name', 'vendor', 'quantity', 'unit', 'urgency', 'status', 'created_at']
    list_filter = ['status', 'urgency']
    search_fields = ['item_name', 'description', 'vendor__email']
    raw_id_fields = ['vendor']
    inlines = [SpecialRequestResponseInline]


@admin.register(SpecialRequestResponse)
class SpecialRequestResponseAdmin(admin.ModelAdmin):
    list_display = ['id', 'request', 'supplier', 'available_quantity', 'price_per_unit', 'status']
    list_filter = ['status']
    search_fields = ['request__item_name', 'supplier__email']
    raw_id_fields = ['request', 'supplier']
