from rest_framework import serializers
from marketplace.catalog.pricing import MAX_QUANTITY
from .models import SpecialRequest, SpecialRequestResponse


class SpecialRequestResponseSerializer(serializers.ModelSerializer):
    supplier_email = serializers.EmailField(source='supplier.email', read_only=True)
    supplier_name = serializers.SerializerMethodField()

    class Meta:
        model = SpecialRequestResponse
        fields = [
            'id', 'request', 'supplier', 'supplier_email', 'supplier_name',
            'available_quantity', 'price_per_unit', 'message', 'status', 'created_at'
        ]
        read_only_fields = ['request', 'supplier', 'status', 'created_at']
        extra_kwargs = {'available_quantity': {'max_value': MAX_QUANTITY}}

    def get_supplier_name(self, obj):
        return obj.supplier.get_full_name() or obj.supplier.username


class SpecialRequestSerializer(serializers.ModelSerializer):
    vendor_email = serializers.EmailField(source='vendor.email', read_only=True)
    vendor_name = serializers.SerializerMethodField()
    responses = SpecialRequestResponseSerializer(many=True, read_only=True)

    class Meta:
        model = SpecialRequest
        fields = [
            'id', 'vendor', 'vendor_email', 'vendor_name', 'item_name', 'description', 'quantity', 'unit',
            'budget_per_unit', 'urgency', 'status', 'responses', 'created_at', 'updated_at'
        ]
        read_only_fields = ['vendor', 'status', 'created_at', 'updated_at']
        extra_kwargs = {'quantity': {'max_value': MAX_QUANTITY}}

    def get_vendor_name(self, obj):
        return obj.vendor.get_full_name() or obj.vendor.username
