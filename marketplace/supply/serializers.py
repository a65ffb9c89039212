from rest_framework import serializers
from marketplace.catalog.pricing import MAX_QUANTITY
from .models import DailyDemand, SupplyOffer


class SupplyOfferSerializer(serializers.ModelSerializer):
    supplier_email = serializers.EmailField(source='supplier.email', read_only=True)
    supplier_name = serializers.SerializerMethodField()
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_unit = serializers.CharField(source='product.unit', read_only=True)
    total_value = serializers.SerializerMethodField()

    class Meta:
        model = SupplyOffer
        fields = [
            'id', 'supplier', 'supplier_email', 'supplier_name', 'product', 'product_name', 'product_unit',
            'available_quantity', 'price_per_unit', 'delivery_date', 'demand_date',
            'allocated_quantity', 'status', 'notes', 'total_value', 'created_at', 'updated_at'
        ]
        read_only_fields = ['supplier', 'allocated_quantity', 'status', 'created_at', 'updated_at']
        extra_kwargs = {'available_quantity': {'max_value': MAX_QUANTITY}}

    def get_supplier_name(self, obj):
        return obj.supplier.get_full_name() or obj.supplier.username

    def get_total_value(self, obj):
        return str(obj.get_total_value())

    def validate_product(self, value):
        if not value.is_active:
            raise serializers.ValidationError('This product is not available.')
        return value


class SupplyOfferUpdateSerializer(serializers.ModelSerializer):
    """Fields a supplier may still change while the offer is pending"""

    class Meta:
        model = SupplyOffer
        fields = ['available_quantity', 'price_per_unit', 'delivery_date', 'notes']
        extra_kwargs = {'available_quantity': {'max_value': MAX_QUANTITY}}


class SupplyOfferStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SupplyOffer.STATUS_CHOICES)


class DailyDemandSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_unit = serializers.CharField(source='product.unit', read_only=True)
    product_category = serializers.CharField(source='product.category', read_only=True)
    base_price = serializers.DecimalField(source='product.base_price', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = DailyDemand
        fields = [
            'id', 'product', 'product_name', 'product_unit', 'product_category', 'base_price',
            'date', 'total_demand', 'fulfilled_quantity', 'remaining_demand', 'updated_at'
        ]
