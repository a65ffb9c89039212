from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    has_bulk_discount = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'category', 'unit', 'base_price', 'image_url',
            'bulk_discount_threshold', 'bulk_discount_percentage', 'has_bulk_discount',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        threshold = attrs.get('bulk_discount_threshold', getattr(self.instance, 'bulk_discount_threshold', 0))
        percentage = attrs.get('bulk_discount_percentage', getattr(self.instance, 'bulk_discount_percentage', 0))
        if percentage and percentage > 0 and not threshold:
            raise serializers.ValidationError({
                'bulk_discount_threshold': 'A bulk discount percentage requires a threshold quantity.'
            })
        return attrs


class PriceQuoteSerializer(serializers.Serializer):
    """Read-only rendering of a priced line"""
    product = serializers.IntegerField(source='product.id')
    product_name = serializers.CharField(source='product.name')
    unit = serializers.CharField(source='product.unit')
    quantity = serializers.IntegerField(source='line.quantity')
    base_price = serializers.DecimalField(source='line.base_price', max_digits=10, decimal_places=2)
    unit_price = serializers.DecimalField(source='line.unit_price', max_digits=10, decimal_places=2)
    discount_applied = serializers.DecimalField(source='line.discount_applied', max_digits=5, decimal_places=2)
    total_price = serializers.DecimalField(source='line.total_price', max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(source='line.savings', max_digits=12, decimal_places=2)
