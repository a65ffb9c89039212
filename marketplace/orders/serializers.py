from rest_framework import serializers
from marketplace.catalog.models import Product
from marketplace.catalog.pricing import MAX_QUANTITY
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_unit = serializers.CharField(source='product.unit', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'product_unit', 'quantity', 'unit_price', 'total_price', 'discount_applied']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    vendor_email = serializers.EmailField(source='vendor.email', read_only=True)
    vendor_name = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'vendor', 'vendor_email', 'vendor_name', 'total_amount', 'status',
            'payment_method', 'delivery_address', 'order_date', 'delivery_date', 'notes',
            'items', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_vendor_name(self, obj):
        return obj.vendor.get_full_name() or obj.vendor.username


class OrderLineInputSerializer(serializers.Serializer):
    """One requested line; any client-side price fields are ignored"""
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)


class OrderCreateSerializer(serializers.Serializer):
    delivery_address = serializers.CharField(allow_blank=False, trim_whitespace=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default=Order.PAYMENT_CASH_ON_DELIVERY)
    items = OrderLineInputSerializer(many=True, allow_empty=False)

    def validate_items(self, value):
        product_ids = [line['product'].pk for line in value]
        if len(product_ids) != len(set(product_ids)):
            raise serializers.ValidationError('Each product may appear only once per order.')
        inactive = [line['product'].name for line in value if not line['product'].is_active]
        if inactive:
            raise serializers.ValidationError(f"Not available: {', '.join(inactive)}")
        return value


class CheckoutSerializer(serializers.Serializer):
    delivery_address = serializers.CharField(allow_blank=False, trim_whitespace=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default=Order.PAYMENT_CASH_ON_DELIVERY)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class CartItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY, default=1)


class CartQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(max_value=MAX_QUANTITY)


class CartLineSerializer(serializers.Serializer):
    """Read-only rendering of a cart item with its live price"""
    product = serializers.IntegerField(source='item.product_id')
    product_name = serializers.CharField(source='item.product.name')
    product_unit = serializers.CharField(source='item.product.unit')
    image_url = serializers.CharField(source='item.product.image_url')
    quantity = serializers.IntegerField(source='line.quantity')
    base_price = serializers.DecimalField(source='line.base_price', max_digits=10, decimal_places=2)
    unit_price = serializers.DecimalField(source='line.unit_price', max_digits=10, decimal_places=2)
    discount_applied = serializers.DecimalField(source='line.discount_applied', max_digits=5, decimal_places=2)
    total_price = serializers.DecimalField(source='line.total_price', max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(source='line.savings', max_digits=12, decimal_places=2)
