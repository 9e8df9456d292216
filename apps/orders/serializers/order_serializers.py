"""
Order serializers for detail and checkout.
"""
from rest_framework import serializers
from ..models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            'product_id', 'product_name', 'vendor_id', 'vendor_name', 'quantity',
            'unit_price', 'list_price', 'sale_discount', 'variations', 'image', 'amount'
        ]


class OrderSerializer(serializers.ModelSerializer):
    """Full order with its items"""

    items = OrderItemSerializer(many=True, read_only=True)
    order_number = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'buyer', 'items', 'subtotal', 'discount_amount', 'coupon_code',
            'shipping_fee', 'tax', 'total', 'status', 'payment_status', 'payment_method',
            'shipping_address', 'tracking_number', 'notes', 'version', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class CheckoutItemSerializer(serializers.Serializer):
    product_id = serializers.CharField(max_length=50)
    quantity = serializers.IntegerField(min_value=1)
    variations = serializers.DictField(child=serializers.CharField(), required=False, default=dict)


class ShippingAddressSerializer(serializers.Serializer):
    fullName = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    address = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    region = serializers.CharField(max_length=100)
    digitalAddress = serializers.CharField(max_length=50, required=False, allow_blank=True)


class OrderCreateSerializer(serializers.Serializer):
    """Checkout request"""

    items = CheckoutItemSerializer(many=True, allow_empty=False)
    shipping_fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    tax = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    coupon_code = serializers.CharField(max_length=50, required=False, allow_blank=True)
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True)
    shipping_address = ShippingAddressSerializer()
    notes = serializers.CharField(required=False, allow_blank=True)
