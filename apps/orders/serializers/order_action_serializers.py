"""
Order status and payment status change requests.
"""
from rest_framework import serializers
from ..models import Order


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    expected_version = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES)
