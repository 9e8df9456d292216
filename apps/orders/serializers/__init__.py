"""
Order serializers module.
"""
from .order_serializers import OrderItemSerializer, OrderSerializer, OrderCreateSerializer
from .order_action_serializers import OrderStatusSerializer, PaymentStatusSerializer

__all__ = [
    'OrderItemSerializer',
    'OrderSerializer',
    'OrderCreateSerializer',
    'OrderStatusSerializer',
    'PaymentStatusSerializer',
]
