"""
Checkout and order query views.
"""
import logging

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from apps.common.utils import success_response, error_response
from apps.users.models import User
from ..serializers import OrderSerializer, OrderCreateSerializer
from ..services import OrderService

logger = logging.getLogger(__name__)


class CreateOrderView(APIView):
    """Checkout: turn cart items into an order"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning(f"Checkout validation failed for user {request.user.id}: {serializer.errors}")
            return error_response("Invalid order data", serializer.errors)

        data = serializer.validated_data
        order, error_msg = OrderService.create_order(
            request.user,
            [dict(item) for item in data['items']],
            shipping_fee=data['shipping_fee'],
            tax=data['tax'],
            coupon_code=data.get('coupon_code') or None,
            payment_method=data.get('payment_method', ''),
            shipping_address=dict(data['shipping_address']),
            notes=data.get('notes', ''),
        )
        if not order:
            return error_response(error_msg)

        return success_response(OrderSerializer(order).data, 'Order created successfully', status.HTTP_201_CREATED)


class MyOrdersView(APIView):
    """Orders the caller bought, or for vendors the orders containing their items"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        order_status = request.GET.get('status') or None
        if request.user.marketplace_role == User.ROLE_VENDOR:
            orders = OrderService.get_orders_by_vendor(request.user, order_status)
        else:
            orders = OrderService.get_orders_by_buyer(request.user, order_status)
        return success_response(OrderSerializer(orders, many=True).data, 'Orders retrieved successfully')


class OrderDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id):
        order = OrderService.get_order(order_id)
        if order is None:
            return error_response("Order not found", status_code=status.HTTP_404_NOT_FOUND)

        allowed, error_msg = OrderService.check_access(order, request.user)
        if not allowed:
            return error_response(error_msg, status_code=status.HTTP_403_FORBIDDEN)
        return success_response(OrderSerializer(order).data)


class OrderStatsView(APIView):
    """Admins see marketplace totals, vendors see their own"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        role = request.user.marketplace_role
        if role == User.ROLE_ADMIN:
            stats = OrderService.get_order_stats()
        elif role == User.ROLE_VENDOR:
            stats = OrderService.get_order_stats(vendor=request.user)
        else:
            return error_response("Only vendors and admins can view order stats", status_code=status.HTTP_403_FORBIDDEN)

        stats['total_revenue'] = str(stats['total_revenue'])
        return success_response(stats)
