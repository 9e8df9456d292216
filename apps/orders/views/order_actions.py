"""
Order lifecycle actions: status transitions and payment status.
"""
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from apps.common.utils import success_response, error_response
from apps.users.models import User
from ..serializers import OrderSerializer, OrderStatusSerializer, PaymentStatusSerializer
from ..services import OrderService
from ..transitions import get_available_transitions


class OrderStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, order_id):
        serializer = OrderStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid status request", serializer.errors)

        result = OrderService.update_order_status(
            order_id,
            serializer.validated_data['status'],
            request.user,
            expected_version=serializer.validated_data.get('expected_version'),
        )
        if not result.success:
            code = status.HTTP_404_NOT_FOUND if result.order is None else status.HTTP_409_CONFLICT
            return error_response(result.message, status_code=code)

        return success_response({
            'order': OrderSerializer(result.order).data,
            'notified': [outcome.recipient_id for outcome in result.outcomes if outcome.success],
        }, result.message)


class OrderTransitionsView(APIView):
    """Statuses the caller may move this order to"""
    permission_classes = [IsAuthenticated]

    def get(self, request, order_id):
        order = OrderService.get_order(order_id)
        if order is None:
            return error_response("Order not found", status_code=status.HTTP_404_NOT_FOUND)

        allowed, error_msg = OrderService.check_access(order, request.user)
        if not allowed:
            return error_response(error_msg, status_code=status.HTTP_403_FORBIDDEN)

        return success_response({
            'status': order.status,
            'version': order.version,
            'transitions': get_available_transitions(order.status, request.user.marketplace_role),
        })


class PaymentStatusView(APIView):
    """Payment status is reported by admins on behalf of the payment provider"""
    permission_classes = [IsAuthenticated]

    def post(self, request, order_id):
        if request.user.marketplace_role != User.ROLE_ADMIN:
            return error_response("Only admins can change payment status", status_code=status.HTTP_403_FORBIDDEN)

        serializer = PaymentStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid payment status", serializer.errors)

        order, error_msg = OrderService.update_payment_status(order_id, serializer.validated_data['payment_status'])
        if not order:
            return error_response(error_msg)
        return success_response(OrderSerializer(order).data, 'Payment status updated')
