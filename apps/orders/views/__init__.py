from .order_views import CreateOrderView, MyOrdersView, OrderDetailView, OrderStatsView
from .order_actions import OrderStatusView, OrderTransitionsView, PaymentStatusView

__all__ = [
    'CreateOrderView',
    'MyOrdersView',
    'OrderDetailView',
    'OrderStatsView',
    'OrderStatusView',
    'OrderTransitionsView',
    'PaymentStatusView',
]
