from django.urls import path
from . import views

urlpatterns = [
    path('', views.CreateOrderView.as_view(), name='create-order'),
    path('mine', views.MyOrdersView.as_view(), name='my-orders'),
    path('stats', views.OrderStatsView.as_view(), name='order-stats'),
    path('<uuid:order_id>', views.OrderDetailView.as_view(), name='order-detail'),
    path('<uuid:order_id>/status', views.OrderStatusView.as_view(), name='order-status'),
    path('<uuid:order_id>/transitions', views.OrderTransitionsView.as_view(), name='order-transitions'),
    path('<uuid:order_id>/payment', views.PaymentStatusView.as_view(), name='order-payment'),
]
