from django.urls import path
from . import views

urlpatterns = [
    path('coupons', views.CouponListCreateView.as_view(), name='coupon-list'),
    path('coupons/validate', views.ValidateCouponView.as_view(), name='coupon-validate'),
    path('coupons/<int:coupon_id>', views.CouponDetailView.as_view(), name='coupon-detail'),
    path('sales', views.SaleListCreateView.as_view(), name='sale-list'),
    path('sales/<int:sale_id>', views.SaleDetailView.as_view(), name='sale-detail'),
    path('sale-price/<int:product_id>', views.SalePriceView.as_view(), name='sale-price'),
]
