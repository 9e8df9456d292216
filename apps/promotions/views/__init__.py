from .coupon_views import CouponListCreateView, CouponDetailView, ValidateCouponView
from .sale_views import SaleListCreateView, SaleDetailView, SalePriceView

__all__ = [
    'CouponListCreateView',
    'CouponDetailView',
    'ValidateCouponView',
    'SaleListCreateView',
    'SaleDetailView',
    'SalePriceView',
]
