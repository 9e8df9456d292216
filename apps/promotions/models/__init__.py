from .coupon import Coupon, CouponUsage
from .sale import Sale

__all__ = ['Coupon', 'CouponUsage', 'Sale']
