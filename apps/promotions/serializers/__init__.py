"""
Promotion serializers module.
"""
from .coupon_serializers import CouponSerializer, CouponWriteSerializer, CouponValidateSerializer
from .sale_serializers import SaleSerializer, SaleWriteSerializer

__all__ = [
    'CouponSerializer',
    'CouponWriteSerializer',
    'CouponValidateSerializer',
    'SaleSerializer',
    'SaleWriteSerializer',
]
