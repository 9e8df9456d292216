"""
Promotion services module.
"""
from .promotion_service import PromotionService
from .discount_service import CouponValidation, DiscountService, SalePrice

__all__ = [
    'PromotionService',
    'DiscountService',
    'CouponValidation',
    'SalePrice',
]
