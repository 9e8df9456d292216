"""
Price resolution over coupon and sale definitions.

validate_coupon never writes. apply_coupon is the only place coupon usage
counters move, and it moves them with conditional updates under a row lock.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .. import pricing
from ..models import Coupon, CouponUsage, Sale

logger = logging.getLogger(__name__)

# Rejection reasons, checked in this order
UNKNOWN_CODE = 'unknown_code'
VENDOR_MISMATCH = 'vendor_mismatch'
NOT_STARTED = 'not_started'
EXPIRED = 'expired'
DISABLED = 'disabled'
USAGE_LIMIT_REACHED = 'usage_limit_reached'
CUSTOMER_LIMIT_REACHED = 'customer_limit_reached'
MIN_ORDER_NOT_MET = 'min_order_not_met'
PRODUCT_SCOPE_MISMATCH = 'product_scope_mismatch'
CATEGORY_SCOPE_MISMATCH = 'category_scope_mismatch'

MESSAGES = {
    UNKNOWN_CODE: "Invalid coupon code",
    VENDOR_MISMATCH: "This coupon is not valid for this store",
    NOT_STARTED: "This coupon is not yet active",
    EXPIRED: "This coupon has expired",
    DISABLED: "This coupon is no longer available",
    USAGE_LIMIT_REACHED: "This coupon has reached its usage limit",
    CUSTOMER_LIMIT_REACHED: "You have already used this coupon the maximum number of times",
    PRODUCT_SCOPE_MISMATCH: "This coupon is not valid for the products in your cart",
    CATEGORY_SCOPE_MISMATCH: "This coupon is not valid for the categories in your cart",
}


@dataclass
class SalePrice:
    list_price: Decimal
    sale_price: Decimal
    discount: Decimal
    sale: Optional[Sale] = None

    @property
    def on_sale(self) -> bool:
        return self.sale is not None


@dataclass
class CouponValidation:
    valid: bool
    error: str = ''
    reason: str = ''
    discount: Decimal = pricing.ZERO
    coupon: Optional[Coupon] = None


class _LimitReached(Exception):
    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


def _rejection_message(reason: str, coupon: Optional[Coupon] = None) -> str:
    if reason == MIN_ORDER_NOT_MET:
        return f"Minimum order amount is {settings.CURRENCY_CODE} {pricing.to_money(coupon.min_order_amount)}"
    return MESSAGES[reason]


def _as_keys(ids: Iterable) -> set:
    return {str(value) for value in ids or () if value is not None and value != ''}


class DiscountService:
    """Service class for sale prices and coupon discounts"""

    @staticmethod
    def compute_sale_price(product_id, list_price, now=None, active_sales: Optional[List[Sale]] = None) -> SalePrice:
        """
        Effective price of a product: the first active sale (by creation
        order) covering it wins. Sales are not stacked.
        """
        list_price = pricing.to_money(list_price)
        if active_sales is None:
            active_sales = list(Sale.objects.active(now).filter(products__id=product_id).distinct())
            matching = active_sales
        else:
            matching = [sale for sale in active_sales if str(product_id) in _sale_product_keys(sale)]

        for sale in matching:
            sale_price, discount = sale.price_for(list_price)
            return SalePrice(list_price=list_price, sale_price=sale_price, discount=discount, sale=sale)

        return SalePrice(list_price=list_price, sale_price=list_price, discount=pricing.ZERO)

    @staticmethod
    def compute_sale_prices(products, now=None) -> Dict[str, SalePrice]:
        """Sale prices for many products with a single sale query, keyed by product id string"""
        products = list(products)
        active_sales = list(
            Sale.objects.active(now)
            .filter(products__in=[product.id for product in products])
            .distinct()
            .order_by('created_at', 'id')
            .prefetch_related('products')
        )
        return {
            str(product.id): DiscountService.compute_sale_price(
                product.id, product.price, now=now, active_sales=active_sales
            )
            for product in products
        }

    @staticmethod
    def get_customer_usage(coupon: Coupon, customer_id) -> int:
        if customer_id is None:
            return 0
        usage = CouponUsage.objects.filter(coupon=coupon, customer_id=customer_id).first()
        return usage.count if usage else 0

    @staticmethod
    def check_coupon(coupon: Coupon, vendor_id, customer_id, order_total, product_ids=(),
                     category_ids=(), now=None) -> str:
        """Return the first rejection reason for the coupon, or '' when it applies"""
        now = now or timezone.now()

        if vendor_id is None or str(coupon.vendor_id) != str(vendor_id):
            return VENDOR_MISMATCH
        if now < coupon.starts_at:
            return NOT_STARTED
        if now >= coupon.ends_at:
            return EXPIRED
        if coupon.is_disabled:
            return DISABLED
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return USAGE_LIMIT_REACHED
        if coupon.usage_limit_per_customer is not None:
            if DiscountService.get_customer_usage(coupon, customer_id) >= coupon.usage_limit_per_customer:
                return CUSTOMER_LIMIT_REACHED
        if coupon.min_order_amount is not None and pricing.to_money(order_total) < coupon.min_order_amount:
            return MIN_ORDER_NOT_MET

        if coupon.scope == Coupon.SCOPE_PRODUCT_SPECIFIC:
            allowed = _as_keys(coupon.products.values_list('id', flat=True))
            if not allowed & _as_keys(product_ids):
                return PRODUCT_SCOPE_MISMATCH
        elif coupon.scope == Coupon.SCOPE_CATEGORY_SPECIFIC:
            allowed = _as_keys(coupon.categories.values_list('id', flat=True))
            if not allowed & _as_keys(category_ids):
                return CATEGORY_SCOPE_MISMATCH

        return ''

    @staticmethod
    def validate_coupon(code: str, vendor_id, customer_id, order_total, product_ids=(),
                        category_ids=(), now=None) -> CouponValidation:
        """Check whether a coupon code applies to an order; never changes usage counters"""
        coupon = Coupon.objects.filter(code__iexact=(code or '').strip()).first() if code else None
        if coupon is None:
            return CouponValidation(valid=False, reason=UNKNOWN_CODE, error=MESSAGES[UNKNOWN_CODE])

        reason = DiscountService.check_coupon(
            coupon, vendor_id, customer_id, order_total, product_ids, category_ids, now
        )
        if reason:
            return CouponValidation(
                valid=False, reason=reason, error=_rejection_message(reason, coupon), coupon=coupon
            )

        return CouponValidation(valid=True, discount=coupon.calculate_discount(order_total), coupon=coupon)

    @staticmethod
    def apply_coupon(coupon_id, customer_id, order_total, product_ids=(), category_ids=(),
                     now=None) -> Tuple[Optional[Decimal], str]:
        """
        Redeem a coupon once for a customer
        Returns (discount, error_message); counters are untouched on error
        """
        with transaction.atomic():
            try:
                coupon = Coupon.objects.select_for_update().get(pk=coupon_id)
            except Coupon.DoesNotExist:
                return None, MESSAGES[UNKNOWN_CODE]

            reason = DiscountService.check_coupon(
                coupon, coupon.vendor_id, customer_id, order_total, product_ids, category_ids, now
            )
            if reason:
                return None, _rejection_message(reason, coupon)

            discount = coupon.calculate_discount(order_total)

            try:
                with transaction.atomic():
                    DiscountService._increment_usage(coupon, customer_id)
            except _LimitReached as e:
                logger.warning(f"Coupon {coupon.code} redemption by {customer_id} lost the race: {e.reason}")
                return None, MESSAGES[e.reason]

        logger.info(f"Coupon {coupon.code} applied for customer {customer_id}, discount {discount}")
        return discount, ""

    @staticmethod
    def _increment_usage(coupon: Coupon, customer_id):
        """Compare-and-swap both counters; raising rolls back the enclosing savepoint"""
        now = timezone.now()
        coupons = Coupon.objects.filter(pk=coupon.pk)
        if coupon.usage_limit is not None:
            coupons = coupons.filter(usage_count__lt=coupon.usage_limit)
        if not coupons.update(usage_count=F('usage_count') + 1, updated_at=now):
            raise _LimitReached(USAGE_LIMIT_REACHED)

        if customer_id is None:
            return

        usage, _ = CouponUsage.objects.get_or_create(coupon_id=coupon.pk, customer_id=customer_id)
        usages = CouponUsage.objects.filter(pk=usage.pk)
        if coupon.usage_limit_per_customer is not None:
            usages = usages.filter(count__lt=coupon.usage_limit_per_customer)
        if not usages.update(count=F('count') + 1, last_used_at=now):
            raise _LimitReached(CUSTOMER_LIMIT_REACHED)


def _sale_product_keys(sale: Sale) -> set:
    cached = getattr(sale, '_product_keys', None)
    if cached is None:
        cached = _as_keys(product.id for product in sale.products.all())
        sale._product_keys = cached
    return cached
