"""
Coupon and sale definitions owned by vendors.

Lifecycle status is never stored; see pricing.promotion_status.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone

from apps.products.models import Category, Product
from apps.users.models import User
from .. import pricing
from ..models import Coupon, Sale

logger = logging.getLogger(__name__)

COUPON_FIELDS = (
    'code', 'name', 'description', 'discount_type', 'discount_value', 'scope',
    'min_order_amount', 'max_discount_amount', 'usage_limit', 'usage_limit_per_customer',
    'starts_at', 'ends_at', 'is_disabled',
)
SALE_FIELDS = (
    'name', 'description', 'discount_type', 'discount_value', 'starts_at', 'ends_at', 'is_disabled',
)


def can_manage(actor: User, promotion) -> bool:
    """Vendors manage their own promotions, admins manage all of them"""
    if actor.marketplace_role == User.ROLE_ADMIN:
        return True
    return promotion.vendor_id == actor.id


class PromotionService:
    """Service class for coupon and sale definitions"""

    @staticmethod
    def validate_discount(discount_type: str, discount_value) -> Tuple[bool, str]:
        if discount_type not in (pricing.DISCOUNT_PERCENTAGE, pricing.DISCOUNT_FIXED):
            return False, "Discount type must be percentage or fixed"
        try:
            value = Decimal(str(discount_value))
        except (InvalidOperation, TypeError, ValueError):
            return False, "Discount value must be a number"
        if value <= 0:
            return False, "Discount value must be greater than 0"
        if discount_type == pricing.DISCOUNT_PERCENTAGE and value > 100:
            return False, "Percentage discount cannot exceed 100"
        return True, ""

    @staticmethod
    def validate_window(starts_at, ends_at) -> Tuple[bool, str]:
        if not starts_at or not ends_at:
            return False, "Start and end dates are required"
        if ends_at <= starts_at:
            return False, "End date must be after start date"
        return True, ""

    @staticmethod
    def validate_coupon_data(data: Dict, instance: Optional[Coupon] = None) -> Tuple[bool, str]:
        """Validate a full coupon definition (instance values fill in missing keys)"""
        def value(key, default=None):
            if key in data:
                return data[key]
            return getattr(instance, key, default) if instance else default

        code = (value('code') or '').strip()
        if not code:
            return False, "Coupon code is required"
        if not (value('name') or '').strip():
            return False, "Coupon name is required"

        duplicates = Coupon.objects.filter(code__iexact=code)
        if instance is not None:
            duplicates = duplicates.exclude(pk=instance.pk)
        if duplicates.exists():
            return False, "A coupon with this code already exists"

        is_valid, error_msg = PromotionService.validate_discount(
            value('discount_type'), value('discount_value')
        )
        if not is_valid:
            return False, error_msg

        is_valid, error_msg = PromotionService.validate_window(value('starts_at'), value('ends_at'))
        if not is_valid:
            return False, error_msg

        for key in ('usage_limit', 'usage_limit_per_customer'):
            limit = value(key)
            if limit is not None and int(limit) < 1:
                return False, "Usage limits must be at least 1"

        if value('max_discount_amount') is not None and Decimal(str(value('max_discount_amount'))) <= 0:
            return False, "Maximum discount must be greater than 0"

        scope = value('scope', Coupon.SCOPE_STORE_WIDE)
        if scope not in dict(Coupon.SCOPE_CHOICES):
            return False, "Invalid coupon scope"

        if 'product_ids' in data or instance is None:
            product_ids = data.get('product_ids') or []
        else:
            product_ids = list(instance.products.values_list('id', flat=True))
        if 'category_ids' in data or instance is None:
            category_ids = data.get('category_ids') or []
        else:
            category_ids = list(instance.categories.values_list('id', flat=True))

        if scope == Coupon.SCOPE_PRODUCT_SPECIFIC and not product_ids:
            return False, "Product-specific coupons need at least one product"
        if scope == Coupon.SCOPE_CATEGORY_SPECIFIC and not category_ids:
            return False, "Category-specific coupons need at least one category"
        if product_ids and Product.objects.filter(id__in=product_ids).count() != len(set(product_ids)):
            return False, "One or more products do not exist"
        if category_ids and Category.objects.filter(id__in=category_ids).count() != len(set(category_ids)):
            return False, "One or more categories do not exist"

        return True, ""

    @staticmethod
    def _apply_coupon_scope(coupon: Coupon, data: Dict):
        if coupon.scope == Coupon.SCOPE_PRODUCT_SPECIFIC:
            if 'product_ids' in data:
                coupon.products.set(data['product_ids'])
            coupon.categories.clear()
        elif coupon.scope == Coupon.SCOPE_CATEGORY_SPECIFIC:
            if 'category_ids' in data:
                coupon.categories.set(data['category_ids'])
            coupon.products.clear()
        else:
            coupon.products.clear()
            coupon.categories.clear()

    @staticmethod
    @transaction.atomic
    def create_coupon(vendor: User, data: Dict) -> Tuple[Optional[Coupon], str]:
        """
        Create a coupon owned by vendor
        Returns (Coupon, error_message)
        """
        if vendor.marketplace_role not in (User.ROLE_VENDOR, User.ROLE_ADMIN):
            return None, "Only vendors can create coupons"

        is_valid, error_msg = PromotionService.validate_coupon_data(data)
        if not is_valid:
            return None, error_msg

        fields = {key: data[key] for key in COUPON_FIELDS if key in data}
        coupon = Coupon.objects.create(vendor=vendor, usage_count=0, **fields)
        PromotionService._apply_coupon_scope(coupon, data)

        logger.info(f"Coupon {coupon.code} created by vendor {vendor.id}")
        return coupon, ""

    @staticmethod
    @transaction.atomic
    def update_coupon(coupon_id: int, actor: User, data: Dict) -> Tuple[Optional[Coupon], str]:
        try:
            coupon = Coupon.objects.select_for_update().get(pk=coupon_id)
        except Coupon.DoesNotExist:
            return None, "Coupon not found"

        if not can_manage(actor, coupon):
            return None, "You can only modify your own coupons"

        is_valid, error_msg = PromotionService.validate_coupon_data(data, instance=coupon)
        if not is_valid:
            return None, error_msg

        limit = data.get('usage_limit', coupon.usage_limit)
        if limit is not None and coupon.usage_count > int(limit):
            return None, "Usage limit cannot be lower than current usage"

        for key in COUPON_FIELDS:
            if key in data:
                setattr(coupon, key, data[key])
        coupon.save()
        PromotionService._apply_coupon_scope(coupon, data)

        logger.info(f"Coupon {coupon.code} updated by user {actor.id}")
        return coupon, ""

    @staticmethod
    @transaction.atomic
    def delete_coupon(coupon_id: int, actor: User) -> Tuple[bool, str]:
        """Delete a coupon; orders keep their historical discount"""
        coupon = Coupon.objects.filter(pk=coupon_id).first()
        if coupon is None:
            return False, "Coupon not found"
        if not can_manage(actor, coupon):
            return False, "You can only delete your own coupons"

        code = coupon.code
        coupon.delete()
        logger.info(f"Coupon {code} deleted by user {actor.id}")
        return True, ""

    @staticmethod
    def get_coupon_by_id(coupon_id) -> Optional[Coupon]:
        return Coupon.objects.filter(pk=coupon_id).first()

    @staticmethod
    def get_coupon_by_code(code: str) -> Optional[Coupon]:
        if not code:
            return None
        return Coupon.objects.filter(code__iexact=code.strip()).first()

    @staticmethod
    def get_coupons_by_vendor(vendor) -> List[Coupon]:
        return list(Coupon.objects.for_vendor(vendor).prefetch_related('products', 'categories'))

    @staticmethod
    def get_active_coupons(vendor, now=None) -> List[Coupon]:
        return list(Coupon.objects.for_vendor(vendor).active(now))

    # Sales

    @staticmethod
    def validate_sale_data(vendor: User, data: Dict, instance: Optional[Sale] = None) -> Tuple[bool, str]:
        def value(key):
            if key in data:
                return data[key]
            return getattr(instance, key, None) if instance else None

        if not (value('name') or '').strip():
            return False, "Sale name is required"

        is_valid, error_msg = PromotionService.validate_discount(
            value('discount_type'), value('discount_value')
        )
        if not is_valid:
            return False, error_msg

        is_valid, error_msg = PromotionService.validate_window(value('starts_at'), value('ends_at'))
        if not is_valid:
            return False, error_msg

        if 'product_ids' in data or instance is None:
            product_ids = set(data.get('product_ids') or [])
            if not product_ids:
                return False, "A sale needs at least one product"
            products = Product.objects.filter(id__in=product_ids)
            if vendor.marketplace_role != User.ROLE_ADMIN:
                products = products.filter(vendor=vendor)
            if products.count() != len(product_ids):
                return False, "Sale products must exist and belong to the vendor"

        return True, ""

    @staticmethod
    @transaction.atomic
    def create_sale(vendor: User, data: Dict) -> Tuple[Optional[Sale], str]:
        if vendor.marketplace_role not in (User.ROLE_VENDOR, User.ROLE_ADMIN):
            return None, "Only vendors can create sales"

        is_valid, error_msg = PromotionService.validate_sale_data(vendor, data)
        if not is_valid:
            return None, error_msg

        fields = {key: data[key] for key in SALE_FIELDS if key in data}
        sale = Sale.objects.create(vendor=vendor, **fields)
        sale.products.set(data['product_ids'])

        logger.info(f"Sale {sale.id} created by vendor {vendor.id} on {len(data['product_ids'])} products")
        return sale, ""

    @staticmethod
    @transaction.atomic
    def update_sale(sale_id: int, actor: User, data: Dict) -> Tuple[Optional[Sale], str]:
        try:
            sale = Sale.objects.select_for_update().get(pk=sale_id)
        except Sale.DoesNotExist:
            return None, "Sale not found"

        if not can_manage(actor, sale):
            return None, "You can only modify your own sales"

        is_valid, error_msg = PromotionService.validate_sale_data(actor, data, instance=sale)
        if not is_valid:
            return None, error_msg

        for key in SALE_FIELDS:
            if key in data:
                setattr(sale, key, data[key])
        sale.save()
        if 'product_ids' in data:
            sale.products.set(data['product_ids'])

        logger.info(f"Sale {sale.id} updated by user {actor.id}")
        return sale, ""

    @staticmethod
    @transaction.atomic
    def delete_sale(sale_id: int, actor: User) -> Tuple[bool, str]:
        sale = Sale.objects.filter(pk=sale_id).first()
        if sale is None:
            return False, "Sale not found"
        if not can_manage(actor, sale):
            return False, "You can only delete your own sales"

        sale.delete()
        logger.info(f"Sale {sale_id} deleted by user {actor.id}")
        return True, ""

    @staticmethod
    def get_sale_by_id(sale_id) -> Optional[Sale]:
        return Sale.objects.filter(pk=sale_id).first()

    @staticmethod
    def get_sales_by_vendor(vendor) -> List[Sale]:
        return list(Sale.objects.for_vendor(vendor).prefetch_related('products'))

    @staticmethod
    def get_active_sales(vendor=None, now=None) -> List[Sale]:
        sales = Sale.objects.active(now)
        if vendor is not None:
            sales = sales.for_vendor(vendor)
        return list(sales)

    @staticmethod
    def get_products_on_sale(vendor, now=None) -> List[Product]:
        """Distinct products of the vendor currently covered by an active sale"""
        now = now or timezone.now()
        active_sales = Sale.objects.active(now)
        return list(
            Product.objects.filter(vendor=vendor, sales__in=active_sales)
            .distinct()
            .prefetch_related(Prefetch('sales', queryset=active_sales, to_attr='active_sales'))
        )
