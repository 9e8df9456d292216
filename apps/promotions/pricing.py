"""
Money arithmetic shared by coupons, sales and checkout.

Every amount leaving this module is a Decimal rounded to two places.
"""
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')
HUNDRED = Decimal('100')

DISCOUNT_PERCENTAGE = 'percentage'
DISCOUNT_FIXED = 'fixed'

STATUS_ACTIVE = 'active'
STATUS_SCHEDULED = 'scheduled'
STATUS_EXPIRED = 'expired'
STATUS_DISABLED = 'disabled'


def to_money(value) -> Decimal:
    """Convert int/float/str/Decimal to a 2-place Decimal"""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def promotion_status(starts_at, ends_at, is_disabled=False, now=None) -> str:
    """
    Derive a promotion's lifecycle status from its window [starts_at, ends_at).

    A disabled promotion stays disabled whatever the dates say.
    """
    if is_disabled:
        return STATUS_DISABLED
    now = now or timezone.now()
    if now < starts_at:
        return STATUS_SCHEDULED
    if now >= ends_at:
        return STATUS_EXPIRED
    return STATUS_ACTIVE


def calculate_coupon_discount(discount_type, discount_value, order_total, max_discount_amount=None) -> Decimal:
    """Discount granted by a coupon on an order total, never more than the total"""
    order_total = to_money(order_total)
    if order_total <= ZERO:
        return ZERO

    value = Decimal(str(discount_value))
    if discount_type == DISCOUNT_PERCENTAGE:
        discount = to_money(order_total * value / HUNDRED)
        if max_discount_amount is not None:
            discount = min(discount, to_money(max_discount_amount))
    else:
        discount = to_money(value)

    return max(ZERO, min(discount, order_total))


def calculate_sale_price(discount_type, discount_value, list_price):
    """Return (sale_price, discount) for a list price under a sale"""
    list_price = to_money(list_price)
    value = Decimal(str(discount_value))

    if discount_type == DISCOUNT_PERCENTAGE:
        discount = to_money(list_price * value / HUNDRED)
    else:
        # Fixed amounts are capped at evaluation time
        discount = to_money(value)
    discount = max(ZERO, min(discount, list_price))

    sale_price = max(ZERO, list_price - discount)
    return sale_price, discount
