"""
Core order service for checkout, status lifecycle, payment status and queries.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F, Sum
from django.utils import timezone

from apps.notifications.services import DispatchOutcome, NotificationService
from apps.products.models import Product
from apps.promotions.pricing import ZERO, to_money
from apps.promotions.services import DiscountService, PromotionService
from apps.users.models import User
from ..models import Order, OrderItem
from ..transitions import can_change_payment, can_transition

logger = logging.getLogger(__name__)


@dataclass
class StatusChangeResult:
    success: bool
    message: str
    order: Optional[Order] = None
    outcomes: List[DispatchOutcome] = field(default_factory=list)


class OrderService:
    """Service class for core order business logic"""

    @staticmethod
    def validate_order_items(items: List[Dict]) -> Tuple[bool, str]:
        """Validate the shape of checkout items"""
        if not items:
            return False, "Order must contain at least one item"

        for item in items:
            if not item.get('product_id'):
                return False, "Each item must have a product_id"
            quantity = item.get('quantity')
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                return False, "Quantity must be a positive whole number"

        return True, ""

    @staticmethod
    def create_order(buyer: User, items: List[Dict], shipping_fee=ZERO, tax=ZERO, coupon_code: str = None,
                     payment_method: str = '', shipping_address: Dict = None,
                     notes: str = '') -> Tuple[Optional[Order], str]:
        """
        Create an order from checkout items
        Returns (Order, error_message)
        """
        try:
            order, error_msg = OrderService._create_order(
                buyer, items, shipping_fee, tax, coupon_code, payment_method, shipping_address, notes
            )
        except DatabaseError as e:
            logger.error(f"Order creation failed for buyer {buyer.id}: {e}")
            return None, "Failed to create order, please try again"

        if order is not None:
            NotificationService.notify_new_order(order)
        return order, error_msg

    @staticmethod
    @transaction.atomic
    def _create_order(buyer, items, shipping_fee, tax, coupon_code, payment_method, shipping_address, notes):
        is_valid, error_msg = OrderService.validate_order_items(items)
        if not is_valid:
            return None, error_msg

        shipping_fee = to_money(shipping_fee)
        tax = to_money(tax)
        if shipping_fee < ZERO or tax < ZERO:
            return None, "Shipping fee and tax cannot be negative"

        # Lock catalog rows so stock checks and decrements agree
        requested = {}
        for item in items:
            key = str(item['product_id'])
            requested[key] = requested.get(key, 0) + item['quantity']
        products = {
            str(product.id): product
            for product in Product.objects.select_for_update().select_related('vendor').filter(
                id__in=[int(key) for key in requested if key.isdigit()]
            )
        }

        for key, quantity in requested.items():
            product = products.get(key)
            if product is None:
                return None, f"Product {key} not found"
            if not product.is_active:
                return None, f"{product.name} is no longer available"
            if not product.in_stock(quantity):
                return None, f"Only {product.inventory} of {product.name} left in stock"

        prices = DiscountService.compute_sale_prices(products.values())

        lines = []
        for item in items:
            product = products[str(item['product_id'])]
            price = prices[str(product.id)]
            lines.append({
                'product': product,
                'quantity': item['quantity'],
                'variations': item.get('variations') or {},
                'price': price,
                'amount': to_money(price.sale_price * item['quantity']),
            })

        merchandise_total = sum((line['amount'] for line in lines), ZERO)

        discount = ZERO
        applied_code = ''
        if coupon_code:
            discount, error_msg = OrderService._redeem_coupon(buyer, coupon_code, lines)
            if discount is None:
                return None, error_msg
            applied_code = coupon_code.strip().upper()

        subtotal = merchandise_total - discount
        order = Order.objects.create(
            buyer=buyer,
            subtotal=subtotal,
            discount_amount=discount,
            coupon_code=applied_code,
            shipping_fee=shipping_fee,
            tax=tax,
            total=subtotal + shipping_fee + tax,
            payment_method=payment_method or '',
            shipping_address=shipping_address or {},
            notes=notes or '',
        )

        for position, line in enumerate(lines):
            product = line['product']
            price = line['price']
            OrderItem.objects.create(
                order=order,
                position=position,
                product=product,
                product_name=product.name,
                vendor_id=product.vendor_id,
                vendor_name=product.vendor.display_name,
                quantity=line['quantity'],
                unit_price=price.sale_price,
                list_price=price.list_price,
                sale_discount=price.discount,
                variations=line['variations'],
                image=product.image,
                amount=line['amount'],
            )

        for key, quantity in requested.items():
            product = products[key]
            if product.track_quantity:
                Product.objects.filter(pk=product.pk).update(
                    inventory=F('inventory') - quantity, sold=F('sold') + quantity
                )
            else:
                Product.objects.filter(pk=product.pk).update(sold=F('sold') + quantity)

        logger.info(
            f"Order {order.order_number} created for buyer {buyer.id}: "
            f"{len(lines)} lines, total {order.total}, discount {discount}"
        )
        return order, ""

    @staticmethod
    def _redeem_coupon(buyer, coupon_code, lines) -> Tuple[Optional[Decimal], str]:
        """Validate then redeem a coupon against the issuing vendor's lines"""
        coupon = PromotionService.get_coupon_by_code(coupon_code)
        if coupon is None:
            return None, "Invalid coupon code"

        vendor_lines = [line for line in lines if line['product'].vendor_id == coupon.vendor_id]
        base = sum((line['amount'] for line in vendor_lines), ZERO)
        product_ids = [str(line['product'].id) for line in vendor_lines]
        category_ids = [str(line['product'].category_id) for line in vendor_lines if line['product'].category_id]

        validation = DiscountService.validate_coupon(
            coupon.code,
            coupon.vendor_id if vendor_lines else None,
            buyer.id,
            base,
            product_ids,
            category_ids,
        )
        if not validation.valid:
            return None, validation.error

        return DiscountService.apply_coupon(coupon.id, buyer.id, base, product_ids, category_ids)

    @staticmethod
    def check_access(order: Order, actor: User) -> Tuple[bool, str]:
        """Whether actor may act on order under its role"""
        role = actor.marketplace_role
        if role == User.ROLE_ADMIN:
            return True, ""
        if role == User.ROLE_VENDOR:
            if not order.items.filter(vendor=actor).exists():
                return False, "You have no items in this order"
            return True, ""
        if order.buyer_id != actor.id:
            return False, "You can only update your own orders"
        return True, ""

    @staticmethod
    def update_order_status(order_id, new_status: str, actor: User,
                            expected_version: Optional[int] = None) -> StatusChangeResult:
        """
        Move an order to new_status if the actor's role allows it.
        Rejections leave the order untouched and notify nobody.
        """
        if new_status not in dict(Order.STATUS_CHOICES):
            return StatusChangeResult(False, f"Invalid status: {new_status}")

        with transaction.atomic():
            order = OrderService._lock_order(order_id)
            if order is None:
                return StatusChangeResult(False, "Order not found")

            allowed, error_msg = OrderService.check_access(order, actor)
            if not allowed:
                return StatusChangeResult(False, error_msg, order)

            if expected_version is not None and int(expected_version) != order.version:
                return StatusChangeResult(False, "Order was modified by someone else, please refresh", order)

            old_status = order.status
            if not can_transition(old_status, new_status, actor.marketplace_role):
                return StatusChangeResult(
                    False, f"Cannot change order from {old_status} to {new_status}", order
                )

            Order.objects.filter(pk=order.pk, version=order.version).update(
                status=new_status, version=F('version') + 1, updated_at=timezone.now()
            )
            if new_status == Order.STATUS_CANCELLED:
                OrderService._restore_stock(order)
            order.refresh_from_db()

        logger.info(
            f"Order {order.order_number} moved {old_status} -> {new_status} "
            f"by {actor.marketplace_role} {actor.id}"
        )
        outcomes = NotificationService.dispatch_order_status_change(order, old_status, new_status, actor)
        return StatusChangeResult(True, f"Order status updated to {new_status}", order, outcomes)

    @staticmethod
    def update_payment_status(order_id, payment_status: str) -> Tuple[Optional[Order], str]:
        """Record a payment status reported by the payment collaborator"""
        with transaction.atomic():
            order = OrderService._lock_order(order_id)
            if order is None:
                return None, "Order not found"

            old_payment_status = order.payment_status
            if not can_change_payment(old_payment_status, payment_status):
                return None, f"Cannot change payment from {old_payment_status} to {payment_status}"

            order.payment_status = payment_status
            order.save(update_fields=['payment_status', 'updated_at'])

        logger.info(f"Order {order.order_number} payment {old_payment_status} -> {payment_status}")
        if payment_status == Order.PAYMENT_PAID:
            NotificationService.notify_payment_received(order)
        return order, ""

    @staticmethod
    def _restore_stock(order: Order):
        """Undo checkout's stock movement for every line whose product still exists"""
        for item in order.items.select_related('product'):
            product = item.product
            if product is None:
                continue
            if product.track_quantity:
                Product.objects.filter(pk=product.pk).update(
                    inventory=F('inventory') + item.quantity, sold=F('sold') - item.quantity
                )
            else:
                Product.objects.filter(pk=product.pk).update(sold=F('sold') - item.quantity)
        logger.info(f"Restored stock for cancelled order {order.order_number}")

    @staticmethod
    def _lock_order(order_id) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(pk=order_id).first()
        except (ValueError, ValidationError):
            return None

    @staticmethod
    def get_order(order_id) -> Optional[Order]:
        try:
            return Order.objects.select_related('buyer').prefetch_related('items').filter(pk=order_id).first()
        except (ValueError, ValidationError):
            return None

    @staticmethod
    def get_orders_by_buyer(buyer, status: str = None) -> List[Order]:
        orders = Order.objects.filter(buyer=buyer).prefetch_related('items')
        if status:
            orders = orders.filter(status=status)
        return list(orders)

    @staticmethod
    def get_orders_by_vendor(vendor, status: str = None) -> List[Order]:
        orders = Order.objects.filter(items__vendor=vendor).distinct().prefetch_related('items')
        if status:
            orders = orders.filter(status=status)
        return list(orders)

    @staticmethod
    def get_order_stats(vendor=None) -> Dict:
        """
        Order counts by lifecycle bucket plus revenue. For a vendor, revenue
        is the vendor's own line amounts; otherwise it is the total of paid orders.
        """
        open_statuses = [Order.STATUS_PENDING, Order.STATUS_CONFIRMED, Order.STATUS_PROCESSING]

        if vendor is not None:
            orders = Order.objects.filter(items__vendor=vendor).distinct()
            revenue = OrderItem.objects.filter(vendor=vendor).aggregate(total=Sum('amount'))['total']
        else:
            orders = Order.objects.all()
            revenue = orders.filter(payment_status=Order.PAYMENT_PAID).aggregate(total=Sum('total'))['total']

        return {
            'total_orders': orders.count(),
            'pending_orders': orders.filter(status__in=open_statuses).count(),
            'completed_orders': orders.filter(status=Order.STATUS_DELIVERED).count(),
            'cancelled_orders': orders.filter(status=Order.STATUS_CANCELLED).count(),
            'total_revenue': to_money(revenue or ZERO),
        }
