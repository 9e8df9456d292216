"""
Checkout tests: pricing, coupon redemption, stock and new-order notifications
"""
from decimal import Decimal

from django.test import TestCase

from apps.notifications.models import Notification
from apps.orders.models import Order
from apps.orders.services import OrderService
from apps.products.models import Product
from apps.promotions.models import Coupon, CouponUsage
from tests.factories import CouponFactory, ProductFactory, SaleFactory, UserFactory, VendorFactory


class CreateOrderTest(TestCase):

    def setUp(self):
        self.buyer = UserFactory(first_name='Ama', last_name='Mensah')
        self.vendor = VendorFactory(business_name='Kente House')
        self.product = ProductFactory(vendor=self.vendor, price=Decimal('100.00'), inventory=10)

    def test_prices_lines_and_decrements_stock(self):
        order, error_msg = OrderService.create_order(
            self.buyer,
            [{'product_id': self.product.id, 'quantity': 3, 'variations': {'size': 'L'}}],
            shipping_fee=Decimal('10.00'),
            tax=Decimal('5.00'),
        )

        self.assertEqual(error_msg, "")
        self.assertEqual(order.subtotal, Decimal('300.00'))
        self.assertEqual(order.total, Decimal('315.00'))
        self.assertEqual(order.status, Order.STATUS_PENDING)

        item = order.items.get()
        self.assertEqual(item.vendor_name, 'Kente House')
        self.assertEqual(item.unit_price, Decimal('100.00'))
        self.assertEqual(item.variations, {'size': 'L'})

        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory, 7)
        self.assertEqual(self.product.sold, 3)

    def test_sale_price_is_frozen_on_the_line(self):
        SaleFactory(vendor=self.vendor, products=[self.product], discount_value=Decimal('20'))

        order, _ = OrderService.create_order(self.buyer, [{'product_id': self.product.id, 'quantity': 2}])

        item = order.items.get()
        self.assertEqual(item.list_price, Decimal('100.00'))
        self.assertEqual(item.unit_price, Decimal('80.00'))
        self.assertEqual(item.sale_discount, Decimal('20.00'))
        self.assertEqual(order.subtotal, Decimal('160.00'))

    def test_coupon_applies_to_issuing_vendor_lines_only(self):
        other = ProductFactory(price=Decimal('50.00'))
        coupon = CouponFactory(vendor=self.vendor, code='KENTE10', discount_value=Decimal('10'))

        order, error_msg = OrderService.create_order(
            self.buyer,
            [{'product_id': self.product.id, 'quantity': 2}, {'product_id': other.id, 'quantity': 1}],
            coupon_code='kente10',
        )

        self.assertEqual(error_msg, "")
        self.assertEqual(order.discount_amount, Decimal('20.00'))
        self.assertEqual(order.subtotal, Decimal('230.00'))
        self.assertEqual(order.coupon_code, 'KENTE10')
        coupon.refresh_from_db()
        self.assertEqual(coupon.usage_count, 1)
        self.assertEqual(CouponUsage.objects.get(coupon=coupon).count, 1)

    def test_coupon_from_vendor_not_in_cart_is_rejected(self):
        CouponFactory(code='ELSEWHERE')

        order, error_msg = OrderService.create_order(
            self.buyer, [{'product_id': self.product.id, 'quantity': 1}], coupon_code='ELSEWHERE'
        )

        self.assertIsNone(order)
        self.assertEqual(error_msg, "This coupon is not valid for this store")

    def test_rejected_coupon_leaves_no_trace(self):
        coupon = CouponFactory(vendor=self.vendor, code='BIGSPEND', min_order_amount=Decimal('500'))

        order, error_msg = OrderService.create_order(
            self.buyer, [{'product_id': self.product.id, 'quantity': 1}], coupon_code='BIGSPEND'
        )

        self.assertIsNone(order)
        self.assertEqual(error_msg, "Minimum order amount is GHS 500.00")
        self.assertFalse(Order.objects.exists())
        self.product.refresh_from_db()
        self.assertEqual(self.product.inventory, 10)
        self.assertEqual(Coupon.objects.get(pk=coupon.pk).usage_count, 0)

    def test_missing_inactive_and_short_products(self):
        inactive = ProductFactory(status=Product.STATUS_INACTIVE)

        cases = [
            ([{'product_id': 999999, 'quantity': 1}], "Product 999999 not found"),
            ([{'product_id': inactive.id, 'quantity': 1}], f"{inactive.name} is no longer available"),
            ([{'product_id': self.product.id, 'quantity': 11}], f"Only 10 of {self.product.name} left in stock"),
            ([], "Order must contain at least one item"),
            ([{'product_id': self.product.id, 'quantity': 0}], "Quantity must be a positive whole number"),
        ]
        for items, expected in cases:
            order, error_msg = OrderService.create_order(self.buyer, items)
            self.assertIsNone(order)
            self.assertEqual(error_msg, expected)
        self.assertFalse(Order.objects.exists())

    def test_untracked_products_skip_stock_checks(self):
        untracked = ProductFactory(track_quantity=False, inventory=0)

        order, error_msg = OrderService.create_order(self.buyer, [{'product_id': untracked.id, 'quantity': 40}])

        self.assertEqual(error_msg, "")
        untracked.refresh_from_db()
        self.assertEqual(untracked.inventory, 0)
        self.assertEqual(untracked.sold, 40)

    def test_each_vendor_is_told_its_share(self):
        second_vendor = VendorFactory()
        second = ProductFactory(vendor=second_vendor, price=Decimal('25.50'))

        order, _ = OrderService.create_order(
            self.buyer,
            [{'product_id': self.product.id, 'quantity': 1}, {'product_id': second.id, 'quantity': 2}],
        )

        self.assertFalse(Notification.objects.filter(recipient=self.buyer).exists())
        note = Notification.objects.get(recipient=second_vendor)
        self.assertEqual(note.type, Notification.TYPE_ORDER_NEW)
        self.assertEqual(note.title, 'New Order Received')
        self.assertEqual(
            note.message, f"You have a new order #{order.order_number} from Ama Mensah for GHS 51.00"
        )
        self.assertEqual(Notification.objects.filter(recipient=self.vendor).count(), 1)
