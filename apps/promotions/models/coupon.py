from django.conf import settings
from django.db import models
from django.db.models import F, Q

from apps.promotions import pricing
from .base import Promotion


class Coupon(Promotion):
    """Vendor coupon redeemed by code at checkout"""

    SCOPE_STORE_WIDE = 'store_wide'
    SCOPE_PRODUCT_SPECIFIC = 'product_specific'
    SCOPE_CATEGORY_SPECIFIC = 'category_specific'

    SCOPE_CHOICES = [
        (SCOPE_STORE_WIDE, 'Store wide'),
        (SCOPE_PRODUCT_SPECIFIC, 'Specific products'),
        (SCOPE_CATEGORY_SPECIFIC, 'Specific categories'),
    ]

    code = models.CharField(max_length=50, unique=True, help_text="Stored upper-case")
    scope = models.CharField(max_length=20, choices=SCOPE_CHOICES, default=SCOPE_STORE_WIDE)
    products = models.ManyToManyField('products.Product', blank=True, related_name='coupons')
    categories = models.ManyToManyField('products.Category', blank=True, related_name='coupons')

    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    max_discount_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        help_text="Cap for percentage discounts"
    )

    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    usage_limit_per_customer = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        db_table = 'coupons'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['vendor']),
            models.Index(fields=['starts_at', 'ends_at']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(usage_count__lte=F('usage_limit')),
                name='coupon_usage_within_limit',
            ),
        ]

    def __str__(self):
        return f"Coupon {self.code}"

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def calculate_discount(self, order_total):
        return pricing.calculate_coupon_discount(
            self.discount_type, self.discount_value, order_total, self.max_discount_amount
        )


class CouponUsage(models.Model):
    """How many times one customer has redeemed one coupon"""

    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name='customer_usage')
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='coupon_usage'
    )
    count = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'coupon_usage'
        constraints = [
            models.UniqueConstraint(fields=['coupon', 'customer'], name='unique_coupon_customer'),
        ]

    def __str__(self):
        return f"{self.customer_id} used {self.coupon_id} x{self.count}"
