from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.promotions import pricing


class PromotionQuerySet(models.QuerySet):
    def active(self, now=None):
        """Promotions whose window contains `now` and that are not disabled"""
        now = now or timezone.now()
        return self.filter(is_disabled=False, starts_at__lte=now, ends_at__gt=now)

    def for_vendor(self, vendor):
        return self.filter(vendor=vendor)


class Promotion(models.Model):
    """Fields and derived status shared by coupons and sales"""

    DISCOUNT_TYPE_CHOICES = [
        (pricing.DISCOUNT_PERCENTAGE, 'Percentage'),
        (pricing.DISCOUNT_FIXED, 'Fixed amount'),
    ]

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='%(class)ss'
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')

    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)

    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    is_disabled = models.BooleanField(default=False, help_text="Disabled promotions never become active again")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PromotionQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def status(self):
        return self.status_at()

    def status_at(self, now=None):
        return pricing.promotion_status(self.starts_at, self.ends_at, self.is_disabled, now)

    def is_active(self, now=None):
        return self.status_at(now) == pricing.STATUS_ACTIVE
