from decimal import Decimal

from django.conf import settings
from django.db import models


class OrderItem(models.Model):
    """Order line with prices frozen at purchase time"""

    order = models.ForeignKey('Order', on_delete=models.CASCADE, related_name='items')
    position = models.PositiveIntegerField(default=0)

    product = models.ForeignKey('products.Product', on_delete=models.SET_NULL, null=True, related_name='+')
    product_name = models.CharField(max_length=200)
    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='sold_items'
    )
    vendor_name = models.CharField(max_length=200, blank=True, default='')

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, help_text="Price paid per unit")
    list_price = models.DecimalField(max_digits=10, decimal_places=2, help_text="List price at purchase")
    sale_discount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'), help_text="Sale discount per unit"
    )
    variations = models.JSONField(default=dict, blank=True)
    image = models.URLField(max_length=500, blank=True, default='')
    amount = models.DecimalField(max_digits=12, decimal_places=2, help_text="quantity * unit_price")

    class Meta:
        db_table = 'order_items'
        ordering = ['position', 'id']
        indexes = [
            models.Index(fields=['vendor']),
        ]

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    def save(self, *args, **kwargs):
        if self.amount is None:
            self.amount = self.unit_price * self.quantity
        super().save(*args, **kwargs)
