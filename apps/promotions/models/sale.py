from django.db import models

from apps.promotions import pricing
from .base import Promotion


class Sale(Promotion):
    """Time-boxed price reduction on an explicit set of products"""

    products = models.ManyToManyField('products.Product', related_name='sales')

    class Meta:
        db_table = 'sales'
        # First matching sale wins, so creation order matters
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['vendor']),
            models.Index(fields=['starts_at', 'ends_at']),
        ]

    def __str__(self):
        return f"Sale {self.name}"

    def price_for(self, list_price):
        """(sale_price, discount) for a product listed at list_price"""
        return pricing.calculate_sale_price(self.discount_type, self.discount_value, list_price)
