from django.conf import settings
from django.db import models


class Product(models.Model):
    """Catalog product listed by a vendor"""

    STATUS_ACTIVE = 1
    STATUS_DRAFT = 0
    STATUS_INACTIVE = -1

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_DRAFT, 'Draft'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='products'
    )
    category = models.ForeignKey('Category', on_delete=models.SET_NULL, null=True, blank=True)

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    image = models.URLField(max_length=500, blank=True, default='')
    price = models.DecimalField(max_digits=10, decimal_places=2, help_text="List price")

    status = models.IntegerField(choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Inventory
    track_quantity = models.BooleanField(default=True, help_text="Whether stock is tracked")
    inventory = models.IntegerField(default=0, help_text="Stock quantity")
    sold = models.IntegerField(default=0, help_text="Sold quantity")

    create_time = models.DateTimeField(auto_now_add=True)
    update_time = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['vendor']),
            models.Index(fields=['create_time']),
        ]

    def __str__(self):
        return f"{self.name} (id: {self.id})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def in_stock(self, quantity=1):
        """Check stock for the requested quantity; untracked stock is unlimited"""
        if not self.track_quantity:
            return True
        return self.inventory >= quantity
