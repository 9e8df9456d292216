from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account: a buyer, a vendor selling products, or an admin"""

    ROLE_BUYER = 'buyer'
    ROLE_VENDOR = 'vendor'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = [
        (ROLE_BUYER, 'Buyer'),
        (ROLE_VENDOR, 'Vendor'),
        (ROLE_ADMIN, 'Admin'),
    ]

    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_BUYER)
    phone = models.CharField(max_length=20, unique=True, null=True, blank=True)
    business_name = models.CharField(
        max_length=200, blank=True, default='',
        help_text="Store name shown to buyers (vendors only)"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['role']),
        ]

    def __str__(self):
        return self.username or self.phone or f"User {self.id}"

    @property
    def marketplace_role(self):
        """Role used for permission checks; staff accounts act as admins"""
        if self.is_staff or self.is_superuser:
            return self.ROLE_ADMIN
        return self.role

    @property
    def is_vendor(self):
        return self.role == self.ROLE_VENDOR

    @property
    def display_name(self):
        if self.is_vendor and self.business_name:
            return self.business_name
        full_name = self.get_full_name()
        return full_name or self.username
