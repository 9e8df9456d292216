from django.conf import settings
from django.db import models


class NotificationPreference(models.Model):
    """Per-user channel switches and category flags"""

    FLAG_FIELDS = (
        'email', 'sms', 'in_app', 'order_updates', 'new_orders',
        'payment_alerts', 'review_alerts', 'marketing_messages',
    )

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notification_preference'
    )

    # Channels
    email = models.BooleanField(default=True)
    sms = models.BooleanField(default=True)
    in_app = models.BooleanField(default=True)

    # Categories
    order_updates = models.BooleanField(default=True)
    new_orders = models.BooleanField(default=True)
    payment_alerts = models.BooleanField(default=True)
    review_alerts = models.BooleanField(default=True)
    marketing_messages = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'notification_preferences'

    def __str__(self):
        return f"Notification preferences of {self.user_id}"

    def as_dict(self):
        return {name: getattr(self, name) for name in self.FLAG_FIELDS}
