from django.conf import settings
from django.db import models
from django.utils import timezone


class Notification(models.Model):
    """In-app notification record; channels lists every channel it was sent on"""

    TYPE_ORDER_STATUS = 'order_status'
    TYPE_ORDER_NEW = 'order_new'
    TYPE_PAYMENT = 'payment'
    TYPE_REVIEW = 'review'
    TYPE_SYSTEM = 'system'

    TYPE_CHOICES = [
        (TYPE_ORDER_STATUS, 'Order status'),
        (TYPE_ORDER_NEW, 'New order'),
        (TYPE_PAYMENT, 'Payment'),
        (TYPE_REVIEW, 'Review'),
        (TYPE_SYSTEM, 'System'),
    ]

    CHANNEL_IN_APP = 'in_app'
    CHANNEL_EMAIL = 'email'
    CHANNEL_SMS = 'sms'

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    order = models.ForeignKey(
        'orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='notifications'
    )
    product = models.ForeignKey(
        'products.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    is_read = models.BooleanField(default=False)
    channels = models.JSONField(default=list)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['recipient', 'is_read']),
            models.Index(fields=['recipient', 'created_at']),
        ]

    def __str__(self):
        return f"{self.type} to {self.recipient_id}: {self.title}"


class NotificationDelivery(models.Model):
    """Outbox row for one external channel of one notification"""

    STATUS_PENDING = 'pending'
    STATUS_SENT = 'sent'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SENT, 'Sent'),
        (STATUS_FAILED, 'Failed'),
    ]

    CHANNEL_CHOICES = [
        (Notification.CHANNEL_EMAIL, 'Email'),
        (Notification.CHANNEL_SMS, 'SMS'),
    ]

    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name='deliveries')
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default='')
    next_attempt_at = models.DateTimeField(default=timezone.now)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notification_deliveries'
        ordering = ['next_attempt_at', 'id']
        indexes = [
            models.Index(fields=['status', 'next_attempt_at']),
        ]

    def __str__(self):
        return f"{self.channel} delivery of {self.notification_id} ({self.status})"
