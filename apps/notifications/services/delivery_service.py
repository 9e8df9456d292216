"""
Outbox processing for email and SMS deliveries.

A delivery is claimed with a conditional update before it is sent, so two
workers never send the same row. Failures back off exponentially until
NOTIFICATION_MAX_ATTEMPTS, after which the row is marked failed.
"""
import logging
import smtplib
from datetime import timedelta
from typing import Dict, Optional, Tuple

import certifi
import requests
from django.conf import settings
from django.core.mail import send_mail
from django.db.models import F
from django.utils import timezone

from ..models import Notification, NotificationDelivery

logger = logging.getLogger(__name__)


class SmsGateway:
    """HTTP SMS gateway client"""

    def __init__(self):
        self.url = settings.SMS_GATEWAY_URL
        self.api_key = settings.SMS_GATEWAY_API_KEY
        self.sender = settings.SMS_GATEWAY_SENDER
        self.timeout = settings.SMS_GATEWAY_TIMEOUT
        self.verify_ssl = getattr(settings, 'SMS_GATEWAY_CA_BUNDLE', '') or certifi.where()

    def send(self, phone: str, message: str) -> Tuple[bool, Optional[str]]:
        """Returns (sent, error_message)"""
        if not self.url:
            return False, "SMS gateway is not configured"

        try:
            response = requests.post(
                self.url,
                json={'to': phone, 'from': self.sender, 'message': message},
                headers={'Authorization': f'Bearer {self.api_key}'},
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
            response.raise_for_status()
        except requests.Timeout:
            return False, f"SMS gateway timed out after {self.timeout}s"
        except requests.RequestException as e:
            return False, f"Network error: {str(e)}"

        return True, None


class NotificationDeliveryService:
    """Service class for sending queued external deliveries"""

    @staticmethod
    def retry_delay(attempts: int) -> timedelta:
        return timedelta(seconds=settings.NOTIFICATION_RETRY_BASE_SECONDS * (2 ** max(attempts - 1, 0)))

    @staticmethod
    def send_email(notification: Notification) -> Tuple[bool, Optional[str]]:
        address = notification.recipient.email
        if not address:
            return False, "Recipient has no email address"
        try:
            send_mail(
                notification.title,
                notification.message,
                settings.DEFAULT_FROM_EMAIL,
                [address],
                fail_silently=False,
            )
        except (smtplib.SMTPException, OSError, ValueError) as e:
            return False, f"Email error: {str(e)}"
        return True, None

    @staticmethod
    def send_sms(notification: Notification, gateway: SmsGateway = None) -> Tuple[bool, Optional[str]]:
        phone = notification.recipient.phone
        if not phone:
            return False, "Recipient has no phone number"
        gateway = gateway or SmsGateway()
        return gateway.send(phone, f"{notification.title}: {notification.message}")

    @staticmethod
    def _claim(delivery: NotificationDelivery, now) -> bool:
        """Take the row for one attempt; False if another worker got it first"""
        lease = now + NotificationDeliveryService.retry_delay(delivery.attempts + 1)
        return bool(
            NotificationDelivery.objects.filter(
                pk=delivery.pk, status=NotificationDelivery.STATUS_PENDING, attempts=delivery.attempts
            ).update(attempts=F('attempts') + 1, next_attempt_at=lease)
        )

    @staticmethod
    def deliver(delivery: NotificationDelivery, gateway: SmsGateway = None, now=None) -> str:
        """Attempt one delivery and record the result; returns the resulting status"""
        now = now or timezone.now()
        if not NotificationDeliveryService._claim(delivery, now):
            return 'skipped'
        delivery.attempts += 1

        notification = delivery.notification
        if delivery.channel == Notification.CHANNEL_EMAIL:
            sent, error_msg = NotificationDeliveryService.send_email(notification)
        else:
            sent, error_msg = NotificationDeliveryService.send_sms(notification, gateway)

        if sent:
            delivery.status = NotificationDelivery.STATUS_SENT
            delivery.sent_at = timezone.now()
            delivery.last_error = ''
            delivery.save(update_fields=['status', 'sent_at', 'last_error'])
            return delivery.status

        delivery.last_error = error_msg or ''
        if delivery.attempts >= settings.NOTIFICATION_MAX_ATTEMPTS:
            delivery.status = NotificationDelivery.STATUS_FAILED
            logger.error(
                f"Giving up on {delivery.channel} delivery {delivery.id} after {delivery.attempts} attempts: {error_msg}"
            )
        else:
            delivery.next_attempt_at = now + NotificationDeliveryService.retry_delay(delivery.attempts)
            logger.warning(f"{delivery.channel} delivery {delivery.id} failed, will retry: {error_msg}")
        delivery.save(update_fields=['status', 'last_error', 'next_attempt_at'])
        return 'retrying' if delivery.status == NotificationDelivery.STATUS_PENDING else delivery.status

    @staticmethod
    def process_pending(limit: int = 100, now=None) -> Dict[str, int]:
        """Send due deliveries; one failing delivery never stops the batch"""
        now = now or timezone.now()
        due = (
            NotificationDelivery.objects
            .filter(status=NotificationDelivery.STATUS_PENDING, next_attempt_at__lte=now)
            .select_related('notification__recipient')
            .order_by('next_attempt_at', 'id')[:limit]
        )

        gateway = SmsGateway()
        summary = {'sent': 0, 'retrying': 0, 'failed': 0, 'skipped': 0}
        for delivery in list(due):
            result = NotificationDeliveryService.deliver(delivery, gateway=gateway, now=now)
            summary[result] += 1

        logger.info(f"Processed notification outbox: {summary}")
        return summary
