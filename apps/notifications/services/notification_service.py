"""
Notification fan-out, channel selection and the per-user inbox.

Every recipient is written inside its own savepoint so one failure cannot
drop or roll back the notifications of the others.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.promotions.pricing import to_money
from ..models import Notification, NotificationDelivery, NotificationPreference

logger = logging.getLogger(__name__)

# Preference flag gating the external channels of each notification type
CATEGORY_FLAGS = {
    Notification.TYPE_ORDER_STATUS: 'order_updates',
    Notification.TYPE_ORDER_NEW: 'new_orders',
    Notification.TYPE_PAYMENT: 'payment_alerts',
    Notification.TYPE_REVIEW: 'review_alerts',
}

SMS_EXCLUDED_TYPES = {Notification.TYPE_PAYMENT, Notification.TYPE_REVIEW}

STATUS_MESSAGES = {
    'pending': 'is awaiting confirmation',
    'confirmed': 'has been confirmed',
    'processing': 'is being processed',
    'shipped': 'has been shipped',
    'delivered': 'has been delivered',
    'cancelled': 'has been cancelled',
    'refunded': 'has been refunded',
}


@dataclass
class DispatchOutcome:
    recipient_id: int
    success: bool
    notification: Optional[Notification] = None
    error: str = ''


def status_message(status: str) -> str:
    return STATUS_MESSAGES.get(status, f"status changed to {status}")


class NotificationService:
    """Service class for creating and reading notifications"""

    @staticmethod
    def get_preferences(user) -> NotificationPreference:
        """Stored preferences, or unsaved defaults for users who never set any"""
        preference = NotificationPreference.objects.filter(user=user).first()
        return preference or NotificationPreference(user=user)

    @staticmethod
    def update_preferences(user, changes: Dict) -> Tuple[Optional[NotificationPreference], str]:
        unknown = set(changes) - set(NotificationPreference.FLAG_FIELDS)
        if unknown:
            return None, f"Unknown preference: {', '.join(sorted(unknown))}"
        if any(not isinstance(value, bool) for value in changes.values()):
            return None, "Preference values must be true or false"

        preference, _ = NotificationPreference.objects.get_or_create(user=user)
        for name, value in changes.items():
            setattr(preference, name, value)
        preference.save()
        return preference, ""

    @staticmethod
    def channels_for(preference: NotificationPreference, notification_type: str) -> List[str]:
        """in_app always; external channels need the channel switch and the category flag"""
        channels = [Notification.CHANNEL_IN_APP]

        flag = CATEGORY_FLAGS.get(notification_type)
        if flag is None or not getattr(preference, flag):
            return channels

        if preference.email:
            channels.append(Notification.CHANNEL_EMAIL)
        if preference.sms and notification_type not in SMS_EXCLUDED_TYPES:
            channels.append(Notification.CHANNEL_SMS)
        return channels

    @staticmethod
    def create_notification(recipient, notification_type: str, title: str, message: str,
                            order=None, product=None) -> Notification:
        """Persist the notification, queue its external deliveries and trim the inbox"""
        preference = NotificationService.get_preferences(recipient)
        channels = NotificationService.channels_for(preference, notification_type)

        notification = Notification.objects.create(
            recipient=recipient,
            type=notification_type,
            title=title,
            message=message,
            order=order,
            product=product,
            channels=channels,
        )
        NotificationDelivery.objects.bulk_create([
            NotificationDelivery(notification=notification, channel=channel)
            for channel in channels if channel != Notification.CHANNEL_IN_APP
        ])

        NotificationService.enforce_retention(recipient)
        return notification

    @staticmethod
    def _notify(recipient, notification_type, title, message, order=None, product=None) -> DispatchOutcome:
        try:
            with transaction.atomic():
                notification = NotificationService.create_notification(
                    recipient, notification_type, title, message, order=order, product=product
                )
        except DatabaseError as e:
            logger.error(f"Failed to notify user {recipient.id} ({notification_type}): {e}")
            return DispatchOutcome(recipient_id=recipient.id, success=False, error=str(e))

        return DispatchOutcome(recipient_id=recipient.id, success=True, notification=notification)

    @staticmethod
    def enforce_retention(recipient) -> int:
        """Drop the recipient's oldest notifications past the retention limit"""
        limit = settings.NOTIFICATION_RETENTION_LIMIT
        stale_ids = list(
            Notification.objects.filter(recipient=recipient)
            .order_by('-created_at', '-id')
            .values_list('id', flat=True)[limit:]
        )
        if not stale_ids:
            return 0
        Notification.objects.filter(id__in=stale_ids).delete()
        return len(stale_ids)

    @staticmethod
    def _order_vendors(order):
        """Distinct vendors of the order's items, in item order"""
        vendors = []
        for item in order.items.select_related('vendor'):
            if item.vendor is not None and item.vendor not in vendors:
                vendors.append(item.vendor)
        return vendors

    @staticmethod
    def dispatch_order_status_change(order, old_status: str, new_status: str, actor) -> List[DispatchOutcome]:
        """
        Notify the buyer and every vendor in the order of an accepted
        transition. A vendor who made the change is not told about it.
        """
        number = order.order_number
        outcomes = [
            NotificationService._notify(
                order.buyer,
                Notification.TYPE_ORDER_STATUS,
                f"Order #{number} Update",
                f"Your order {status_message(new_status)}",
                order=order,
            )
        ]

        for vendor in NotificationService._order_vendors(order):
            if actor is not None and vendor.id == actor.id and actor.marketplace_role == actor.ROLE_VENDOR:
                continue
            outcomes.append(NotificationService._notify(
                vendor,
                Notification.TYPE_ORDER_STATUS,
                f"Order #{number} Status Changed",
                f"Order #{number} {status_message(new_status)}",
                order=order,
            ))

        failed = [outcome.recipient_id for outcome in outcomes if not outcome.success]
        if failed:
            logger.warning(f"Order {number} {old_status} -> {new_status}: notification failed for {failed}")
        return outcomes

    @staticmethod
    def notify_new_order(order) -> List[DispatchOutcome]:
        """Tell each vendor about its share of a new order"""
        currency = settings.CURRENCY_CODE
        buyer_name = order.buyer.display_name
        return [
            NotificationService._notify(
                vendor,
                Notification.TYPE_ORDER_NEW,
                'New Order Received',
                f"You have a new order #{order.order_number} from {buyer_name} "
                f"for {currency} {to_money(order.vendor_subtotal(vendor.id))}",
                order=order,
            )
            for vendor in NotificationService._order_vendors(order)
        ]

    @staticmethod
    def notify_payment_received(order) -> List[DispatchOutcome]:
        currency = settings.CURRENCY_CODE
        return [
            NotificationService._notify(
                vendor,
                Notification.TYPE_PAYMENT,
                'Payment Received',
                f"You received a payment of {currency} {to_money(order.vendor_subtotal(vendor.id))}",
                order=order,
            )
            for vendor in NotificationService._order_vendors(order)
        ]

    @staticmethod
    def notify_new_review(vendor, product, rating: int) -> DispatchOutcome:
        return NotificationService._notify(
            vendor,
            Notification.TYPE_REVIEW,
            'New Product Review',
            f"{product.name} received a {rating}-star review",
            product=product,
        )

    @staticmethod
    def notify_system(recipient, title: str, message: str) -> DispatchOutcome:
        return NotificationService._notify(recipient, Notification.TYPE_SYSTEM, title, message)

    # Inbox

    @staticmethod
    def get_notifications(user, unread_only: bool = False):
        notifications = Notification.objects.filter(recipient=user)
        if unread_only:
            notifications = notifications.filter(is_read=False)
        return notifications

    @staticmethod
    def get_unread_count(user) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).count()

    @staticmethod
    def mark_as_read(notification_id, user) -> Tuple[bool, str]:
        updated = Notification.objects.filter(pk=notification_id, recipient=user).update(is_read=True)
        if not updated:
            return False, "Notification not found"
        return True, ""

    @staticmethod
    def mark_all_as_read(user) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).update(is_read=True)

    @staticmethod
    def delete_notification(notification_id, user) -> Tuple[bool, str]:
        deleted, _ = Notification.objects.filter(pk=notification_id, recipient=user).delete()
        if not deleted:
            return False, "Notification not found"
        return True, ""

    @staticmethod
    def clear_all(user) -> int:
        count = Notification.objects.filter(recipient=user).count()
        Notification.objects.filter(recipient=user).delete()
        return count
