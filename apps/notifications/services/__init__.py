"""
Notification services module.
"""
from .notification_service import DispatchOutcome, NotificationService
from .delivery_service import NotificationDeliveryService, SmsGateway

__all__ = [
    'DispatchOutcome',
    'NotificationService',
    'NotificationDeliveryService',
    'SmsGateway',
]
