from .notification import Notification, NotificationDelivery
from .preference import NotificationPreference

__all__ = ['Notification', 'NotificationDelivery', 'NotificationPreference']
