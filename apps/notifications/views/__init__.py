from .notification_views import (
    NotificationListView, UnreadCountView, MarkReadView, MarkAllReadView,
    NotificationDetailView, PreferenceView,
)

__all__ = [
    'NotificationListView',
    'UnreadCountView',
    'MarkReadView',
    'MarkAllReadView',
    'NotificationDetailView',
    'PreferenceView',
]
