from .notification_serializers import (
    NotificationSerializer, NotificationPreferenceSerializer, PreferenceUpdateSerializer
)

__all__ = [
    'NotificationSerializer',
    'NotificationPreferenceSerializer',
    'PreferenceUpdateSerializer',
]
