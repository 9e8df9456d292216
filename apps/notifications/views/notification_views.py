"""
Inbox and notification preference views.
"""
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from apps.common.utils import success_response, error_response, paginated_response
from ..serializers import (
    NotificationSerializer, NotificationPreferenceSerializer, PreferenceUpdateSerializer
)
from ..services import NotificationService


class NotificationListView(APIView):
    """Caller's notifications, newest first; ?unread=true filters"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = request.GET.get('unread', '').lower() in ('1', 'true')
        notifications = NotificationService.get_notifications(request.user, unread_only=unread_only)
        return paginated_response(notifications, NotificationSerializer, request, 'Notifications retrieved successfully')

    def delete(self, request):
        cleared = NotificationService.clear_all(request.user)
        return success_response({'cleared': cleared}, 'Notifications cleared')


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response({'count': NotificationService.get_unread_count(request.user)})


class MarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, notification_id):
        updated, error_msg = NotificationService.mark_as_read(notification_id, request.user)
        if not updated:
            return error_response(error_msg, status_code=status.HTTP_404_NOT_FOUND)
        return success_response(None, 'Notification marked as read')


class MarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = NotificationService.mark_all_as_read(request.user)
        return success_response({'updated': updated}, 'All notifications marked as read')


class NotificationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, notification_id):
        deleted, error_msg = NotificationService.delete_notification(notification_id, request.user)
        if not deleted:
            return error_response(error_msg, status_code=status.HTTP_404_NOT_FOUND)
        return success_response(None, 'Notification deleted')


class PreferenceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        preference = NotificationService.get_preferences(request.user)
        return success_response(NotificationPreferenceSerializer(preference).data)

    def put(self, request):
        serializer = PreferenceUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid preferences", serializer.errors)

        preference, error_msg = NotificationService.update_preferences(request.user, serializer.validated_data)
        if not preference:
            return error_response(error_msg)
        return success_response(NotificationPreferenceSerializer(preference).data, 'Preferences updated')
