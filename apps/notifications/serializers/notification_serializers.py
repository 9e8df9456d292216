from rest_framework import serializers

from ..models import Notification, NotificationPreference


class NotificationSerializer(serializers.ModelSerializer):
    order_id = serializers.UUIDField(read_only=True, allow_null=True)
    product_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'type', 'title', 'message', 'order_id', 'product_id',
            'is_read', 'channels', 'created_at',
        ]
        read_only_fields = fields


class NotificationPreferenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationPreference
        fields = list(NotificationPreference.FLAG_FIELDS)


class PreferenceUpdateSerializer(serializers.Serializer):
    """All flags optional; only the ones sent are changed"""
    email = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    in_app = serializers.BooleanField(required=False)
    order_updates = serializers.BooleanField(required=False)
    new_orders = serializers.BooleanField(required=False)
    payment_alerts = serializers.BooleanField(required=False)
    review_alerts = serializers.BooleanField(required=False)
    marketing_messages = serializers.BooleanField(required=False)
