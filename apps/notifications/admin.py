from django.contrib import admin

from .models import Notification, NotificationDelivery, NotificationPreference


class NotificationDeliveryInline(admin.TabularInline):
    model = NotificationDelivery
    extra = 0
    readonly_fields = ['channel', 'status', 'attempts', 'last_error', 'next_attempt_at', 'sent_at']
    can_delete = False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['id', 'recipient', 'type', 'title', 'is_read', 'channels', 'created_at']
    list_filter = ['type', 'is_read', 'created_at']
    search_fields = ['title', 'message', 'recipient__username']
    readonly_fields = ['created_at']
    inlines = [NotificationDeliveryInline]


@admin.register(NotificationDelivery)
class NotificationDeliveryAdmin(admin.ModelAdmin):
    list_display = ['id', 'notification', 'channel', 'status', 'attempts', 'next_attempt_at', 'sent_at']
    list_filter = ['channel', 'status']
    readonly_fields = ['created_at', 'sent_at']
    actions = ['retry_now']

    def retry_now(self, request, queryset):
        from django.utils import timezone
        updated = queryset.exclude(status=NotificationDelivery.STATUS_SENT).update(
            status=NotificationDelivery.STATUS_PENDING, attempts=0, next_attempt_at=timezone.now()
        )
        self.message_user(request, f'{updated} deliveries queued for retry.')
    retry_now.short_description = 'Retry selected deliveries now'


@admin.register(NotificationPreference)
class NotificationPreferenceAdmin(admin.ModelAdmin):
    list_display = ['user', 'email', 'sms', 'in_app', 'order_updates', 'new_orders', 'payment_alerts']
    search_fields = ['user__username']
