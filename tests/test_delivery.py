"""
Outbox delivery tests for email and SMS
"""
from datetime import timedelta
from io import StringIO
from unittest import mock

import requests
from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.notifications.models import Notification, NotificationDelivery, NotificationPreference
from apps.notifications.services import NotificationDeliveryService, NotificationService, SmsGateway
from tests.factories import UserFactory


def ok_response():
    response = mock.Mock()
    response.raise_for_status.return_value = None
    return response


class DeliveryTestCase(TestCase):

    def setUp(self):
        self.user = UserFactory(email='kofi@example.com', phone='+233201234567')
        self.notification = NotificationService.create_notification(
            self.user, Notification.TYPE_ORDER_STATUS, 'Order #0000ABCD Update', 'Your order has been shipped'
        )

    def delivery(self, channel):
        return NotificationDelivery.objects.get(notification=self.notification, channel=channel)


class SendTest(DeliveryTestCase):

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_process_pending_sends_email_and_sms(self, mock_post):
        mock_post.return_value = ok_response()

        summary = NotificationDeliveryService.process_pending()

        self.assertEqual(summary, {'sent': 2, 'retrying': 0, 'failed': 0, 'skipped': 0})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['kofi@example.com'])
        self.assertEqual(mail.outbox[0].subject, 'Order #0000ABCD Update')

        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['json']['to'], '+233201234567')
        self.assertEqual(kwargs['json']['message'], 'Order #0000ABCD Update: Your order has been shipped')
        self.assertEqual(kwargs['headers'], {'Authorization': 'Bearer test-key'})
        self.assertIn('timeout', kwargs)

        sms = self.delivery('sms')
        self.assertEqual(sms.status, NotificationDelivery.STATUS_SENT)
        self.assertEqual(sms.attempts, 1)
        self.assertIsNotNone(sms.sent_at)

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_sent_rows_are_not_sent_again(self, mock_post):
        mock_post.return_value = ok_response()
        NotificationDeliveryService.process_pending()

        summary = NotificationDeliveryService.process_pending()

        self.assertEqual(summary['sent'], 0)
        self.assertEqual(mock_post.call_count, 1)

    def test_stale_copy_is_skipped(self):
        delivery = self.delivery('email')
        NotificationDelivery.objects.filter(pk=delivery.pk).update(attempts=1)

        self.assertEqual(NotificationDeliveryService.deliver(delivery), 'skipped')
        self.assertEqual(len(mail.outbox), 0)


class RetryTest(DeliveryTestCase):

    def test_backoff_doubles(self):
        self.assertEqual(NotificationDeliveryService.retry_delay(1), timedelta(seconds=60))
        self.assertEqual(NotificationDeliveryService.retry_delay(2), timedelta(seconds=120))
        self.assertEqual(NotificationDeliveryService.retry_delay(4), timedelta(seconds=480))

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_timeout_schedules_retry(self, mock_post):
        mock_post.side_effect = requests.Timeout()
        now = timezone.now()

        result = NotificationDeliveryService.deliver(self.delivery('sms'), now=now)

        self.assertEqual(result, 'retrying')
        sms = self.delivery('sms')
        self.assertEqual(sms.status, NotificationDelivery.STATUS_PENDING)
        self.assertEqual(sms.attempts, 1)
        self.assertEqual(sms.next_attempt_at, now + timedelta(seconds=60))
        self.assertIn('timed out', sms.last_error)

    @override_settings(NOTIFICATION_MAX_ATTEMPTS=3)
    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_gives_up_after_max_attempts(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('refused')
        now = timezone.now()

        results = []
        for _ in range(3):
            results.append(NotificationDeliveryService.deliver(self.delivery('sms'), now=now))

        self.assertEqual(results, ['retrying', 'retrying', 'failed'])
        sms = self.delivery('sms')
        self.assertEqual(sms.status, NotificationDelivery.STATUS_FAILED)
        self.assertEqual(sms.attempts, 3)
        self.assertIn('refused', sms.last_error)

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_rows_not_yet_due_wait(self, mock_post):
        mock_post.side_effect = requests.Timeout()
        now = timezone.now()
        NotificationDeliveryService.deliver(self.delivery('sms'), now=now)

        summary = NotificationDeliveryService.process_pending(now=now + timedelta(seconds=30))

        # Only the email row is due
        self.assertEqual(summary['sent'], 1)
        self.assertEqual(mock_post.call_count, 1)

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_bad_email_header_does_not_stop_the_batch(self, mock_post):
        mock_post.return_value = ok_response()
        Notification.objects.filter(pk=self.notification.pk).update(title='Order #0000ABCD\nUpdate')

        summary = NotificationDeliveryService.process_pending()

        self.assertEqual(summary, {'sent': 1, 'retrying': 1, 'failed': 0, 'skipped': 0})
        self.assertEqual(len(mail.outbox), 0)
        self.assertIn('Email error', self.delivery('email').last_error)
        self.assertEqual(self.delivery('sms').status, NotificationDelivery.STATUS_SENT)

    def test_missing_phone_fails_without_network(self):
        self.user.phone = None
        self.user.save()

        with mock.patch('apps.notifications.services.delivery_service.requests.post') as mock_post:
            NotificationDeliveryService.deliver(self.delivery('sms'))

        mock_post.assert_not_called()
        self.assertEqual(self.delivery('sms').last_error, "Recipient has no phone number")


class GatewayTest(TestCase):

    @override_settings(SMS_GATEWAY_URL='')
    def test_unconfigured_gateway(self):
        self.assertEqual(SmsGateway().send('+233200000000', 'hi'), (False, "SMS gateway is not configured"))

    @mock.patch('apps.notifications.services.delivery_service.requests.post')
    def test_http_error_is_reported(self, mock_post):
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError('502 Bad Gateway')
        mock_post.return_value = response

        sent, error_msg = SmsGateway().send('+233200000000', 'hi')

        self.assertFalse(sent)
        self.assertIn('502', error_msg)


class SendNotificationsCommandTest(TestCase):

    def test_command_prints_summary(self):
        user = UserFactory()
        NotificationPreference.objects.create(user=user, sms=False)
        NotificationService.notify_system(user, 'Hello', 'World')
        NotificationService.create_notification(user, Notification.TYPE_ORDER_STATUS, 'Order', 'Shipped')
        out = StringIO()

        call_command('send_notifications', '--limit', '10', stdout=out)

        self.assertIn('Sent: 1', out.getvalue())
        self.assertEqual(len(mail.outbox), 1)
