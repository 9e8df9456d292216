from django.core.management.base import BaseCommand

from apps.notifications.services import NotificationDeliveryService


class Command(BaseCommand):
    help = 'Send pending email and SMS notification deliveries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=100,
            help='Maximum number of deliveries to attempt',
        )

    def handle(self, *args, **options):
        limit = options['limit']
        self.stdout.write(f'Processing up to {limit} pending deliveries...')

        summary = NotificationDeliveryService.process_pending(limit=limit)

        self.stdout.write(
            self.style.SUCCESS(
                f"Outbox processed. Sent: {summary['sent']}, retrying: {summary['retrying']}, "
                f"failed: {summary['failed']}, skipped: {summary['skipped']}"
            )
        )
