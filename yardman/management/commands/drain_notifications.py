"""
Management command to deliver queued notifications.

Usage:
    python manage.py drain_notifications
    python manage.py drain_notifications --batch-size 20 --max-attempts 5
    python manage.py drain_notifications --dry-run

Run it from cron or a scheduler; concurrent runs are safe.
"""

from django.core.management.base import BaseCommand

from yardman import yard
from yardman.conf import yardman_settings
from yardman.models import OutboxEntry


class Command(BaseCommand):
    """Drain the notification outbox."""

    help = 'Deliver pending notifications from the outbox'

    def add_arguments(self, parser):
        parser.add_argument('--batch-size', type=int, default=None,
                            help='Max entries to process (default NOTIFY_BATCH_SIZE)')
        parser.add_argument('--max-attempts', type=int, default=None,
                            help='Give up after this many attempts (default NOTIFY_MAX_ATTEMPTS)')
        parser.add_argument('--dry-run', action='store_true',
                            help='Show what would be sent without sending')

    def handle(self, *args, **options):
        batch_size = options['batch_size'] or yardman_settings.NOTIFY_BATCH_SIZE
        max_attempts = options['max_attempts'] or yardman_settings.NOTIFY_MAX_ATTEMPTS

        if options['dry_run']:
            pending = OutboxEntry.objects.deliverable(max_attempts)[:batch_size]
            for entry in pending:
                self.stdout.write(f'#{entry.pk} {entry.type} (attempts: {entry.attempts})')
            self.stdout.write(f'{len(pending)} notification(s) would be sent')
            return

        summary = yard.drain(batch_size=batch_size, max_attempts=max_attempts)
        for entry_id, error in summary.errors:
            self.stderr.write(f'#{entry_id}: {error}')

        message = (
            f'{summary.succeeded} sent, {summary.failed} failed, '
            f'{summary.skipped} skipped'
        )
        if summary.failed:
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))
