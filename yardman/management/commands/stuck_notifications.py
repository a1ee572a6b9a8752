"""
Management command to list notifications that exhausted their attempts.

Usage:
    python manage.py stuck_notifications
    python manage.py stuck_notifications --max-attempts 5
"""

from django.core.management.base import BaseCommand

from yardman import yard


class Command(BaseCommand):
    """List stuck outbox entries."""

    help = 'List notifications that will not be retried automatically'

    def add_arguments(self, parser):
        parser.add_argument('--max-attempts', type=int, default=None,
                            help='Attempt threshold (default NOTIFY_MAX_ATTEMPTS)')

    def handle(self, *args, **options):
        stuck = list(yard.stuck(options['max_attempts']))
        for entry in stuck:
            self.stdout.write(
                f'#{entry.pk} {entry.type} attempts={entry.attempts} '
                f'last_attempt={entry.last_attempt_at:%Y-%m-%d %H:%M} error={entry.last_error!r}'
                if entry.last_attempt_at else
                f'#{entry.pk} {entry.type} attempts={entry.attempts} error={entry.last_error!r}'
            )

        if stuck:
            self.stdout.write(self.style.WARNING(f'{len(stuck)} stuck notification(s)'))
        else:
            self.stdout.write(self.style.SUCCESS('No stuck notifications'))
