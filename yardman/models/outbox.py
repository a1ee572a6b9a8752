"""
OutboxEntry model — Durably queued notification.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from yardman.models.enums import NotificationType


class OutboxQuerySet(models.QuerySet):
    """Outbox filters used by the drain worker and by operators."""

    def unclaimed(self, now=None):
        """No live claim (never claimed, or the lease ran out)."""
        now = now or timezone.now()
        return self.filter(Q(claimed_until__isnull=True) | Q(claimed_until__lt=now))

    def deliverable(self, max_attempts: int, now=None):
        """Entries a worker may pick up, oldest first."""
        return (
            self.filter(processed=False, attempts__lt=max_attempts)
            .unclaimed(now)
            .order_by('created_at', 'pk')
        )

    def stuck(self, max_attempts: int):
        """Entries that exhausted their attempts. Kept for manual intervention."""
        return self.filter(processed=False, attempts__gte=max_attempts).order_by('created_at', 'pk')


class OutboxEntry(models.Model):
    """
    A side effect (e-mail / chat message) awaiting delivery.

    Inserted by the transition engine inside the transition's transaction.
    Afterwards it is touched only by the drain worker, always via
    conditional UPDATEs (see yardman.services.notifications).

    ``processed`` becomes True only after a successful dispatch. Entries
    that fail ``max_attempts`` times stay unprocessed and show up in
    ``OutboxEntry.objects.stuck()``.
    """

    type = models.CharField(
        max_length=40,
        choices=NotificationType.choices,
        verbose_name=_('Type'),
    )
    payload = models.JSONField(verbose_name=_('Payload'))
    schema_version = models.PositiveSmallIntegerField(default=1)

    processed = models.BooleanField(default=False, verbose_name=_('Processed'))
    attempts = models.PositiveIntegerField(default=0, verbose_name=_('Attempts'))
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True, default='')

    # Claim held by a worker while dispatching (no DB lock is held meanwhile)
    claim_token = models.UUIDField(null=True, blank=True)
    claimed_until = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = OutboxQuerySet.as_manager()

    class Meta:
        verbose_name = _('Outbox entry')
        verbose_name_plural = _('Outbox entries')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['processed', 'attempts', 'created_at'], name='yard_outbox_pending_idx'),
        ]

    @property
    def is_claimed(self) -> bool:
        return self.claimed_until is not None and self.claimed_until >= timezone.now()

    def __str__(self) -> str:
        state = 'sent' if self.processed else f'pending x{self.attempts}'
        return f"{self.get_type_display()} #{self.pk} ({state})"
