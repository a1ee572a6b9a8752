"""
Notification worker. Drains the outbox.

Per entry:
    claim (conditional UPDATE, lease) → parse + render → channel.send()
    → mark processed, or record the failed attempt

No database lock or transaction is held while a channel is sending.
Every UPDATE runs in its own short transaction, so one entry's failure never undoes a
sibling's success. Several workers may drain concurrently: an entry
another worker holds is skipped.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import timedelta

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from yardman.conf import yardman_settings
from yardman.exceptions import DeliveryError
from yardman.models.outbox import OutboxEntry
from yardman.notices import parse_payload, render
from yardman.protocols.delivery import DeliveryChannel

logger = logging.getLogger('yardman')

LAST_ERROR_MAX_LENGTH = 2000


@dataclass
class DrainSummary:
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    # (entry id, error text)
    errors: list[tuple[int, str]] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed


def _claim(entry: OutboxEntry, lease_seconds: int) -> uuid.UUID | None:
    """Take the entry for this worker. None if someone else got there first."""
    token = uuid.uuid4()
    now = timezone.now()
    with transaction.atomic():
        claimed = (
            OutboxEntry.objects
            .filter(pk=entry.pk, processed=False, attempts=entry.attempts)
            .unclaimed(now)
            .update(claim_token=token, claimed_until=now + timedelta(seconds=lease_seconds))
        )
    return token if claimed else None


def _dispatch(entry: OutboxEntry, channel: DeliveryChannel, timeout: float) -> None:
    payload = parse_payload(entry.type, entry.schema_version, entry.payload)
    channel.send(render(payload), timeout)


def _mark_processed(entry: OutboxEntry, token: uuid.UUID) -> None:
    now = timezone.now()
    with transaction.atomic():
        updated = OutboxEntry.objects.filter(pk=entry.pk, claim_token=token).update(
            processed=True,
            processed_at=now,
            last_attempt_at=now,
            last_error='',
            claim_token=None,
            claimed_until=None,
        )
    if not updated:
        logger.warning("yard.outbox.lease_lost", extra={'entry_id': entry.pk, 'outcome': 'sent'})


def _mark_failed(entry: OutboxEntry, token: uuid.UUID, error: str, max_attempts: int) -> None:
    with transaction.atomic():
        updated = OutboxEntry.objects.filter(pk=entry.pk, claim_token=token).update(
            attempts=F('attempts') + 1,
            last_attempt_at=timezone.now(),
            last_error=error[:LAST_ERROR_MAX_LENGTH],
            claim_token=None,
            claimed_until=None,
        )
    if not updated:
        logger.warning("yard.outbox.lease_lost", extra={'entry_id': entry.pk, 'outcome': 'failed'})
    elif entry.attempts + 1 >= max_attempts:
        logger.warning(
            "yard.outbox.stuck",
            extra={'entry_id': entry.pk, 'type': entry.type, 'attempts': entry.attempts + 1, 'error': error},
        )


class Notifications:
    """Outbox drain."""

    @classmethod
    def drain(cls, batch_size: int | None = None, max_attempts: int | None = None,
              channel: DeliveryChannel | None = None,
              timeout: float | None = None) -> DrainSummary:
        """
        Deliver up to ``batch_size`` pending notifications, oldest first.

        Args:
            batch_size: Max entries to look at (default NOTIFY_BATCH_SIZE)
            max_attempts: Entries at this many attempts are left alone
                (default NOTIFY_MAX_ATTEMPTS)
            channel: Delivery channel (default: configured DELIVERY_CHANNEL)
            timeout: Per-entry dispatch timeout (default DISPATCH_TIMEOUT_SECONDS)

        Returns:
            DrainSummary with succeeded / failed / skipped counts
        """
        if batch_size is None:
            batch_size = yardman_settings.NOTIFY_BATCH_SIZE
        if max_attempts is None:
            max_attempts = yardman_settings.NOTIFY_MAX_ATTEMPTS
        if timeout is None:
            timeout = yardman_settings.DISPATCH_TIMEOUT_SECONDS
        if batch_size <= 0 or max_attempts <= 0:
            raise ValueError("batch_size and max_attempts must be positive")
        if channel is None:
            from yardman.adapters import get_delivery_channel
            channel = get_delivery_channel()

        lease_seconds = yardman_settings.CLAIM_LEASE_SECONDS
        summary = DrainSummary()

        for entry in list(OutboxEntry.objects.deliverable(max_attempts)[:batch_size]):
            token = _claim(entry, lease_seconds)
            if token is None:
                summary.skipped += 1
                logger.debug("yard.outbox.skipped", extra={'entry_id': entry.pk})
                continue

            try:
                _dispatch(entry, channel, timeout)
            except DeliveryError as exc:
                error = str(exc)
            except Exception as exc:
                logger.exception("yard.outbox.channel_error", extra={'entry_id': entry.pk})
                error = f"{type(exc).__name__}: {exc}"
            else:
                _mark_processed(entry, token)
                summary.succeeded += 1
                logger.info("yard.outbox.sent", extra={'entry_id': entry.pk, 'type': entry.type})
                continue

            _mark_failed(entry, token, error, max_attempts)
            summary.failed += 1
            summary.errors.append((entry.pk, error))
            logger.warning(
                "yard.outbox.failed",
                extra={'entry_id': entry.pk, 'type': entry.type, 'attempt': entry.attempts + 1, 'error': error},
            )

        if summary.attempted or summary.skipped:
            logger.info(
                "yard.outbox.drained",
                extra={'succeeded': summary.succeeded, 'failed': summary.failed, 'skipped': summary.skipped},
            )
        return summary
