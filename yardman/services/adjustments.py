"""
Manual occupancy adjustment.

Operators correct a location's ledger after a physical count (goods
picked up outside the system, a rack emptied for maintenance, ...).
"""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from yardman.conf import yardman_settings
from yardman.exceptions import TransitionError
from yardman.models.audit import AuditRecord
from yardman.models.enums import AuditAction
from yardman.models.location import Location
from yardman.protocols.authorization import AdminCapability, AdminScope
from yardman.services.guards import Deadline, require_scope, storage_guard

logger = logging.getLogger('yardman')


@dataclass(frozen=True)
class AdjustmentResult:
    location_id: int
    location_name: str
    capacity: int
    previous_occupied: int
    occupied: int

    @property
    def delta(self) -> int:
        return self.occupied - self.previous_occupied


class Adjustments:
    """Location ledger corrections."""

    @classmethod
    def adjust_occupancy(cls, location_id, new_occupied: int, reason: str,
                         capability: AdminCapability | None = None,
                         timeout: float | None = None) -> AdjustmentResult:
        """
        Set ``Location.occupied`` to ``new_occupied`` under a row lock.

        Raises:
            TransitionError('PERMISSION_DENIED'): capability missing or lacks scope
            TransitionError('INVALID_ARGUMENT'): bad value or reason too short
            TransitionError('NOT_FOUND'): unknown location
            TransitionError('TIMEOUT' | 'UNEXPECTED'): operational failure
        """
        capability = require_scope(capability, AdminScope.ADJUST_OCCUPANCY)
        if isinstance(new_occupied, bool) or not isinstance(new_occupied, int) or new_occupied < 0:
            raise TransitionError('INVALID_ARGUMENT', field='new_occupied', value=new_occupied)
        reason = (reason or '').strip()
        min_length = yardman_settings.ADJUSTMENT_REASON_MIN_LENGTH
        if len(reason) < min_length:
            raise TransitionError('INVALID_ARGUMENT', field='reason', min_length=min_length)
        deadline = Deadline(timeout)

        with storage_guard('adjust_occupancy', location_id=location_id), transaction.atomic(), deadline.bounded():
            try:
                location = Location.objects.select_for_update().get(pk=location_id)
            except (Location.DoesNotExist, ValueError, TypeError):
                raise TransitionError('NOT_FOUND', 'Location not found', location_id=location_id) from None

            if new_occupied > location.capacity:
                raise TransitionError(
                    'INVALID_ARGUMENT',
                    'Occupancy cannot exceed capacity',
                    field='new_occupied',
                    value=new_occupied,
                    capacity=location.capacity,
                )

            previous = location.occupied
            location.occupied = new_occupied
            location.save(update_fields=['occupied', 'updated_at'])

            AuditRecord.objects.create(
                actor_id=capability.actor_id,
                action=AuditAction.ADJUST_OCCUPANCY,
                entity_type='location',
                entity_id=str(location.pk),
                details={
                    'code': location.code,
                    'old_occupied': previous,
                    'new_occupied': new_occupied,
                    'reason': reason,
                },
                created_at=timezone.now(),
            )
            deadline.check(operation='adjust_occupancy', location_id=location.pk)

        logger.info(
            "yard.location.adjusted",
            extra={
                'location_id': location.pk,
                'actor_id': capability.actor_id,
                'old_occupied': previous,
                'new_occupied': new_occupied,
            },
        )
        return AdjustmentResult(
            location_id=location.pk,
            location_name=location.name,
            capacity=location.capacity,
            previous_occupied=previous,
            occupied=new_occupied,
        )
