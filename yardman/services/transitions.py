"""
Transition engine — approve / reject a pending storage request.

Each transition is one transaction:
    lock request row → (lock locations, ascending id) → validate →
    mutate → AuditRecord + OutboxEntry → deadline check → commit

Either everything commits or nothing does. Notifications are only
queued here; the drain worker delivers them later.
"""

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from yardman.conf import yardman_settings
from yardman.exceptions import TransitionError
from yardman.models.audit import AuditRecord
from yardman.models.enums import AuditAction, RequestStatus
from yardman.models.location import Location
from yardman.models.outbox import OutboxEntry
from yardman.models.request import Allocation, StorageRequest
from yardman.notices import RequestApprovedPayload, RequestRejectedPayload, channels_for
from yardman.protocols.authorization import AdminCapability, AdminScope
from yardman.services.allocation import greedy_fill, total_headroom
from yardman.services.guards import Deadline, require_scope, storage_guard

logger = logging.getLogger('yardman')


@dataclass(frozen=True)
class ApprovalResult:
    request_id: int
    reference: str
    status: RequestStatus
    quantity: int
    location_names: tuple[str, ...] = ()
    # location name -> units reserved there
    allocations: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RejectionResult:
    request_id: int
    reference: str
    status: RequestStatus
    reason: str


def _parse_location_ids(location_ids) -> list[int]:
    if isinstance(location_ids, (str, bytes)) or location_ids is None:
        raise TransitionError('INVALID_ARGUMENT', field='location_ids')
    try:
        ids = sorted({int(pk) for pk in location_ids})
    except (TypeError, ValueError):
        raise TransitionError('INVALID_REFERENCE', location_ids=list(location_ids)) from None
    if not ids:
        raise TransitionError('INVALID_ARGUMENT', field='location_ids', detail='at least one location is required')
    return ids


def _lock_request(request_id) -> StorageRequest:
    try:
        return StorageRequest.objects.select_for_update().get(pk=request_id)
    except (StorageRequest.DoesNotExist, ValueError, TypeError):
        raise TransitionError('NOT_FOUND', request_id=request_id) from None


def _ensure_pending(request: StorageRequest) -> None:
    if request.status != RequestStatus.PENDING:
        raise TransitionError(
            'INVALID_STATE',
            request_id=request.pk,
            status=request.status,
            expected=RequestStatus.PENDING.value,
        )


class Transitions:
    """Approve / reject."""

    @classmethod
    def approve(cls, request_id, location_ids, required_quantity: int,
                notes: str = '', capability: AdminCapability | None = None,
                timeout: float | None = None) -> ApprovalResult:
        """
        Approve a pending request and reserve capacity.

        The quantity is spread over the locations by greedy fill in
        ascending id order (see yardman.services.allocation).

        Raises:
            TransitionError('PERMISSION_DENIED'): capability missing or lacks scope
            TransitionError('INVALID_ARGUMENT'): no locations, quantity <= 0
            TransitionError('NOT_FOUND'): unknown request
            TransitionError('INVALID_STATE'): request is not pending
            TransitionError('INVALID_REFERENCE'): unknown location id
            TransitionError('CAPACITY_EXCEEDED'): not enough headroom
            TransitionError('TIMEOUT' | 'UNEXPECTED'): operational failure
        """
        capability = require_scope(capability, AdminScope.APPROVE)
        ids = _parse_location_ids(location_ids)
        if isinstance(required_quantity, bool) or not isinstance(required_quantity, int) or required_quantity <= 0:
            raise TransitionError('INVALID_ARGUMENT', field='required_quantity', value=required_quantity)
        notes = (notes or '').strip()
        deadline = Deadline(timeout)

        with storage_guard('approve', request_id=request_id), transaction.atomic(), deadline.bounded():

            request = _lock_request(request_id)
            _ensure_pending(request)

            locations = list(Location.objects.select_for_update().filter(pk__in=ids).order_by('pk'))
            missing = sorted(set(ids) - {location.pk for location in locations})
            if missing:
                raise TransitionError('INVALID_REFERENCE', location_ids=missing)

            available = total_headroom(locations)
            if available < required_quantity:
                raise TransitionError(
                    'CAPACITY_EXCEEDED',
                    required=required_quantity,
                    available=available,
                    location_names=[location.name for location in locations],
                )

            now = timezone.now()
            shares = greedy_fill(locations, required_quantity)
            for location, share in shares:
                Allocation.objects.create(request=request, location=location, quantity=share, created_at=now)
                if share:
                    Location.objects.filter(pk=location.pk).update(
                        occupied=F('occupied') + share,
                        updated_at=now,
                    )

            request.status = RequestStatus.APPROVED
            request.approved_at = now
            request.admin_notes = notes
            request.save(update_fields=['status', 'approved_at', 'admin_notes', 'updated_at'])

            location_names = tuple(location.name for location in locations)
            allocations = {location.name: share for location, share in shares}

            AuditRecord.objects.create(
                actor_id=capability.actor_id,
                action=AuditAction.APPROVE,
                entity_type='storage_request',
                entity_id=str(request.pk),
                details={
                    'reference': request.reference,
                    'quantity': required_quantity,
                    'allocations': {str(location.pk): share for location, share in shares},
                    'available_before': available,
                    'notes': notes,
                },
                created_at=now,
            )

            payload = RequestApprovedPayload(
                request_id=request.pk,
                reference=request.reference,
                company_name=request.company_name,
                customer_email=request.customer_email,
                location_names=location_names,
                quantity=required_quantity,
                notes=notes,
                channels=channels_for(RequestApprovedPayload.TYPE),
            )
            OutboxEntry.objects.create(
                type=payload.TYPE,
                payload=payload.to_json(),
                schema_version=payload.VERSION,
                created_at=now,
            )

            deadline.check(operation='approve', request_id=request.pk)

        logger.info(
            "yard.request.approved",
            extra={
                'request_id': request.pk,
                'reference': request.reference,
                'actor_id': capability.actor_id,
                'quantity': required_quantity,
                'location_ids': ids,
            },
        )
        return ApprovalResult(
            request_id=request.pk,
            reference=request.reference,
            status=RequestStatus.APPROVED,
            quantity=required_quantity,
            location_names=location_names,
            allocations=allocations,
        )

    @classmethod
    def reject(cls, request_id, reason: str, notes: str = '',
               capability: AdminCapability | None = None,
               timeout: float | None = None) -> RejectionResult:
        """
        Reject a pending request. Locations are never touched.

        Raises:
            TransitionError('PERMISSION_DENIED'): capability missing or lacks scope
            TransitionError('INVALID_ARGUMENT'): reason blank or too short
            TransitionError('NOT_FOUND'): unknown request
            TransitionError('INVALID_STATE'): request is not pending
            TransitionError('TIMEOUT' | 'UNEXPECTED'): operational failure
        """
        capability = require_scope(capability, AdminScope.REJECT)
        reason = (reason or '').strip()
        min_length = yardman_settings.REJECTION_REASON_MIN_LENGTH
        if len(reason) < min_length:
            raise TransitionError(
                'INVALID_ARGUMENT',
                'Rejection reason is required',
                field='reason',
                min_length=min_length,
            )
        notes = (notes or '').strip()
        deadline = Deadline(timeout)

        with storage_guard('reject', request_id=request_id), transaction.atomic(), deadline.bounded():

            request = _lock_request(request_id)
            _ensure_pending(request)

            now = timezone.now()
            request.status = RequestStatus.REJECTED
            request.rejected_at = now
            request.rejection_reason = reason
            request.admin_notes = notes
            request.save(update_fields=['status', 'rejected_at', 'rejection_reason', 'admin_notes', 'updated_at'])

            AuditRecord.objects.create(
                actor_id=capability.actor_id,
                action=AuditAction.REJECT,
                entity_type='storage_request',
                entity_id=str(request.pk),
                details={'reference': request.reference, 'reason': reason, 'notes': notes},
                created_at=now,
            )

            payload = RequestRejectedPayload(
                request_id=request.pk,
                reference=request.reference,
                company_name=request.company_name,
                customer_email=request.customer_email,
                reason=reason,
                notes=notes,
                channels=channels_for(RequestRejectedPayload.TYPE),
            )
            OutboxEntry.objects.create(
                type=payload.TYPE,
                payload=payload.to_json(),
                schema_version=payload.VERSION,
                created_at=now,
            )

            deadline.check(operation='reject', request_id=request.pk)

        logger.info(
            "yard.request.rejected",
            extra={
                'request_id': request.pk,
                'reference': request.reference,
                'actor_id': capability.actor_id,
            },
        )
        return RejectionResult(
            request_id=request.pk,
            reference=request.reference,
            status=RequestStatus.REJECTED,
            reason=reason,
        )
