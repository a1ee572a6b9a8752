"""
Yard queries — read-only operations.

All methods are classmethods on Yard and take no locks.
"""

from dataclasses import dataclass

from django.db import transaction
from django.db.models import Prefetch

from yardman.conf import yardman_settings
from yardman.exceptions import TransitionError
from yardman.models.enums import InventoryStatus, LoadDirection, LoadStatus, RequestStatus
from yardman.models.load import Document, InventoryRecord, Load
from yardman.models.location import Location
from yardman.models.outbox import OutboxEntry
from yardman.models.request import StorageRequest
from yardman.snapshot import (
    DocumentSnapshot,
    InventorySummary,
    LoadSnapshot,
    RequestSnapshot,
    extraction_from_json,
)
from yardman.workflow import WorkflowStatus, derive_state


@dataclass(frozen=True)
class LocationCapacity:
    id: int
    code: str
    name: str
    yard: str
    capacity: int
    occupied: int

    @property
    def headroom(self) -> int:
        return max(self.capacity - self.occupied, 0)


@dataclass(frozen=True)
class CapacitySummary:
    locations: tuple[LocationCapacity, ...]

    @property
    def total_capacity(self) -> int:
        return sum(location.capacity for location in self.locations)

    @property
    def occupied(self) -> int:
        return sum(location.occupied for location in self.locations)

    @property
    def headroom(self) -> int:
        return sum(location.headroom for location in self.locations)


def _load_snapshot(load: Load) -> LoadSnapshot:
    return LoadSnapshot(
        id=load.pk,
        sequence_number=load.sequence_number,
        status=LoadStatus(load.status),
        scheduled_start=load.scheduled_start,
        documents=tuple(
            DocumentSnapshot(
                id=document.pk,
                extraction=extraction_from_json(document.extraction, document.extraction_version),
            )
            for document in load.documents.all()
        ),
    )


def with_snapshot_data(queryset):
    """
    Prefetch what snapshot_from() reads: loads (by direction and sequence),
    their documents and the in-storage inventory with its locations.

    A list of N requests then costs a fixed number of queries.
    """
    return queryset.prefetch_related(
        Prefetch(
            'loads',
            queryset=Load.objects.order_by('direction', 'sequence_number').prefetch_related(
                Prefetch('documents', queryset=Document.objects.order_by('uploaded_at', 'pk')),
            ),
        ),
        Prefetch(
            'inventory',
            queryset=InventoryRecord.objects.filter(status=InventoryStatus.IN_STORAGE).select_related('location'),
            to_attr='stored_inventory',
        ),
    )


def snapshot_from(request: StorageRequest) -> RequestSnapshot:
    """Build a snapshot from a request fetched through with_snapshot_data()."""
    loads = list(request.loads.all())
    stored = request.stored_inventory
    return RequestSnapshot(
        id=request.pk,
        reference=request.reference,
        status=RequestStatus(request.status),
        inbound_loads=tuple(_load_snapshot(load) for load in loads if load.direction == LoadDirection.INBOUND),
        outbound_loads=tuple(_load_snapshot(load) for load in loads if load.direction == LoadDirection.OUTBOUND),
        inventory=InventorySummary(
            total_quantity=sum(record.quantity for record in stored),
            location_names=tuple(sorted({record.location.name for record in stored if record.location_id})),
        ),
    )


class YardQueries:
    """Read-only yard query methods."""

    @classmethod
    def build_snapshot(cls, request: StorageRequest | int) -> RequestSnapshot:
        """
        Read one request with its loads, documents and inventory.

        All reads happen inside one transaction. Loads come back sorted
        by sequence number, per direction.

        Raises:
            TransitionError('NOT_FOUND'): If a request id does not exist
        """
        request_id = request.pk if isinstance(request, StorageRequest) else request

        with transaction.atomic():
            try:
                request = with_snapshot_data(StorageRequest.objects.all()).get(pk=request_id)
            except (StorageRequest.DoesNotExist, ValueError, TypeError):
                raise TransitionError('NOT_FOUND', request_id=request_id) from None

        return snapshot_from(request)

    @classmethod
    def state_of(cls, request: StorageRequest | int) -> WorkflowStatus:
        """Derived workflow state of a stored request."""
        return derive_state(cls.build_snapshot(request))

    @classmethod
    def capacity(cls, yard: str | None = None) -> CapacitySummary:
        """
        Capacity, occupied and headroom per location and overall.

        Args:
            yard: Restrict to one yard (None = all)
        """
        locations = Location.objects.order_by('code')
        if yard is not None:
            locations = locations.filter(yard=yard)
        return CapacitySummary(locations=tuple(
            LocationCapacity(
                id=location['id'],
                code=location['code'],
                name=location['name'],
                yard=location['yard'],
                capacity=location['capacity'],
                occupied=location['occupied'],
            )
            for location in locations.values('id', 'code', 'name', 'yard', 'capacity', 'occupied')
        ))

    @classmethod
    def stuck(cls, max_attempts: int | None = None):
        """Outbox entries that exhausted their attempts, oldest first."""
        if max_attempts is None:
            max_attempts = yardman_settings.NOTIFY_MAX_ATTEMPTS
        return OutboxEntry.objects.stuck(max_attempts)
