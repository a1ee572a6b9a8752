"""
Snapshot types: a point-in-time read of one request and its activity.

Plain frozen dataclasses, no ORM. They are built by
yardman.services.queries.build_snapshot() or by hand (tests, cached views)
and consumed by yardman.workflow.derive_state().

The manifest extraction is a closed variant: a document either has
NO_EXTRACTION or a ManifestExtraction carrying its schema version.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Union

from yardman.models.enums import LoadStatus, RequestStatus


@dataclass(frozen=True)
class NoExtraction:
    """Document received, structured data not extracted yet."""

    kind: Literal['absent'] = 'absent'


@dataclass(frozen=True)
class ManifestExtraction:
    """Structured manifest rows extracted from a document."""

    version: int
    items: tuple[Any, ...] = ()
    kind: Literal['processed'] = 'processed'


Extraction = Union[NoExtraction, ManifestExtraction]

NO_EXTRACTION = NoExtraction()


def extraction_from_json(data: Any, version: int | None = None) -> Extraction:
    """
    Map a stored extraction column to the closed variant.

    NULL means absent; anything else is a processed payload. A bare list
    is taken as the row list, a dict may carry its own ``items``.
    """
    if data is None:
        return NO_EXTRACTION
    if isinstance(data, dict):
        items = data.get('items', ())
        if not isinstance(items, (list, tuple)):
            items = (items,)
        version = version or data.get('version') or 1
    elif isinstance(data, (list, tuple)):
        items = data
    else:
        items = (data,)
    return ManifestExtraction(version=version or 1, items=tuple(items))


@dataclass(frozen=True)
class DocumentSnapshot:
    id: Any
    extraction: Extraction = NO_EXTRACTION

    @property
    def is_processed(self) -> bool:
        return isinstance(self.extraction, ManifestExtraction)


@dataclass(frozen=True)
class LoadSnapshot:
    id: Any
    sequence_number: int
    status: LoadStatus
    scheduled_start: datetime | None = None
    documents: tuple[DocumentSnapshot, ...] = ()

    @property
    def is_open(self) -> bool:
        """Not happened yet (new, booked or on the road)."""
        return self.status in LoadStatus.open_statuses()

    @property
    def is_cancelled(self) -> bool:
        return self.status == LoadStatus.CANCELLED

    @property
    def manifests_processed(self) -> bool:
        """At least one document, and every document extracted."""
        return bool(self.documents) and all(d.is_processed for d in self.documents)


@dataclass(frozen=True)
class InventorySummary:
    """Goods physically on hand for a request."""

    total_quantity: int = 0
    location_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class RequestSnapshot:
    """
    Everything derive_state() needs about one request.

    Loads must be sorted by sequence_number ascending, per direction.
    """

    id: Any
    reference: str
    status: RequestStatus
    inbound_loads: tuple[LoadSnapshot, ...] = ()
    outbound_loads: tuple[LoadSnapshot, ...] = ()
    inventory: InventorySummary = field(default_factory=InventorySummary)
