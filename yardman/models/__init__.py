"""
Yardman Models.

Core models for storage-yard logistics:
- Location: Finite-capacity rack (the capacity ledger)
- StorageRequest: Customer request and its lifecycle status
- Allocation: Units of a request reserved per location
- Load / Document / InventoryRecord: Physical activity, read for workflow state
- AuditRecord: Append-only admin action log
- OutboxEntry: Queued notification awaiting delivery
"""

from yardman.models.audit import AuditRecord
from yardman.models.enums import (
    AuditAction,
    InventoryStatus,
    LoadDirection,
    LoadStatus,
    NotificationType,
    RequestStatus,
)
from yardman.models.load import Document, InventoryRecord, Load
from yardman.models.location import Location
from yardman.models.outbox import OutboxEntry
from yardman.models.request import Allocation, StorageRequest

__all__ = [
    'AuditAction',
    'InventoryStatus',
    'LoadDirection',
    'LoadStatus',
    'NotificationType',
    'RequestStatus',
    'Location',
    'StorageRequest',
    'Allocation',
    'Load',
    'Document',
    'InventoryRecord',
    'AuditRecord',
    'OutboxEntry',
]
