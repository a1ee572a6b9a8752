"""
Enums for Yardman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RequestStatus(models.TextChoices):
    """Storage request lifecycle. Only the transition engine moves a request out of PENDING."""
    DRAFT = 'draft', _('Draft')
    PENDING = 'pending', _('Pending')         # Submitted, awaiting admin decision
    APPROVED = 'approved', _('Approved')      # Capacity reserved
    REJECTED = 'rejected', _('Rejected')      # Terminal, carries a reason
    COMPLETED = 'completed', _('Completed')   # Terminal, goods returned


class LoadDirection(models.TextChoices):
    """Whether a load brings goods in or takes them out."""
    INBOUND = 'inbound', _('Inbound')
    OUTBOUND = 'outbound', _('Outbound')


class LoadStatus(models.TextChoices):
    """Truck load lifecycle."""
    NEW = 'new', _('New')                     # Requested, not scheduled
    APPROVED = 'approved', _('Approved')      # Slot booked
    IN_TRANSIT = 'in_transit', _('In transit')
    COMPLETED = 'completed', _('Completed')
    CANCELLED = 'cancelled', _('Cancelled')

    @classmethod
    def open_statuses(cls) -> tuple['LoadStatus', ...]:
        """Statuses of a load that has not happened yet."""
        return (cls.NEW, cls.APPROVED, cls.IN_TRANSIT)


class InventoryStatus(models.TextChoices):
    """Physical state of stored goods."""
    PENDING_DELIVERY = 'pending_delivery', _('Pending delivery')
    IN_STORAGE = 'in_storage', _('In storage')
    IN_TRANSIT = 'in_transit', _('In transit')
    PICKED_UP = 'picked_up', _('Picked up')


class AuditAction(models.TextChoices):
    """Kinds of admin action recorded in the audit log."""
    APPROVE = 'approve', _('Approve request')
    REJECT = 'reject', _('Reject request')
    ADJUST_OCCUPANCY = 'adjust_occupancy', _('Adjust location occupancy')


class NotificationType(models.TextChoices):
    """Outbox entry types (closed set, see yardman.notices)."""
    REQUEST_APPROVED = 'request_approved', _('Request approved')
    REQUEST_REJECTED = 'request_rejected', _('Request rejected')
