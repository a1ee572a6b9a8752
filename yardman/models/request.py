"""
StorageRequest and Allocation models.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from yardman.models.enums import RequestStatus


class StorageRequestQuerySet(models.QuerySet):
    """Convenience filters for requests."""

    def pending(self):
        return self.filter(status=RequestStatus.PENDING)

    def decided(self):
        """Approved or rejected (the engine has acted)."""
        return self.filter(status__in=[RequestStatus.APPROVED, RequestStatus.REJECTED])

    def for_customer(self, customer_id: str):
        return self.filter(customer_id=customer_id)


class StorageRequest(models.Model):
    """
    A customer's ask to store a quantity of goods.

    LIFECYCLE:

        DRAFT ──submit──► PENDING ──approve──► APPROVED ──► COMPLETED
                             │
                             └──reject───► REJECTED

    Created by the customer; after submission it is mutated only by the
    transition engine. Never hard-deleted.

    The displayed workflow state (waiting on load #2, in storage, ...) is
    NOT a column here. It is computed from loads/documents/inventory by
    yardman.workflow.derive_state on every read.
    """

    reference = models.CharField(
        max_length=40,
        unique=True,
        verbose_name=_('Reference'),
        help_text=_('Human reference code shown to the customer'),
    )

    # Owning customer (identity lives in the auth layer)
    customer_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Customer'))
    customer_email = models.EmailField(blank=True, default='', verbose_name=_('Customer e-mail'))
    company_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Company'))

    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    requested_quantity = models.PositiveIntegerField(verbose_name=_('Requested quantity'))

    locations = models.ManyToManyField(
        'yardman.Location',
        through='yardman.Allocation',
        related_name='requests',
        blank=True,
        verbose_name=_('Assigned locations'),
    )

    rejection_reason = models.TextField(blank=True, default='', verbose_name=_('Rejection reason'))
    admin_notes = models.TextField(blank=True, default='', verbose_name=_('Admin notes'))
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = StorageRequestQuerySet.as_manager()

    class Meta:
        verbose_name = _('Storage request')
        verbose_name_plural = _('Storage requests')
        ordering = ['-created_at']
        constraints = [
            # Rejection reason present iff rejected
            models.CheckConstraint(
                condition=(
                    Q(status=RequestStatus.REJECTED) & ~Q(rejection_reason='')
                ) | (
                    ~Q(status=RequestStatus.REJECTED) & Q(rejection_reason='')
                ),
                name='storage_request_rejection_reason_iff_rejected',
            ),
        ]
        indexes = [
            models.Index(fields=['customer_id', 'status'], name='yard_req_customer_status_idx'),
        ]

    @property
    def assigned_location_ids(self) -> set[int]:
        return set(self.allocations.values_list('location_id', flat=True))

    def delete(self, *args, **kwargs):
        raise ValueError("Storage requests are never deleted; use the lifecycle status.")

    def __str__(self) -> str:
        return f"{self.reference} ({self.get_status_display()})"


class Allocation(models.Model):
    """
    Units of one request reserved in one location.

    Written once, by approve(), in the same transaction that increments
    Location.occupied. Sum over a request == its approved quantity.
    """

    request = models.ForeignKey(
        StorageRequest,
        on_delete=models.PROTECT,
        related_name='allocations',
    )
    location = models.ForeignKey(
        'yardman.Location',
        on_delete=models.PROTECT,
        related_name='allocations',
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Allocation')
        verbose_name_plural = _('Allocations')
        ordering = ['location_id']
        constraints = [
            models.UniqueConstraint(
                fields=['request', 'location'],
                name='unique_allocation_per_location',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} @ {self.location_id}"
