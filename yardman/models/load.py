"""
Load, Document and InventoryRecord models.

These rows are written by the scheduling, receiving and manifest flows,
which live outside this app. Yardman reads them to derive workflow state.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from yardman.models.enums import InventoryStatus, LoadDirection, LoadStatus


class Load(models.Model):
    """One truck delivery (inbound) or pickup (outbound) for a request."""

    request = models.ForeignKey(
        'yardman.StorageRequest',
        on_delete=models.PROTECT,
        related_name='loads',
    )
    direction = models.CharField(
        max_length=10,
        choices=LoadDirection.choices,
        verbose_name=_('Direction'),
    )
    sequence_number = models.PositiveIntegerField(verbose_name=_('Load #'))
    status = models.CharField(
        max_length=20,
        choices=LoadStatus.choices,
        default=LoadStatus.NEW,
        db_index=True,
        verbose_name=_('Status'),
    )

    planned_quantity = models.PositiveIntegerField(null=True, blank=True)
    completed_quantity = models.PositiveIntegerField(null=True, blank=True)
    planned_weight = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    completed_weight = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    planned_length = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    completed_length = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    scheduled_start = models.DateTimeField(null=True, blank=True)
    scheduled_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Load')
        verbose_name_plural = _('Loads')
        ordering = ['request', 'direction', 'sequence_number']
        constraints = [
            models.UniqueConstraint(
                fields=['request', 'direction', 'sequence_number'],
                name='unique_load_sequence_per_direction',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_direction_display()} load #{self.sequence_number}"


class Document(models.Model):
    """
    A manifest (or other paperwork) attached to a load.

    ``extraction`` holds structured data pulled from the file; NULL means
    the document was received but not processed yet.
    """

    load = models.ForeignKey(
        Load,
        on_delete=models.CASCADE,
        related_name='documents',
    )
    file_name = models.CharField(max_length=255)
    document_type = models.CharField(max_length=50, blank=True, default='')
    extraction = models.JSONField(null=True, blank=True, verbose_name=_('Extracted data'))
    extraction_version = models.PositiveSmallIntegerField(null=True, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Document')
        verbose_name_plural = _('Documents')
        ordering = ['uploaded_at']

    @property
    def is_processed(self) -> bool:
        return self.extraction is not None

    def __str__(self) -> str:
        return self.file_name


class InventoryRecord(models.Model):
    """Goods of a request, optionally placed in a specific location."""

    request = models.ForeignKey(
        'yardman.StorageRequest',
        on_delete=models.PROTECT,
        related_name='inventory',
    )
    location = models.ForeignKey(
        'yardman.Location',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='inventory',
    )
    status = models.CharField(
        max_length=20,
        choices=InventoryStatus.choices,
        default=InventoryStatus.PENDING_DELIVERY,
        db_index=True,
    )
    quantity = models.PositiveIntegerField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Inventory record')
        verbose_name_plural = _('Inventory records')
        ordering = ['created_at']

    def __str__(self) -> str:
        return f"{self.quantity} ({self.get_status_display()})"
