"""
Location model — A finite-capacity rack.
"""

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _


class Location(models.Model):
    """
    A storage slot (rack) with a fixed capacity in units.

    ``occupied`` is the capacity ledger. It is written by the transition
    engine only (approve, manual adjustment), always under a row lock.
    The database enforces ``0 <= occupied <= capacity`` as a last line.

    Examples:
        Location.objects.create(code='A-A1-01', name='Rack A1-01', capacity=60)
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. A-A1-01)'),
    )
    name = models.CharField(
        max_length=100,
        verbose_name=_('Name'),
    )
    yard = models.CharField(
        max_length=50,
        blank=True,
        default='',
        verbose_name=_('Yard'),
    )
    capacity = models.PositiveIntegerField(verbose_name=_('Capacity'))
    occupied = models.PositiveIntegerField(default=0, verbose_name=_('Occupied'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['code']
        constraints = [
            models.CheckConstraint(
                condition=Q(occupied__lte=F('capacity')),
                name='location_occupied_within_capacity',
            ),
        ]

    @property
    def headroom(self) -> int:
        """Units still free."""
        return max(self.capacity - self.occupied, 0)

    def __str__(self) -> str:
        return self.name
