"""
AuditRecord model — Append-only log of admin actions.
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from yardman.models.enums import AuditAction


class AuditRecord(models.Model):
    """
    Immutable record of an admin action.

    Rules:
    - NEVER update() or delete()
    - Written in the same transaction as the change it describes
    """

    actor_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Actor'))
    action = models.CharField(
        max_length=30,
        choices=AuditAction.choices,
        verbose_name=_('Action'),
    )
    entity_type = models.CharField(max_length=50, verbose_name=_('Entity type'))
    entity_id = models.CharField(max_length=64, verbose_name=_('Entity id'))
    details = models.JSONField(default=dict, blank=True, verbose_name=_('Details'))
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('Audit record')
        verbose_name_plural = _('Audit records')
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['entity_type', 'entity_id'], name='yard_audit_entity_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError("Audit records are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Audit records are immutable.")

    def __str__(self) -> str:
        return f"{self.actor_id} {self.action} {self.entity_type}:{self.entity_id}"
