"""
Yardman Admin — views for operators and production debugging.

- Location: editable, except the occupied ledger
- StorageRequest: read-only, shows the derived workflow state
- Load / Document: editable (yard operations data)
- AuditRecord: read-only, immutable trail
- OutboxEntry: read-only, filter for stuck entries

Approval, rejection and occupancy changes go through yardman.yard only.
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from yardman.conf import yardman_settings
from yardman.models import AuditRecord, Document, Load, Location, OutboxEntry, StorageRequest
from yardman.services.queries import snapshot_from, with_snapshot_data
from yardman.workflow import derive_state


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# LOCATION ADMIN
# =========================================================================

@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    """Occupied is changed via yard.adjust_occupancy() only."""

    list_display = ['code', 'name', 'yard', 'capacity', 'occupied', 'headroom_display']
    list_filter = ['yard']
    search_fields = ['code', 'name']
    readonly_fields = ['occupied', 'created_at', 'updated_at']

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Headroom'))
    def headroom_display(self, obj):
        return obj.headroom


# =========================================================================
# STORAGE REQUEST ADMIN (read-only)
# =========================================================================

class LoadInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Load
    fields = ['direction', 'sequence_number', 'status', 'scheduled_start', 'completed_at']
    readonly_fields = fields
    extra = 0


@admin.register(StorageRequest)
class StorageRequestAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StorageRequest admin — read-only. Decisions go through the yard service."""

    list_display = ['reference', 'company_name', 'status', 'requested_quantity',
                    'workflow_display', 'created_at']
    list_filter = ['status']
    search_fields = ['reference', 'company_name', 'customer_email']
    readonly_fields = ['reference', 'customer_id', 'customer_email', 'company_name', 'status',
                       'requested_quantity', 'rejection_reason', 'admin_notes', 'metadata',
                       'created_at', 'updated_at', 'approved_at', 'rejected_at', 'completed_at']
    inlines = [LoadInline]
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        return with_snapshot_data(super().get_queryset(request))

    @admin.display(description=_('Workflow'))
    def workflow_display(self, obj):
        return derive_state(snapshot_from(obj)).label


# =========================================================================
# LOAD / DOCUMENT ADMIN
# =========================================================================

class DocumentInline(admin.TabularInline):
    model = Document
    fields = ['file_name', 'document_type', 'extraction_version', 'uploaded_at']
    extra = 0


@admin.register(Load)
class LoadAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'request', 'status', 'scheduled_start', 'completed_at']
    list_filter = ['direction', 'status']
    search_fields = ['request__reference']
    inlines = [DocumentInline]


# =========================================================================
# AUDIT ADMIN (read-only)
# =========================================================================

@admin.register(AuditRecord)
class AuditRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Immutable trail."""

    list_display = ['created_at', 'actor_id', 'action', 'entity_type', 'entity_id']
    list_filter = ['action', 'entity_type']
    search_fields = ['actor_id', 'entity_id']
    readonly_fields = ['actor_id', 'action', 'entity_type', 'entity_id', 'details', 'created_at']
    date_hierarchy = 'created_at'


# =========================================================================
# OUTBOX ADMIN (read-only)
# =========================================================================

class DeliveryStateFilter(admin.SimpleListFilter):
    title = _('delivery')
    parameter_name = 'delivery'

    def lookups(self, request, model_admin):
        return [
            ('pending', _('Pending')),
            ('stuck', _('Stuck')),
            ('sent', _('Sent')),
        ]

    def queryset(self, request, queryset):
        max_attempts = yardman_settings.NOTIFY_MAX_ATTEMPTS
        if self.value() == 'pending':
            return queryset.filter(processed=False, attempts__lt=max_attempts)
        if self.value() == 'stuck':
            return queryset.stuck(max_attempts)
        if self.value() == 'sent':
            return queryset.filter(processed=True)
        return queryset


@admin.register(OutboxEntry)
class OutboxEntryAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """OutboxEntry admin — read-only. Only the drain worker updates entries."""

    list_display = ['id', 'type', 'processed', 'attempts', 'last_attempt_at', 'created_at']
    list_filter = [DeliveryStateFilter, 'type']
    readonly_fields = ['type', 'payload', 'schema_version', 'processed', 'attempts',
                       'last_attempt_at', 'processed_at', 'last_error', 'claim_token',
                       'claimed_until', 'created_at']
    date_hierarchy = 'created_at'
