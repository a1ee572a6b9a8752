import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Unique identifier (e.g. A-A1-01)', unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=100, verbose_name='Name')),
                ('yard', models.CharField(blank=True, default='', max_length=50, verbose_name='Yard')),
                ('capacity', models.PositiveIntegerField(verbose_name='Capacity')),
                ('occupied', models.PositiveIntegerField(default=0, verbose_name='Occupied')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'ordering': ['code'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('occupied__lte', models.F('capacity'))),
                        name='location_occupied_within_capacity',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='StorageRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reference', models.CharField(help_text='Human reference code shown to the customer', max_length=40, unique=True, verbose_name='Reference')),
                ('customer_id', models.CharField(db_index=True, max_length=64, verbose_name='Customer')),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Customer e-mail')),
                ('company_name', models.CharField(blank=True, default='', max_length=200, verbose_name='Company')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('completed', 'Completed')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('requested_quantity', models.PositiveIntegerField(verbose_name='Requested quantity')),
                ('rejection_reason', models.TextField(blank=True, default='', verbose_name='Rejection reason')),
                ('admin_notes', models.TextField(blank=True, default='', verbose_name='Admin notes')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejected_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Storage request',
                'verbose_name_plural': 'Storage requests',
                'ordering': ['-created_at'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('status', 'rejected'), models.Q(('rejection_reason', ''), _negated=True)),
                            models.Q(models.Q(('status', 'rejected'), _negated=True), ('rejection_reason', '')),
                            _connector='OR',
                        ),
                        name='storage_request_rejection_reason_iff_rejected',
                    ),
                ],
                'indexes': [
                    models.Index(fields=['customer_id', 'status'], name='yard_req_customer_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='yardman.location')),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='yardman.storagerequest')),
            ],
            options={
                'verbose_name': 'Allocation',
                'verbose_name_plural': 'Allocations',
                'ordering': ['location_id'],
                'constraints': [
                    models.UniqueConstraint(fields=('request', 'location'), name='unique_allocation_per_location'),
                ],
            },
        ),
        migrations.AddField(
            model_name='storagerequest',
            name='locations',
            field=models.ManyToManyField(blank=True, related_name='requests', through='yardman.Allocation', to='yardman.location', verbose_name='Assigned locations'),
        ),
        migrations.CreateModel(
            name='Load',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('inbound', 'Inbound'), ('outbound', 'Outbound')], max_length=10, verbose_name='Direction')),
                ('sequence_number', models.PositiveIntegerField(verbose_name='Load #')),
                ('status', models.CharField(choices=[('new', 'New'), ('approved', 'Approved'), ('in_transit', 'In transit'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], db_index=True, default='new', max_length=20, verbose_name='Status')),
                ('planned_quantity', models.PositiveIntegerField(blank=True, null=True)),
                ('completed_quantity', models.PositiveIntegerField(blank=True, null=True)),
                ('planned_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('completed_weight', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('planned_length', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('completed_length', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('scheduled_start', models.DateTimeField(blank=True, null=True)),
                ('scheduled_end', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='loads', to='yardman.storagerequest')),
            ],
            options={
                'verbose_name': 'Load',
                'verbose_name_plural': 'Loads',
                'ordering': ['request', 'direction', 'sequence_number'],
                'constraints': [
                    models.UniqueConstraint(fields=('request', 'direction', 'sequence_number'), name='unique_load_sequence_per_direction'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('file_name', models.CharField(max_length=255)),
                ('document_type', models.CharField(blank=True, default='', max_length=50)),
                ('extraction', models.JSONField(blank=True, null=True, verbose_name='Extracted data')),
                ('extraction_version', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('load', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='yardman.load')),
            ],
            options={
                'verbose_name': 'Document',
                'verbose_name_plural': 'Documents',
                'ordering': ['uploaded_at'],
            },
        ),
        migrations.CreateModel(
            name='InventoryRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending_delivery', 'Pending delivery'), ('in_storage', 'In storage'), ('in_transit', 'In transit'), ('picked_up', 'Picked up')], db_index=True, default='pending_delivery', max_length=20)),
                ('quantity', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='inventory', to='yardman.location')),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inventory', to='yardman.storagerequest')),
            ],
            options={
                'verbose_name': 'Inventory record',
                'verbose_name_plural': 'Inventory records',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='AuditRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('actor_id', models.CharField(db_index=True, max_length=64, verbose_name='Actor')),
                ('action', models.CharField(choices=[('approve', 'Approve request'), ('reject', 'Reject request'), ('adjust_occupancy', 'Adjust location occupancy')], max_length=30, verbose_name='Action')),
                ('entity_type', models.CharField(max_length=50, verbose_name='Entity type')),
                ('entity_id', models.CharField(max_length=64, verbose_name='Entity id')),
                ('details', models.JSONField(blank=True, default=dict, verbose_name='Details')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Audit record',
                'verbose_name_plural': 'Audit records',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['entity_type', 'entity_id'], name='yard_audit_entity_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OutboxEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('request_approved', 'Request approved'), ('request_rejected', 'Request rejected')], max_length=40, verbose_name='Type')),
                ('payload', models.JSONField(verbose_name='Payload')),
                ('schema_version', models.PositiveSmallIntegerField(default=1)),
                ('processed', models.BooleanField(default=False, verbose_name='Processed')),
                ('attempts', models.PositiveIntegerField(default=0, verbose_name='Attempts')),
                ('last_attempt_at', models.DateTimeField(blank=True, null=True)),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('last_error', models.TextField(blank=True, default='')),
                ('claim_token', models.UUIDField(blank=True, null=True)),
                ('claimed_until', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Outbox entry',
                'verbose_name_plural': 'Outbox entries',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['processed', 'attempts', 'created_at'], name='yard_outbox_pending_idx'),
                ],
            },
        ),
    ]
