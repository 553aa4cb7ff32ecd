import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('main', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('model_number', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('image_url', models.URLField(blank=True, default='', max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Batch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('quantity', models.PositiveIntegerField(help_text='Target number of units; may exceed the serialized items created so far')),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('IN_PROGRESS', 'In Progress'), ('COMPLETE', 'Complete')], default='PENDING', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_batches', to='main.user')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='assembly.product')),
            ],
            options={
                'verbose_name_plural': 'batches',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SerializedItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('uuid', models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ('serial_number', models.CharField(max_length=32, unique=True)),
                ('status', models.CharField(choices=[('NOT_STARTED', 'Not Started'), ('IN_PROGRESS', 'In Progress'), ('COMPLETE', 'Complete')], db_index=True, default='NOT_STARTED', max_length=20)),
                ('current_stage', models.CharField(blank=True, choices=[('LAP_AND_CLEAN', 'Lap And Clean'), ('PIN_EJECTOR', 'Pin Ejector'), ('INSTALL_EXTRACTOR', 'Install Extractor'), ('FIT_BARREL', 'Fit Barrel'), ('TRIGGER_ASSEMBLY', 'Trigger Assembly'), ('BUILD_SLIDE', 'Build Slide'), ('ASSEMBLE_LOWER', 'Assemble Lower'), ('MATE_SLIDE_FRAME', 'Mate Slide Frame'), ('FUNCTION_TEST', 'Function Test'), ('FINAL_QC', 'Final QC'), ('PACKAGE_AND_SERIALIZE', 'Package And Serialize')], help_text='Null only while the unit is NOT_STARTED', max_length=32, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True, db_index=True)),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='serialized_items', to='assembly.batch')),
            ],
            options={
                'ordering': ['serial_number'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(('current_stage__isnull', True), ('status', 'NOT_STARTED')),
                            models.Q(models.Q(('status', 'NOT_STARTED'), _negated=True), ('current_stage__isnull', False)),
                            _connector='OR',
                        ),
                        name='serialized_item_stage_matches_status',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='UnitStageLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage', models.CharField(choices=[('LAP_AND_CLEAN', 'Lap And Clean'), ('PIN_EJECTOR', 'Pin Ejector'), ('INSTALL_EXTRACTOR', 'Install Extractor'), ('FIT_BARREL', 'Fit Barrel'), ('TRIGGER_ASSEMBLY', 'Trigger Assembly'), ('BUILD_SLIDE', 'Build Slide'), ('ASSEMBLE_LOWER', 'Assemble Lower'), ('MATE_SLIDE_FRAME', 'Mate Slide Frame'), ('FUNCTION_TEST', 'Function Test'), ('FINAL_QC', 'Final QC'), ('PACKAGE_AND_SERIALIZE', 'Package And Serialize')], db_index=True, max_length=32)),
                ('status', models.CharField(choices=[('COMPLETE', 'Complete'), ('REJECTED', 'Rejected')], db_index=True, max_length=10)),
                ('notes', models.TextField(blank=True, default='')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('completed_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='stage_logs', to='main.user')),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stage_logs', to='assembly.serializeditem')),
            ],
            options={
                'ordering': ['timestamp', 'id'],
                'indexes': [
                    models.Index(fields=['status', 'timestamp'], name='stagelog_status_ts_idx'),
                    models.Index(fields=['unit', 'stage', 'status'], name='stagelog_unit_stage_idx'),
                ],
            },
        ),
    ]
