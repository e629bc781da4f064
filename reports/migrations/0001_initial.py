# Generated manually: reports and their status transition log

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


STATUS_CHOICES = [
    ('Pending', 'Pending'),
    ('Assigned', 'Assigned'),
    ('In Progress', 'In Progress'),
    ('Completed', 'Completed'),
    ('Resolved', 'Resolved'),
    ('Rejected', 'Rejected'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Report',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, editable=False, help_text='Timestamp when the report was submitted')),
                ('category', models.CharField(
                    choices=[
                        ('general_waste', 'General Waste'),
                        ('recyclable', 'Recyclable'),
                        ('hazardous', 'Hazardous'),
                        ('illegal_dumping', 'Illegal Dumping'),
                        ('bulky_items', 'Bulky Items'),
                    ],
                    db_index=True,
                    default='general_waste',
                    help_text='Waste category',
                    max_length=30,
                )),
                ('address', models.CharField(help_text='Free-text address of the incident', max_length=255)),
                ('description', models.TextField(blank=True, help_text="Citizen's description of the incident")),
                ('latitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('longitude', models.DecimalField(blank=True, decimal_places=7, max_digits=10, null=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, db_index=True, default='Pending', help_text='Current report status', max_length=20)),
                ('rejection_message', models.TextField(blank=True, help_text='Reason given when the report was rejected')),
                ('assigned_driver', models.ForeignKey(
                    blank=True,
                    help_text='Driver currently responsible for the report',
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='assigned_reports',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('submitted_by', models.ForeignKey(
                    help_text='Citizen who submitted the report',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='submitted_reports',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Report',
                'verbose_name_plural': 'Reports',
                'db_table': 'reports',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ReportStatusHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('from_status', models.CharField(blank=True, choices=STATUS_CHOICES, help_text='Previous status (null for initial creation)', max_length=20, null=True)),
                ('to_status', models.CharField(choices=STATUS_CHOICES, help_text='New status', max_length=20)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text='When the transition happened')),
                ('actor_role', models.CharField(
                    choices=[
                        ('admin', 'Administrator'),
                        ('driver', 'Driver'),
                        ('system', 'System'),
                    ],
                    default='system',
                    max_length=10,
                )),
                ('rejection_message', models.TextField(blank=True, help_text='Required when to_status is Rejected')),
                ('actor', models.ForeignKey(
                    blank=True,
                    help_text='User who changed the status (null for system events)',
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='report_status_changes',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('report', models.ForeignKey(
                    help_text='Report this event belongs to',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='status_history',
                    to='reports.report',
                )),
            ],
            options={
                'verbose_name': 'Report Status History',
                'verbose_name_plural': 'Report Status Histories',
                'db_table': 'report_status_history',
                'ordering': ['timestamp', 'created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='report',
            index=models.Index(fields=['created_at', 'category'], name='reports_created_cat_idx'),
        ),
        migrations.AddIndex(
            model_name='report',
            index=models.Index(fields=['status', 'assigned_driver'], name='reports_status_driver_idx'),
        ),
        migrations.AddIndex(
            model_name='report',
            index=models.Index(fields=['created_at', 'status', 'category'], name='reports_created_status_idx'),
        ),
        migrations.AddIndex(
            model_name='reportstatushistory',
            index=models.Index(fields=['report', 'timestamp'], name='report_history_ts_idx'),
        ),
    ]
