import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('pledges', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Reconciliation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reconciliation_no', models.CharField(max_length=30, unique=True)),
                ('reconciliation_type', models.CharField(choices=[('daily', 'Daily'), ('weekly', 'Weekly'), ('monthly', 'Monthly'), ('adhoc', 'Ad hoc')], default='daily', max_length=20)),
                ('expected_items', models.PositiveIntegerField(default=0)),
                ('scanned_items', models.PositiveIntegerField(default=0)),
                ('matched_items', models.PositiveIntegerField(default=0)),
                ('missing_items', models.PositiveIntegerField(default=0)),
                ('unexpected_items', models.PositiveIntegerField(default=0)),
                ('status', models.CharField(choices=[('in_progress', 'In Progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='in_progress', max_length=20)),
                ('outcome', models.CharField(blank=True, choices=[('complete', 'Complete'), ('discrepancy', 'Discrepancy')], max_length=20)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reconciliations_completed', to=settings.AUTH_USER_MODEL)),
                ('started_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reconciliations_started', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'reconciliations',
                'ordering': ['-started_at'],
                'indexes': [
                    models.Index(fields=['status'], name='reconciliations_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReconciliationItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('barcode', models.CharField(max_length=50)),
                ('scanned_value', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('matched', 'Matched'), ('unexpected', 'Unexpected'), ('missing', 'Missing')], max_length=20)),
                ('scanned_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.CharField(blank=True, max_length=255)),
                ('pledge_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reconciliation_items', to='pledges.pledgeitem')),
                ('reconciliation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='reconciliation.reconciliation')),
                ('scanned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reconciliation_scans', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'reconciliation_items',
                'ordering': ['scanned_at', 'id'],
                'unique_together': {('reconciliation', 'barcode')},
            },
        ),
    ]
