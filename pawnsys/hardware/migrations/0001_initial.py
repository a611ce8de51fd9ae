import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='HardwareDevice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('type', models.CharField(choices=[('dot_matrix_printer', 'Dot Matrix Printer'), ('thermal_printer', 'Thermal Printer'), ('barcode_scanner', 'Barcode Scanner'), ('weighing_scale', 'Weighing Scale')], max_length=30)),
                ('brand', models.CharField(blank=True, max_length=255)),
                ('model', models.CharField(blank=True, max_length=255)),
                ('connection', models.CharField(choices=[('usb', 'USB'), ('ethernet', 'Ethernet'), ('wireless', 'Wireless'), ('bluetooth', 'Bluetooth'), ('serial', 'Serial')], default='usb', max_length=20)),
                ('paper_size', models.CharField(blank=True, max_length=50)),
                ('description', models.CharField(blank=True, max_length=500)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('port', models.PositiveIntegerField(blank=True, null=True)),
                ('settings', models.JSONField(blank=True, default=dict)),
                ('is_default', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('status', models.CharField(choices=[('connected', 'Connected'), ('disconnected', 'Disconnected'), ('error', 'Error'), ('unknown', 'Unknown')], default='unknown', max_length=20)),
                ('last_tested_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='devices_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='devices_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'hardware_devices',
                'ordering': ['type', 'name'],
                'indexes': [models.Index(fields=['type', 'is_active'], name='hardware_type_active_idx')],
            },
        ),
    ]
