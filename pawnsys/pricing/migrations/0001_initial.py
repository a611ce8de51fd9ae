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
            name='Purity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=10, unique=True)),
                ('name', models.CharField(max_length=50)),
                ('karat', models.CharField(blank=True, max_length=10)),
                ('percentage', models.DecimalField(decimal_places=2, help_text='Gold content in percent, e.g. 91.60', max_digits=5)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
            ],
            options={
                'db_table': 'purities',
                'ordering': ['sort_order', '-percentage'],
                'verbose_name_plural': 'purities',
            },
        ),
        migrations.CreateModel(
            name='GoldPrice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price_date', models.DateField()),
                ('price_999', models.DecimalField(decimal_places=2, max_digits=10)),
                ('price_916', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_875', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_750', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_585', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('price_375', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('source', models.CharField(choices=[('manual', 'Manual'), ('api', 'API')], default='manual', max_length=10)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='gold_prices', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'gold_prices',
                'ordering': ['-price_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GoldPriceLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('price_999', models.DecimalField(decimal_places=2, max_digits=10)),
                ('purity_prices', models.JSONField(blank=True, default=dict)),
                ('currency', models.CharField(default='MYR', max_length=3)),
                ('source', models.CharField(default='metalpriceapi', max_length=30)),
                ('raw_data', models.JSONField(blank=True, default=dict)),
                ('fetched_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'gold_price_logs',
                'ordering': ['-fetched_at'],
            },
        ),
        migrations.CreateModel(
            name='MarginPreset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('value', models.PositiveIntegerField(help_text='Loan percentage of net value, e.g. 80')),
                ('label', models.CharField(max_length=50)),
                ('is_default', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'margin_presets',
                'ordering': ['sort_order', '-value'],
            },
        ),
    ]
