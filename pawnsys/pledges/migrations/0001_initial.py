import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('customers', '0001_initial'),
        ('pricing', '0001_initial'),
        ('storage', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('code', models.CharField(blank=True, max_length=20)),
                ('description', models.TextField(blank=True)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'categories',
                'ordering': ['sort_order', 'name'],
                'verbose_name_plural': 'categories',
            },
        ),
        migrations.CreateModel(
            name='Pledge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pledge_no', models.CharField(max_length=30, unique=True)),
                ('receipt_no', models.CharField(max_length=30, unique=True)),
                ('total_gross_weight', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10)),
                ('total_net_weight', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10)),
                ('gross_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_deduction', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('net_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('loan_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('loan_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('interest_rate', models.DecimalField(decimal_places=2, help_text='Monthly % for months 1-6', max_digits=5)),
                ('interest_rate_extended', models.DecimalField(decimal_places=2, help_text='Monthly % after month 6', max_digits=5)),
                ('interest_rate_overdue', models.DecimalField(decimal_places=2, help_text='Monthly % past due date', max_digits=5)),
                ('pledge_date', models.DateField()),
                ('due_date', models.DateField()),
                ('grace_end_date', models.DateField()),
                ('gold_price_999', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('gold_price_916', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('gold_price_source', models.CharField(blank=True, max_length=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('overdue', 'Overdue'), ('renewed', 'Renewed'), ('redeemed', 'Redeemed'), ('forfeited', 'Forfeited'), ('cancelled', 'Cancelled')], default='active', max_length=20)),
                ('renewal_count', models.PositiveIntegerField(default=0)),
                ('receipt_print_count', models.PositiveIntegerField(default=0)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pledges_cancelled', to=settings.AUTH_USER_MODEL)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pledges_created', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='pledges', to='customers.customer')),
            ],
            options={
                'db_table': 'pledges',
                'ordering': ['-pledge_date', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='pledges_status_idx'),
                    models.Index(fields=['due_date'], name='pledges_due_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PledgeItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_no', models.PositiveIntegerField()),
                ('barcode', models.CharField(max_length=50, unique=True)),
                ('gross_weight', models.DecimalField(decimal_places=3, max_digits=10)),
                ('stone_deduction_type', models.CharField(choices=[('none', 'None'), ('percentage', 'Percentage of weight'), ('grams', 'Grams'), ('amount', 'Amount')], default='none', max_length=20)),
                ('stone_deduction_value', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=10)),
                ('net_weight', models.DecimalField(decimal_places=3, max_digits=10)),
                ('price_per_gram', models.DecimalField(decimal_places=2, max_digits=10)),
                ('gross_value', models.DecimalField(decimal_places=2, max_digits=12)),
                ('deduction_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('net_value', models.DecimalField(decimal_places=2, max_digits=12)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('remarks', models.TextField(blank=True)),
                ('location_assigned_at', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('stored', 'Stored'), ('released', 'Released'), ('redeemed', 'Redeemed'), ('forfeited', 'Forfeited')], default='stored', max_length=20)),
                ('released_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='items', to='pledges.category')),
                ('location_assigned_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='items_located', to=settings.AUTH_USER_MODEL)),
                ('pledge', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='pledges.pledge')),
                ('purity', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='items', to='pricing.purity')),
                ('slot', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='current_item', to='storage.slot')),
            ],
            options={
                'db_table': 'pledge_items',
                'ordering': ['pledge', 'item_no'],
                'unique_together': {('pledge', 'item_no')},
                'indexes': [
                    models.Index(fields=['status'], name='pledge_items_status_idx'),
                ],
            },
        ),
    ]
