import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


PAYMENT_METHODS = [('cash', 'Cash'), ('transfer', 'Bank Transfer'), ('partial', 'Cash + Transfer')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('pledges', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Renewal',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('renewal_no', models.CharField(max_length=30, unique=True)),
                ('renewal_months', models.PositiveSmallIntegerField()),
                ('previous_due_date', models.DateField()),
                ('new_due_date', models.DateField()),
                ('new_grace_end_date', models.DateField()),
                ('principal', models.DecimalField(decimal_places=2, max_digits=12)),
                ('interest_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('handling_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('total_payable', models.DecimalField(decimal_places=2, max_digits=12)),
                ('payment_method', models.CharField(choices=PAYMENT_METHODS, default='cash', max_length=20)),
                ('cash_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('transfer_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('reference_no', models.CharField(blank=True, max_length=50)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='renewals', to=settings.AUTH_USER_MODEL)),
                ('pledge', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='renewals', to='pledges.pledge')),
            ],
            options={
                'db_table': 'renewals',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='RenewalInterestBreakdown',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('month_number', models.PositiveSmallIntegerField()),
                ('interest_rate', models.DecimalField(decimal_places=2, max_digits=5)),
                ('interest_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('renewal', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='interest_breakdown', to='transactions.renewal')),
            ],
            options={
                'db_table': 'renewal_interest_breakdowns',
                'ordering': ['renewal', 'month_number'],
            },
        ),
        migrations.CreateModel(
            name='Redemption',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('redemption_no', models.CharField(max_length=30, unique=True)),
                ('is_partial', models.BooleanField(default=False)),
                ('principal', models.DecimalField(decimal_places=2, max_digits=12)),
                ('months_elapsed', models.PositiveSmallIntegerField()),
                ('days_overdue', models.PositiveIntegerField(default=0)),
                ('regular_interest', models.DecimalField(decimal_places=2, max_digits=12)),
                ('overdue_interest', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_interest', models.DecimalField(decimal_places=2, max_digits=12)),
                ('handling_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('total_payable', models.DecimalField(decimal_places=2, max_digits=12)),
                ('payment_method', models.CharField(choices=PAYMENT_METHODS, default='cash', max_length=20)),
                ('cash_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('transfer_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('reference_no', models.CharField(blank=True, max_length=50)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='redemptions', to=settings.AUTH_USER_MODEL)),
                ('items', models.ManyToManyField(blank=True, related_name='redemptions', to='pledges.pledgeitem')),
                ('pledge', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='redemptions', to='pledges.pledge')),
            ],
            options={
                'db_table': 'redemptions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Reprint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('print_number', models.PositiveIntegerField()),
                ('is_free', models.BooleanField(default=False)),
                ('charge', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reprints', to=settings.AUTH_USER_MODEL)),
                ('pledge', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reprints', to='pledges.pledge')),
            ],
            options={
                'db_table': 'reprints',
                'ordering': ['-created_at'],
            },
        ),
    ]
