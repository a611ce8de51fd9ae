import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('customer_no', models.CharField(max_length=30, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('ic_number', models.CharField(help_text='Stored without dashes', max_length=30, unique=True)),
                ('ic_type', models.CharField(choices=[('mykad', 'MyKad'), ('passport', 'Passport'), ('other', 'Other')], default='mykad', max_length=20)),
                ('gender', models.CharField(blank=True, choices=[('male', 'Male'), ('female', 'Female')], max_length=10)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('nationality', models.CharField(default='Malaysian', max_length=100)),
                ('occupation', models.CharField(blank=True, max_length=150)),
                ('phone', models.CharField(max_length=20)),
                ('country_code', models.CharField(default='+60', max_length=5)),
                ('whatsapp', models.CharField(blank=True, max_length=20)),
                ('phone_alt', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('address_line1', models.CharField(blank=True, max_length=255)),
                ('address_line2', models.CharField(blank=True, max_length=255)),
                ('city', models.CharField(blank=True, max_length=100)),
                ('state', models.CharField(blank=True, max_length=100)),
                ('postcode', models.CharField(blank=True, max_length=10)),
                ('ic_front_photo', models.CharField(blank=True, max_length=500)),
                ('ic_back_photo', models.CharField(blank=True, max_length=500)),
                ('selfie_photo', models.CharField(blank=True, max_length=500)),
                ('total_pledges', models.PositiveIntegerField(default=0)),
                ('active_pledges', models.PositiveIntegerField(default=0)),
                ('total_loan_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('is_blacklisted', models.BooleanField(default=False)),
                ('blacklist_reason', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='customers_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'customers',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['name'], name='customers_name_idx'),
                    models.Index(fields=['phone'], name='customers_phone_idx'),
                ],
            },
        ),
    ]
