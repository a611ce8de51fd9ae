import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('pledges', '0001_initial'),
        ('storage', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ItemLocationHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('from_location', models.CharField(blank=True, max_length=100)),
                ('to_location', models.CharField(blank=True, max_length=100)),
                ('reason', models.CharField(blank=True, max_length=255)),
                ('moved_at', models.DateTimeField(auto_now_add=True)),
                ('from_slot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='storage.slot')),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='location_history', to='pledges.pledgeitem')),
                ('moved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='item_moves', to=settings.AUTH_USER_MODEL)),
                ('to_slot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='storage.slot')),
            ],
            options={
                'db_table': 'item_location_history',
                'ordering': ['-moved_at', '-id'],
                'verbose_name_plural': 'item location history',
            },
        ),
    ]
