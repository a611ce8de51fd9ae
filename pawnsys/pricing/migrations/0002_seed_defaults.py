from decimal import Decimal
from django.db import migrations

PURITIES = [
    ('999', '24K Gold', '24K', Decimal('99.90'), 1),
    ('916', '22K Gold', '22K', Decimal('91.60'), 2),
    ('875', '21K Gold', '21K', Decimal('87.50'), 3),
    ('750', '18K Gold', '18K', Decimal('75.00'), 4),
    ('585', '14K Gold', '14K', Decimal('58.50'), 5),
    ('375', '9K Gold', '9K', Decimal('37.50'), 6),
]

MARGIN_PRESETS = [
    (80, '80%', True, 1),
    (70, '70%', False, 2),
    (60, '60%', False, 3),
]


def seed(apps, schema_editor):
    Purity = apps.get_model('pricing', 'Purity')
    MarginPreset = apps.get_model('pricing', 'MarginPreset')
    for code, name, karat, percentage, order in PURITIES:
        Purity.objects.get_or_create(
            code=code,
            defaults={'name': name, 'karat': karat, 'percentage': percentage, 'sort_order': order},
        )
    if not MarginPreset.objects.exists():
        for value, label, is_default, order in MARGIN_PRESETS:
            MarginPreset.objects.create(value=value, label=label, is_default=is_default, sort_order=order)


def unseed(apps, schema_editor):
    Purity = apps.get_model('pricing', 'Purity')
    Purity.objects.filter(code__in=[p[0] for p in PURITIES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('pricing', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
