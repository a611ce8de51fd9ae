from django.conf import settings
from django.db import models
from decimal import Decimal


class Purity(models.Model):
    """Gold purity grades, e.g. 916 (22K)"""
    code = models.CharField(max_length=10, unique=True)
    name = models.CharField(max_length=50)
    karat = models.CharField(max_length=10, blank=True)
    percentage = models.DecimalField(max_digits=5, decimal_places=2, help_text="Gold content in percent, e.g. 91.60")
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.code} ({self.karat or self.name})"

    class Meta:
        db_table = 'purities'
        ordering = ['sort_order', '-percentage']
        verbose_name_plural = 'purities'


class GoldPrice(models.Model):
    """Daily gold price per gram, entered manually or captured from the price feed"""
    SOURCE_CHOICES = [
        ('manual', 'Manual'),
        ('api', 'API'),
    ]

    price_date = models.DateField()
    price_999 = models.DecimalField(max_digits=10, decimal_places=2)
    price_916 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_875 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_750 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_585 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_375 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='manual')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='gold_prices')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.price_date}: {self.price_999}/g ({self.source})"

    def price_for(self, purity_code):
        """Stored price for a purity code, or None"""
        return getattr(self, f'price_{purity_code}', None)

    class Meta:
        db_table = 'gold_prices'
        ordering = ['-price_date', '-created_at']


class GoldPriceLog(models.Model):
    """Every price set fetched from the external feed; the newest row is the first fallback"""
    price_999 = models.DecimalField(max_digits=10, decimal_places=2)
    purity_prices = models.JSONField(default=dict, blank=True)
    currency = models.CharField(max_length=3, default='MYR')
    source = models.CharField(max_length=30, default='metalpriceapi')
    raw_data = models.JSONField(default=dict, blank=True)
    fetched_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.fetched_at:%Y-%m-%d %H:%M} {self.price_999}/g"

    class Meta:
        db_table = 'gold_price_logs'
        ordering = ['-fetched_at']


class MarginPreset(models.Model):
    """Loan-to-value presets offered when creating a pledge"""
    value = models.PositiveIntegerField(help_text="Loan percentage of net value, e.g. 80")
    label = models.CharField(max_length=50)
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.label} ({self.value}%)"

    @property
    def fraction(self):
        return Decimal(self.value) / Decimal('100')

    class Meta:
        db_table = 'margin_presets'
        ordering = ['sort_order', '-value']
