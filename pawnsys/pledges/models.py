from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import models
from decimal import Decimal
from django.utils import timezone


class Category(models.Model):
    """Item categories (ring, chain, bangle, ...)"""
    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(max_length=20, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['sort_order', 'name']
        verbose_name_plural = 'categories'


class Pledge(models.Model):
    """A pawn loan secured by one or more gold items"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('overdue', 'Overdue'),
        ('renewed', 'Renewed'),
        ('redeemed', 'Redeemed'),
        ('forfeited', 'Forfeited'),
        ('cancelled', 'Cancelled'),
    ]
    OUTSTANDING_STATUSES = ('active', 'overdue')

    pledge_no = models.CharField(max_length=30, unique=True)
    receipt_no = models.CharField(max_length=30, unique=True)
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='pledges')

    total_gross_weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    total_net_weight = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    gross_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_deduction = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    loan_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    loan_amount = models.DecimalField(max_digits=12, decimal_places=2)

    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, help_text="Monthly % for months 1-6")
    interest_rate_extended = models.DecimalField(max_digits=5, decimal_places=2, help_text="Monthly % after month 6")
    interest_rate_overdue = models.DecimalField(max_digits=5, decimal_places=2, help_text="Monthly % past due date")

    pledge_date = models.DateField()
    due_date = models.DateField()
    grace_end_date = models.DateField()

    gold_price_999 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gold_price_916 = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    gold_price_source = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    renewal_count = models.PositiveIntegerField(default=0)
    receipt_print_count = models.PositiveIntegerField(default=0)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='pledges_cancelled')
    cancellation_reason = models.TextField(blank=True)

    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='pledges_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.pledge_no

    @property
    def is_outstanding(self):
        return self.status in self.OUTSTANDING_STATUSES

    def months_elapsed(self, on=None):
        """Whole months since the pledge date"""
        on = on or timezone.localdate()
        if on <= self.pledge_date:
            return 0
        delta = relativedelta(on, self.pledge_date)
        return delta.years * 12 + delta.months

    def is_overdue(self, on=None):
        on = on or timezone.localdate()
        return self.is_outstanding and on > self.due_date

    def is_in_grace_period(self, on=None):
        on = on or timezone.localdate()
        return self.due_date < on <= self.grace_end_date

    def days_overdue(self, on=None):
        on = on or timezone.localdate()
        if not self.is_overdue(on):
            return 0
        return (on - self.due_date).days

    @property
    def effective_status(self):
        """Status with 'active' promoted to 'overdue' once the due date has passed"""
        if self.status == 'active' and self.is_overdue():
            return 'overdue'
        return self.status

    class Meta:
        db_table = 'pledges'
        ordering = ['-pledge_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='pledges_status_idx'),
            models.Index(fields=['due_date'], name='pledges_due_date_idx'),
        ]


class PledgeItem(models.Model):
    """A single gold article held against a pledge"""
    DEDUCTION_TYPE_CHOICES = [
        ('none', 'None'),
        ('percentage', 'Percentage of weight'),
        ('grams', 'Grams'),
        ('amount', 'Amount'),
    ]
    STATUS_CHOICES = [
        ('stored', 'Stored'),
        ('released', 'Released'),
        ('redeemed', 'Redeemed'),
        ('forfeited', 'Forfeited'),
    ]

    pledge = models.ForeignKey(Pledge, on_delete=models.CASCADE, related_name='items')
    item_no = models.PositiveIntegerField()
    barcode = models.CharField(max_length=50, unique=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, null=True, blank=True, related_name='items')
    purity = models.ForeignKey('pricing.Purity', on_delete=models.PROTECT, related_name='items')

    gross_weight = models.DecimalField(max_digits=10, decimal_places=3)
    stone_deduction_type = models.CharField(max_length=20, choices=DEDUCTION_TYPE_CHOICES, default='none')
    stone_deduction_value = models.DecimalField(max_digits=10, decimal_places=3, default=Decimal('0.000'))
    net_weight = models.DecimalField(max_digits=10, decimal_places=3)
    price_per_gram = models.DecimalField(max_digits=10, decimal_places=2)
    gross_value = models.DecimalField(max_digits=12, decimal_places=2)
    deduction_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    net_value = models.DecimalField(max_digits=12, decimal_places=2)

    description = models.CharField(max_length=255, blank=True)
    remarks = models.TextField(blank=True)

    slot = models.OneToOneField('storage.Slot', on_delete=models.SET_NULL, null=True, blank=True, related_name='current_item')
    location_assigned_at = models.DateTimeField(null=True, blank=True)
    location_assigned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='items_located')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='stored')
    released_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.barcode

    @property
    def location_string(self):
        return self.slot.location_string if self.slot_id else None

    class Meta:
        db_table = 'pledge_items'
        ordering = ['pledge', 'item_no']
        unique_together = [['pledge', 'item_no']]
        indexes = [
            models.Index(fields=['status'], name='pledge_items_status_idx'),
        ]
