from decimal import Decimal

from django.conf import settings
from django.db import models

PAYMENT_METHOD_CHOICES = [
    ('cash', 'Cash'),
    ('transfer', 'Bank Transfer'),
    ('partial', 'Cash + Transfer'),
]


class Renewal(models.Model):
    """Interest paid to extend a pledge's due date"""
    renewal_no = models.CharField(max_length=30, unique=True)
    pledge = models.ForeignKey('pledges.Pledge', on_delete=models.PROTECT, related_name='renewals')
    renewal_months = models.PositiveSmallIntegerField()
    previous_due_date = models.DateField()
    new_due_date = models.DateField()
    new_grace_end_date = models.DateField()
    principal = models.DecimalField(max_digits=12, decimal_places=2)
    interest_amount = models.DecimalField(max_digits=12, decimal_places=2)
    handling_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_payable = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    cash_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    transfer_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    reference_no = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='renewals')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.renewal_no

    class Meta:
        db_table = 'renewals'
        ordering = ['-created_at']


class RenewalInterestBreakdown(models.Model):
    renewal = models.ForeignKey(Renewal, on_delete=models.CASCADE, related_name='interest_breakdown')
    month_number = models.PositiveSmallIntegerField()
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2)
    interest_amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'renewal_interest_breakdowns'
        ordering = ['renewal', 'month_number']


class Redemption(models.Model):
    """Repayment that returns some or all of a pledge's items to the customer"""
    redemption_no = models.CharField(max_length=30, unique=True)
    pledge = models.ForeignKey('pledges.Pledge', on_delete=models.PROTECT, related_name='redemptions')
    items = models.ManyToManyField('pledges.PledgeItem', related_name='redemptions', blank=True)
    is_partial = models.BooleanField(default=False)
    principal = models.DecimalField(max_digits=12, decimal_places=2)
    months_elapsed = models.PositiveSmallIntegerField()
    days_overdue = models.PositiveIntegerField(default=0)
    regular_interest = models.DecimalField(max_digits=12, decimal_places=2)
    overdue_interest = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_interest = models.DecimalField(max_digits=12, decimal_places=2)
    handling_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_payable = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='cash')
    cash_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    transfer_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    reference_no = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='redemptions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.redemption_no

    @property
    def amount_paid(self):
        return self.cash_amount + self.transfer_amount

    class Meta:
        db_table = 'redemptions'
        ordering = ['-created_at']


class Reprint(models.Model):
    """A receipt reprint; the first print of a pledge is free"""
    pledge = models.ForeignKey('pledges.Pledge', on_delete=models.PROTECT, related_name='reprints')
    print_number = models.PositiveIntegerField()
    is_free = models.BooleanField(default=False)
    charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reprints')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.pledge_id} #{self.print_number}"

    class Meta:
        db_table = 'reprints'
        ordering = ['-created_at']
