from django.conf import settings
from django.db import models
from django.utils import timezone

from .matching import calculate_progress


class Reconciliation(models.Model):
    """A stock audit comparing stored items with scanned barcodes"""
    TYPE_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
        ('adhoc', 'Ad hoc'),
    ]
    STATUS_CHOICES = [
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    OUTCOME_CHOICES = [
        ('complete', 'Complete'),
        ('discrepancy', 'Discrepancy'),
    ]

    reconciliation_no = models.CharField(max_length=30, unique=True)
    reconciliation_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='daily')
    expected_items = models.PositiveIntegerField(default=0)
    scanned_items = models.PositiveIntegerField(default=0)
    matched_items = models.PositiveIntegerField(default=0)
    missing_items = models.PositiveIntegerField(default=0)
    unexpected_items = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='in_progress')
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, blank=True)
    started_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()
    completed_at = models.DateTimeField(null=True, blank=True)
    started_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reconciliations_started')
    completed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reconciliations_completed')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.reconciliation_no

    @property
    def is_expired(self):
        return self.status == 'in_progress' and timezone.now() > self.expires_at

    @property
    def progress(self):
        return calculate_progress(self.matched_items, self.expected_items)

    @property
    def accuracy_rate(self):
        if self.expected_items == 0:
            return 100
        return round(self.matched_items / self.expected_items * 100, 2)

    class Meta:
        db_table = 'reconciliations'
        ordering = ['-started_at']
        indexes = [
            models.Index(fields=['status'], name='reconciliations_status_idx'),
        ]


class ReconciliationItem(models.Model):
    STATUS_CHOICES = [
        ('matched', 'Matched'),
        ('unexpected', 'Unexpected'),
        ('missing', 'Missing'),
    ]

    reconciliation = models.ForeignKey(Reconciliation, on_delete=models.CASCADE, related_name='items')
    pledge_item = models.ForeignKey('pledges.PledgeItem', on_delete=models.SET_NULL, null=True, blank=True, related_name='reconciliation_items')
    barcode = models.CharField(max_length=50)
    scanned_value = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    scanned_at = models.DateTimeField(null=True, blank=True)
    scanned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reconciliation_scans')
    notes = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.barcode} ({self.status})"

    class Meta:
        db_table = 'reconciliation_items'
        ordering = ['scanned_at', 'id']
        unique_together = [['reconciliation', 'barcode']]
