from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Counter staff account; staff flag gates settings and user admin"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """Runtime-editable system settings (key/value)"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Who did what to which pledge, item or record"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('pledge_create', 'Pledge Created'),
        ('pledge_cancel', 'Pledge Cancelled'),
        ('renewal', 'Renewal'),
        ('redemption', 'Redemption'),
        ('reprint', 'Receipt Reprint'),
        ('storage_assign', 'Storage Assigned'),
        ('location_change', 'Location Changed'),
        ('price_change', 'Price Change'),
        ('blacklist', 'Customer Blacklisted'),
        ('barcode_scan', 'Barcode Scanned'),
        ('reconciliation_start', 'Reconciliation Started'),
        ('reconciliation_complete', 'Reconciliation Completed'),
        ('reconciliation_cancel', 'Reconciliation Cancelled'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., customer name, pledge number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., pledge number, renewal number)")
    barcode = models.CharField(max_length=1000, blank=True, null=True, help_text="Item barcode(s) if applicable, comma-separated")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_8b1f2e_idx'),
            models.Index(fields=['action'], name='audit_logs_action_4c3a1d_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_7e9d0a_idx'),
            models.Index(fields=['barcode'], name='audit_logs_barcode_2f6b8c_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__5a0e3b_idx'),
        ]
