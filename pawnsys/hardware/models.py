from django.conf import settings as django_settings
from django.db import models
from django.utils import timezone


class HardwareDevice(models.Model):
    """A printer, scanner or scale registered for the shop"""
    TYPE_CHOICES = [
        ('dot_matrix_printer', 'Dot Matrix Printer'),
        ('thermal_printer', 'Thermal Printer'),
        ('barcode_scanner', 'Barcode Scanner'),
        ('weighing_scale', 'Weighing Scale'),
    ]
    CONNECTION_CHOICES = [
        ('usb', 'USB'),
        ('ethernet', 'Ethernet'),
        ('wireless', 'Wireless'),
        ('bluetooth', 'Bluetooth'),
        ('serial', 'Serial'),
    ]
    STATUS_CHOICES = [
        ('connected', 'Connected'),
        ('disconnected', 'Disconnected'),
        ('error', 'Error'),
        ('unknown', 'Unknown'),
    ]
    PAPER_SIZE_CHOICES = [
        ('A4', 'A4 (210 x 297 mm)'),
        ('A5', 'A5 (148 x 210 mm)'),
        ('80mm', 'Thermal 80mm'),
        ('58mm', 'Thermal 58mm'),
    ]
    PRINTER_TYPES = ('dot_matrix_printer', 'thermal_printer')
    NETWORK_CONNECTIONS = ('ethernet', 'wireless')

    name = models.CharField(max_length=255)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    brand = models.CharField(max_length=255, blank=True)
    model = models.CharField(max_length=255, blank=True)
    connection = models.CharField(max_length=20, choices=CONNECTION_CHOICES, default='usb')
    paper_size = models.CharField(max_length=50, blank=True)
    description = models.CharField(max_length=500, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    port = models.PositiveIntegerField(null=True, blank=True)
    settings = models.JSONField(default=dict, blank=True)
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='unknown')
    last_tested_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='devices_created'
    )
    updated_by = models.ForeignKey(
        django_settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='devices_updated'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    @property
    def is_printer(self):
        return self.type in self.PRINTER_TYPES

    @property
    def is_network(self):
        return self.connection in self.NETWORK_CONNECTIONS

    def set_as_default(self):
        """Make this the default device of its type; others of the type are unset"""
        HardwareDevice.objects.filter(type=self.type, is_default=True).exclude(pk=self.pk).update(is_default=False)
        if not self.is_default:
            self.is_default = True
            self.save(update_fields=['is_default', 'updated_at'])

    def update_status(self, status):
        self.status = status
        self.last_tested_at = timezone.now()
        self.save(update_fields=['status', 'last_tested_at', 'updated_at'])

    @classmethod
    def default_for_type(cls, device_type):
        return cls.objects.filter(type=device_type, is_active=True, is_default=True).first()

    class Meta:
        db_table = 'hardware_devices'
        ordering = ['type', 'name']
        indexes = [
            models.Index(fields=['type', 'is_active'], name='hardware_type_active_idx'),
        ]
