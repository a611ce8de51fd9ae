from django.contrib import admin
from .models import HardwareDevice


@admin.register(HardwareDevice)
class HardwareDeviceAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'connection', 'is_default', 'is_active', 'status', 'last_tested_at']
    list_filter = ['type', 'connection', 'is_active', 'status']
    search_fields = ['name', 'brand', 'model', 'ip_address']
    ordering = ['type', 'name']
    readonly_fields = ['last_tested_at', 'created_at', 'updated_at']
