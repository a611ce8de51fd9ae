from django.contrib import admin
from .models import Vault, Box, Slot


@admin.register(Vault)
class VaultAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    ordering = ['code']


@admin.register(Box)
class BoxAdmin(admin.ModelAdmin):
    list_display = ['vault', 'box_number', 'name', 'total_slots', 'is_active']
    list_filter = ['vault', 'is_active']
    search_fields = ['name', 'vault__code']
    ordering = ['vault', 'box_number']


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    list_display = ['box', 'slot_number', 'is_occupied', 'occupied_at']
    list_filter = ['is_occupied', 'box__vault']
    ordering = ['box', 'slot_number']
    readonly_fields = ['is_occupied', 'occupied_at']
