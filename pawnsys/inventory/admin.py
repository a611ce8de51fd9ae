from django.contrib import admin
from .models import ItemLocationHistory


@admin.register(ItemLocationHistory)
class ItemLocationHistoryAdmin(admin.ModelAdmin):
    list_display = ['item', 'from_location', 'to_location', 'reason', 'moved_by', 'moved_at']
    search_fields = ['item__barcode', 'from_location', 'to_location']
    ordering = ['-moved_at']
