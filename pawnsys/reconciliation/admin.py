from django.contrib import admin
from .models import Reconciliation, ReconciliationItem


class ReconciliationItemInline(admin.TabularInline):
    model = ReconciliationItem
    extra = 0
    fields = ['barcode', 'status', 'pledge_item', 'scanned_at', 'scanned_by', 'notes']
    readonly_fields = fields


@admin.register(Reconciliation)
class ReconciliationAdmin(admin.ModelAdmin):
    list_display = ['reconciliation_no', 'reconciliation_type', 'status', 'outcome', 'expected_items',
                    'matched_items', 'missing_items', 'unexpected_items', 'started_at']
    list_filter = ['status', 'outcome', 'reconciliation_type', 'started_at']
    search_fields = ['reconciliation_no']
    ordering = ['-started_at']
    inlines = [ReconciliationItemInline]
