from django.contrib import admin
from .models import Purity, GoldPrice, GoldPriceLog, MarginPreset


@admin.register(Purity)
class PurityAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'karat', 'percentage', 'is_active', 'sort_order']
    list_filter = ['is_active']
    ordering = ['sort_order']


@admin.register(GoldPrice)
class GoldPriceAdmin(admin.ModelAdmin):
    list_display = ['price_date', 'price_999', 'price_916', 'source', 'created_by', 'created_at']
    list_filter = ['source', 'price_date']
    ordering = ['-price_date']
    readonly_fields = ['created_at']


@admin.register(GoldPriceLog)
class GoldPriceLogAdmin(admin.ModelAdmin):
    list_display = ['fetched_at', 'price_999', 'currency', 'source']
    list_filter = ['source', 'currency']
    ordering = ['-fetched_at']
    readonly_fields = ['price_999', 'purity_prices', 'currency', 'source', 'raw_data', 'fetched_at']


@admin.register(MarginPreset)
class MarginPresetAdmin(admin.ModelAdmin):
    list_display = ['label', 'value', 'is_default', 'is_active', 'sort_order']
    list_filter = ['is_default', 'is_active']
    ordering = ['sort_order']
