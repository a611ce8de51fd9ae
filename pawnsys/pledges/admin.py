from django.contrib import admin
from .models import Category, Pledge, PledgeItem


class PledgeItemInline(admin.TabularInline):
    model = PledgeItem
    extra = 0
    fields = ['item_no', 'barcode', 'category', 'purity', 'gross_weight', 'net_weight', 'net_value', 'slot', 'status']
    readonly_fields = ['barcode']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'is_active', 'sort_order']
    list_filter = ['is_active']
    search_fields = ['name', 'code']
    ordering = ['sort_order', 'name']


@admin.register(Pledge)
class PledgeAdmin(admin.ModelAdmin):
    list_display = ['pledge_no', 'receipt_no', 'customer', 'loan_amount', 'pledge_date', 'due_date', 'status', 'renewal_count']
    list_filter = ['status', 'pledge_date', 'due_date']
    search_fields = ['pledge_no', 'receipt_no', 'customer__name', 'customer__ic_number']
    ordering = ['-pledge_date', '-id']
    readonly_fields = ['pledge_no', 'receipt_no', 'created_at', 'updated_at']
    inlines = [PledgeItemInline]


@admin.register(PledgeItem)
class PledgeItemAdmin(admin.ModelAdmin):
    list_display = ['barcode', 'pledge', 'category', 'purity', 'net_weight', 'net_value', 'slot', 'status']
    list_filter = ['status', 'purity', 'category']
    search_fields = ['barcode', 'pledge__pledge_no']
    ordering = ['-created_at']
