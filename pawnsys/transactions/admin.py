from django.contrib import admin
from .models import Renewal, RenewalInterestBreakdown, Redemption, Reprint


class RenewalInterestBreakdownInline(admin.TabularInline):
    model = RenewalInterestBreakdown
    extra = 0


@admin.register(Renewal)
class RenewalAdmin(admin.ModelAdmin):
    list_display = ['renewal_no', 'pledge', 'renewal_months', 'new_due_date', 'total_payable', 'payment_method', 'created_at']
    list_filter = ['payment_method', 'renewal_months', 'created_at']
    search_fields = ['renewal_no', 'pledge__pledge_no']
    ordering = ['-created_at']
    inlines = [RenewalInterestBreakdownInline]


@admin.register(Redemption)
class RedemptionAdmin(admin.ModelAdmin):
    list_display = ['redemption_no', 'pledge', 'is_partial', 'principal', 'total_payable', 'payment_method', 'created_at']
    list_filter = ['is_partial', 'payment_method', 'created_at']
    search_fields = ['redemption_no', 'pledge__pledge_no']
    ordering = ['-created_at']


@admin.register(Reprint)
class ReprintAdmin(admin.ModelAdmin):
    list_display = ['pledge', 'print_number', 'is_free', 'charge', 'created_by', 'created_at']
    list_filter = ['is_free', 'created_at']
    search_fields = ['pledge__pledge_no']
    ordering = ['-created_at']
