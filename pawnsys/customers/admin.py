from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['customer_no', 'name', 'ic_number', 'phone', 'state', 'active_pledges', 'is_blacklisted', 'created_at']
    list_filter = ['ic_type', 'gender', 'state', 'is_blacklisted', 'created_at']
    search_fields = ['customer_no', 'name', 'ic_number', 'phone', 'email']
    ordering = ['-created_at']
    readonly_fields = ['customer_no', 'total_pledges', 'active_pledges', 'total_loan_amount', 'created_at', 'updated_at']
