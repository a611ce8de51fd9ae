from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User, Setting, AuditLog


@admin.register(User)
class CounterUserAdmin(UserAdmin):
    list_display = ['username', 'first_name', 'phone', 'is_staff', 'is_active', 'last_login']
    list_filter = ['is_staff', 'is_active', 'groups']
    fieldsets = UserAdmin.fieldsets + (('Contact', {'fields': ('phone',)}),)
    add_fieldsets = UserAdmin.add_fieldsets + (('Contact', {'fields': ('phone',)}),)


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'object_reference', 'barcode', 'user']
    list_filter = ['action', 'model_name']
    search_fields = ['object_reference', 'barcode', 'user__username']
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
