"""
Admin configuration for authentication models.
"""

from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['identifier', 'full_name', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['identifier', 'full_name']
    ordering = ['identifier']
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login']
    exclude = ['password', 'groups', 'user_permissions']
