"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for SystemUser and RoleAuditLog models.
-------------------------------------------------------------------------
"""
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.users.models import RoleAuditLog, SystemUser


@admin.register(SystemUser)
class SystemUserAdmin(admin.ModelAdmin):
    """Admin configuration for SystemUser model."""

    list_display = ('name', 'email_address', 'role', 'active', 'start_date', 'end_date', 'change_count')
    list_filter = ('role', 'active')
    search_fields = ('name', 'email_address')
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('name',)

    fieldsets = (
        (None, {'fields': ('name', 'email_address', 'role', 'active')}),
        (_('Access Period'), {'fields': ('start_date', 'end_date')}),
        (_('Timestamps'), {'fields': ('created_at', 'updated_at')}),
    )

    def change_count(self, obj: SystemUser) -> int:
        """Return number of recorded role changes."""
        return obj.role_changes.count()
    change_count.short_description = _('Role Changes')


@admin.register(RoleAuditLog)
class RoleAuditLogAdmin(admin.ModelAdmin):
    """Read-only view of the role audit trail."""

    list_display = ('user_email', 'old_role', 'new_role', 'changed_by', 'changed_at')
    list_filter = ('new_role',)
    search_fields = ('user_email', 'user_name', 'changed_by')
    ordering = ('-changed_at',)

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False
