"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for Entity and Resource models.
-------------------------------------------------------------------------
"""
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.resources.models import Entity, Resource


@admin.register(Entity)
class EntityAdmin(admin.ModelAdmin):
    """Admin configuration for Entity model."""

    list_display = ('name', 'currency_code', 'sal_exp_code', 'ss_exp_code', 'tax_exp_code', 'resource_count')
    search_fields = ('name',)
    ordering = ('name',)

    fieldsets = (
        (None, {'fields': ('name', 'currency_code')}),
        (_('Payable Accounts'), {'fields': ('ss_acc_code', 'tax_acc_code')}),
        (_('Expense Codes'), {'fields': ('sal_exp_code', 'ss_exp_code', 'tax_exp_code')}),
    )

    def resource_count(self, obj: Entity) -> int:
        return obj.resources.count()
    resource_count.short_description = _('Resources')


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    """Admin configuration for Resource model."""

    list_display = ('name', 'resource_type', 'entity', 'department', 'work_days', 'start_date', 'end_date', 'track')
    list_filter = ('resource_type', 'entity', 'work_days', 'track')
    search_fields = ('name', 'department', 'dynamics_vendor_acc')
    autocomplete_fields = ('entity',)
    ordering = ('name',)
