"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for PayrollRecord.
-------------------------------------------------------------------------
"""
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.payroll.models import PayrollRecord


@admin.register(PayrollRecord)
class PayrollRecordAdmin(admin.ModelAdmin):
    """Admin configuration for PayrollRecord model."""

    list_display = ('resource', 'entity', 'month', 'currency', 'net_salary', 'locked', 'modified_by')
    list_filter = ('locked', 'entity', 'month')
    search_fields = ('resource__name', 'department')
    date_hierarchy = 'month'
    raw_id_fields = ('resource',)
    readonly_fields = ('modified_by', 'created_at', 'updated_at')
    actions = ['lock_records', 'unlock_records']

    fieldsets = (
        (None, {'fields': ('resource', 'entity', 'month', 'department', 'working_days', 'currency')}),
        (_('Salary'), {'fields': (
            'net_salary', 'social_security', 'employee_tax', 'employer_tax',
            'housing', 'communications_other',
        )}),
        (_('Leave'), {'fields': ('annual_leave', 'sick_leave', 'public_holidays')}),
        (_('Allocation'), {'fields': ('project_allocations', 'locked')}),
        (_('Audit'), {'fields': ('modified_by', 'created_at', 'updated_at')}),
    )

    @admin.action(description=_('Lock selected records'))
    def lock_records(self, request, queryset):
        updated = queryset.update(locked=True)
        self.message_user(request, f'{updated} record(s) locked.')

    @admin.action(description=_('Unlock selected records'))
    def unlock_records(self, request, queryset):
        updated = queryset.update(locked=False)
        self.message_user(request, f'{updated} record(s) unlocked.')
