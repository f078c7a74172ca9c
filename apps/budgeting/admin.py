"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for budget versions and budget data.
-------------------------------------------------------------------------
"""
from django.contrib import admin

from apps.budgeting.models import BudgetData, BudgetVersion


class BudgetDataInline(admin.TabularInline):
    model = BudgetData
    extra = 0
    fields = ('job_task_no', 'budget_month', 'budget_amount', 'last_modified_by')
    ordering = ('job_task_no', 'budget_month')


@admin.register(BudgetVersion)
class BudgetVersionAdmin(admin.ModelAdmin):
    """Admin configuration for BudgetVersion model."""

    list_display = ('job_no', 'version_name', 'is_baseline', 'is_active', 'source_type', 'created_by', 'created_date')
    list_filter = ('is_active', 'is_baseline', 'source_type')
    search_fields = ('job_no', 'version_name')
    readonly_fields = ('created_date', 'modified_date')
    raw_id_fields = ('source_version',)
    inlines = [BudgetDataInline]


@admin.register(BudgetData)
class BudgetDataAdmin(admin.ModelAdmin):
    list_display = ('version', 'job_task_no', 'budget_month', 'budget_amount', 'last_modified_by')
    list_filter = ('budget_month',)
    search_fields = ('job_no', 'job_task_no', 'version__version_name')
    raw_id_fields = ('version',)
