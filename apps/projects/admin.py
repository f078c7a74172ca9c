"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for Project, Position and Allocation.
-------------------------------------------------------------------------
"""
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from apps.projects.models import Allocation, Position, Project


class PositionInline(admin.TabularInline):
    model = Position
    extra = 0
    fields = ('task_id', 'position_name', 'month_year', 'allocation_mode', 'loe', 'allocated', 'fringe_task')
    ordering = ('month_year', 'position_name')


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Admin configuration for Project model."""

    list_display = ('name', 'start_date', 'end_date', 'project_currency', 'project_budget', 'budget_manager', 'fringe')
    list_filter = ('fringe', 'project_currency', 'allocation_mode')
    search_fields = ('name',)
    ordering = ('name',)
    inlines = [PositionInline]

    fieldsets = (
        (None, {'fields': ('name', 'start_date', 'end_date')}),
        (_('Budget'), {'fields': ('project_currency', 'project_budget', 'budget_manager')}),
        (_('Allocation'), {'fields': ('allocation_mode', 'fringe')}),
    )


@admin.register(Position)
class PositionAdmin(admin.ModelAdmin):
    list_display = ('position_name', 'project', 'task_id', 'month_year', 'loe', 'allocation_mode', 'allocated')
    list_filter = ('allocated', 'allocation_mode', 'project')
    search_fields = ('position_name', 'task_id', 'project__name')
    date_hierarchy = 'month_year'


@admin.register(Allocation)
class AllocationAdmin(admin.ModelAdmin):
    list_display = ('resource', 'position', 'project', 'month_year', 'loe', 'allocation_mode')
    list_filter = ('project',)
    search_fields = ('resource__name', 'position__position_name', 'project__name')
    date_hierarchy = 'month_year'
    raw_id_fields = ('resource', 'position')
