"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Admin configuration for ScheduledRecord.
-------------------------------------------------------------------------
"""
from django.contrib import admin

from apps.scheduled.models import ScheduledRecord


@admin.register(ScheduledRecord)
class ScheduledRecordAdmin(admin.ModelAdmin):
    list_display = ('scheduled_id', 'type', 'purchase_date', 'supplier', 'usd_value', 'useful_months', 'disposed')
    list_filter = ('type', 'disposed')
    search_fields = ('supplier', 'description')
    date_hierarchy = 'purchase_date'
