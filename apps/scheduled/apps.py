"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for scheduled records.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class ScheduledConfig(AppConfig):
    """Configuration for the scheduled records application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.scheduled'
    verbose_name = 'Fixed Assets & Prepayments'
