"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for the payroll module.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class PayrollConfig(AppConfig):
    """Configuration for the payroll application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.payroll'
    verbose_name = 'Payroll Allocation'
