"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for the Business Central integration.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class ErpConfig(AppConfig):
    """Configuration for the Business Central application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.erp'
    verbose_name = 'Business Central'
