"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for entities and resources.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class ResourcesConfig(AppConfig):
    """Configuration for the resources application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.resources'
    verbose_name = 'Entities & Resources'
