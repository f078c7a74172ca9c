"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for projects, positions and allocations.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    """Configuration for the projects application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.projects'
    verbose_name = 'Projects & Allocations'
