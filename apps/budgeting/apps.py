"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: App configuration for the budgeting module.
-------------------------------------------------------------------------
"""
from django.apps import AppConfig


class BudgetingConfig(AppConfig):
    """Configuration for the budgeting application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.budgeting'
    verbose_name = 'Budget Versions'

    def ready(self) -> None:
        """Import signals when app is ready."""
        import apps.budgeting.signals  # noqa: F401
