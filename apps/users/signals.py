"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Django signals for the users module.
             Keeps the role cache consistent with the SystemUser table,
             including edits made through the Django admin.
-------------------------------------------------------------------------
"""
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.users.models import SystemUser
from apps.users.permissions import clear_role_cache


@receiver(post_save, sender=SystemUser)
def system_user_post_save(sender, instance: SystemUser, created: bool, **kwargs) -> None:
    """Drop the cached role for the saved user's email."""
    clear_role_cache(instance.email_address)


@receiver(post_delete, sender=SystemUser)
def system_user_post_delete(sender, instance: SystemUser, **kwargs) -> None:
    """Drop the cached role of a deleted user."""
    clear_role_cache(instance.email_address)
