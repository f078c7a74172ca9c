"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Django signals for the budgeting module.
             Keeps a single baseline version per job.
-------------------------------------------------------------------------
"""
from django.db.models.signals import pre_save
from django.dispatch import receiver

from apps.budgeting.models import BudgetVersion


@receiver(pre_save, sender=BudgetVersion)
def budget_version_pre_save(sender, instance: BudgetVersion, **kwargs) -> None:
    """
    Pre-save signal for BudgetVersion.

    Ensures only one version of a job is the baseline.
    """
    if not instance.is_baseline:
        return

    others = BudgetVersion.objects.filter(job_no=instance.job_no, is_baseline=True)
    if instance.pk:
        others = others.exclude(pk=instance.pk)
    others.update(is_baseline=False)
