"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Budget versions per Business Central job and the monthly
             budget amounts (glidepath cells) stored against them.
-------------------------------------------------------------------------
"""
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class SourceType(models.TextChoices):
    """Where a budget version's data came from."""
    EXCEL_UPLOAD = 'Excel Upload', _('Excel Upload')
    MANUAL_EDIT = 'Manual Edit', _('Manual Edit')
    COPY = 'Copy', _('Copy')


class BudgetVersionQuerySet(models.QuerySet):

    def active(self) -> 'BudgetVersionQuerySet':
        return self.filter(is_active=True)

    def for_job(self, job_no: str) -> 'BudgetVersionQuerySet':
        return self.filter(job_no=job_no)


class BudgetVersion(models.Model):
    """
    A named glidepath for a job.

    Only one version per job can be the baseline. Deleting a version
    only deactivates it.

    Attributes:
        job_no: Business Central project number.
        version_name: Unique within the job.
        is_baseline: The version used for budget figures in reports.
        source_type: How the version was first populated.
        source_version: The version it was copied from, if any.
    """

    job_no = models.CharField(
        max_length=20,
        db_index=True,
        verbose_name=_('Job No')
    )
    version_name = models.CharField(
        max_length=100,
        verbose_name=_('Version Name')
    )
    version_description = models.CharField(
        max_length=500,
        blank=True,
        verbose_name=_('Description')
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_('Active')
    )
    is_baseline = models.BooleanField(
        default=False,
        verbose_name=_('Baseline'),
        help_text=_('Only one version per job can be the baseline.')
    )
    created_by = models.CharField(
        max_length=100,
        verbose_name=_('Created By')
    )
    created_date = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_('Created Date')
    )
    modified_by = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_('Modified By')
    )
    modified_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Modified Date')
    )
    source_type = models.CharField(
        max_length=20,
        choices=SourceType.choices,
        default=SourceType.MANUAL_EDIT,
        verbose_name=_('Source Type')
    )
    source_version = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='copies',
        verbose_name=_('Source Version')
    )

    objects = BudgetVersionQuerySet.as_manager()

    class Meta:
        verbose_name = _('Budget Version')
        verbose_name_plural = _('Budget Versions')
        ordering = ['job_no', '-created_date']
        constraints = [
            models.UniqueConstraint(
                fields=['job_no', 'version_name'],
                name='unique_budget_version_name'
            ),
        ]

    def __str__(self) -> str:
        return f"{self.job_no} - {self.version_name}"


class BudgetData(models.Model):
    """Budget amount for one job task in one month of a version."""

    version = models.ForeignKey(
        BudgetVersion,
        on_delete=models.CASCADE,
        related_name='data',
        verbose_name=_('Version')
    )
    job_no = models.CharField(
        max_length=20,
        verbose_name=_('Job No')
    )
    job_task_no = models.CharField(
        max_length=20,
        verbose_name=_('Job Task No')
    )
    budget_month = models.DateField(
        verbose_name=_('Budget Month')
    )
    budget_amount = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Budget Amount')
    )
    last_modified_by = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_('Last Modified By')
    )
    last_modified_date = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Last Modified Date')
    )

    class Meta:
        verbose_name = _('Budget Data')
        verbose_name_plural = _('Budget Data')
        ordering = ['job_task_no', 'budget_month']
        constraints = [
            models.UniqueConstraint(
                fields=['version', 'job_no', 'job_task_no', 'budget_month'],
                name='unique_budget_data_cell'
            ),
        ]
        indexes = [
            models.Index(fields=['job_no', 'job_task_no'], name='budget_data_job_task_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.job_task_no} {self.budget_month:%Y-%m}: {self.budget_amount}"
