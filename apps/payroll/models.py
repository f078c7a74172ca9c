"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Monthly payroll record per resource with the salary
             components and the split of the month across projects.
-------------------------------------------------------------------------
"""
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.mixins import ModifiedByMixin, TimeStampedMixin


def _amount(label: str) -> models.DecimalField:
    return models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=label
    )


class PayrollRecord(TimeStampedMixin, ModifiedByMixin):
    """
    Payroll for one resource in one month.

    Attributes:
        month: First day of the payroll month.
        working_days: Working days in the month (as entered on the grid).
        project_allocations: {project id: allocation} for the month.
        locked: Locked records reject updates until unlocked.
    """

    resource = models.ForeignKey(
        'resources.Resource',
        on_delete=models.CASCADE,
        related_name='payroll_records',
        verbose_name=_('Resource')
    )
    entity = models.ForeignKey(
        'resources.Entity',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payroll_records',
        verbose_name=_('Entity')
    )
    month = models.DateField(
        db_index=True,
        verbose_name=_('Month')
    )
    department = models.CharField(
        max_length=200,
        blank=True,
        null=True,
        verbose_name=_('Department')
    )
    working_days = models.CharField(
        max_length=20,
        blank=True,
        null=True,
        verbose_name=_('Working Days')
    )
    currency = models.CharField(
        max_length=10,
        blank=True,
        null=True,
        verbose_name=_('Currency')
    )
    net_salary = _amount(_('Net Salary'))
    social_security = _amount(_('Social Security'))
    employee_tax = _amount(_('Employee Tax'))
    employer_tax = _amount(_('Employer Tax'))
    housing = _amount(_('Housing'))
    communications_other = _amount(_('Communications/Other'))
    annual_leave = models.IntegerField(
        null=True,
        blank=True,
        verbose_name=_('Annual Leave')
    )
    sick_leave = models.IntegerField(
        null=True,
        blank=True,
        verbose_name=_('Sick Leave')
    )
    public_holidays = models.IntegerField(
        null=True,
        blank=True,
        verbose_name=_('Public Holidays')
    )
    project_allocations = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_('Project Allocations')
    )
    locked = models.BooleanField(
        default=False,
        verbose_name=_('Locked')
    )

    class Meta:
        verbose_name = _('Payroll Record')
        verbose_name_plural = _('Payroll Records')
        ordering = ['month', 'entity__name', 'resource__name']
        constraints = [
            models.UniqueConstraint(fields=['resource', 'month'], name='unique_payroll_resource_month'),
        ]

    def __str__(self) -> str:
        return f"{self.resource} {self.month:%Y-%m}"
