"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Entities (legal employers with their currency and ledger
             codes) and Resources (the people allocated to positions).
-------------------------------------------------------------------------
"""
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.mixins import TimeStampedMixin


class WorkWeek(models.TextChoices):
    """Working-week patterns used for payroll day counts."""
    MON_FRI = 'Mon-Fri', _('Monday to Friday')
    SUN_THU = 'Sun-Thu', _('Sunday to Thursday')


# Resource types that never appear on payroll
NON_PAYROLL_RESOURCE_TYPES = ('SME',)


class Entity(TimeStampedMixin):
    """
    A legal entity that employs resources.

    The expense codes drive payroll journal rows: salary, housing and
    allowances post to sal_exp_code, social security to ss_exp_code,
    employee and employer tax to tax_exp_code.
    """

    name = models.CharField(
        max_length=200,
        unique=True,
        verbose_name=_('Name')
    )
    currency_code = models.CharField(
        max_length=10,
        blank=True,
        default='USD',
        verbose_name=_('Currency Code')
    )
    ss_acc_code = models.CharField(
        max_length=20,
        blank=True,
        verbose_name=_('Social Security Account'),
        help_text=_('Vendor account for social security payable.')
    )
    tax_acc_code = models.CharField(
        max_length=20,
        blank=True,
        verbose_name=_('Tax Account'),
        help_text=_('Vendor account for tax payable.')
    )
    sal_exp_code = models.CharField(
        max_length=20,
        default='6000',
        verbose_name=_('Salary Expense Code')
    )
    ss_exp_code = models.CharField(
        max_length=20,
        default='6100',
        verbose_name=_('Social Security Expense Code')
    )
    tax_exp_code = models.CharField(
        max_length=20,
        default='6200',
        verbose_name=_('Tax Expense Code')
    )

    class Meta:
        verbose_name = _('Entity')
        verbose_name_plural = _('Entities')
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.currency_code})"


class Resource(TimeStampedMixin):
    """
    A person who can be allocated to project positions.

    Attributes:
        resource_type: Contract type, e.g. Staff, Consultant, SME.
        entity: Employing entity (drives currency and ledger codes).
        dynamics_vendor_acc: Vendor number in Business Central.
        work_days: Working-week pattern for payroll day counts.
        track: Whether the resource shows on tracking reports.
    """

    name = models.CharField(
        max_length=200,
        db_index=True,
        verbose_name=_('Name')
    )
    resource_type = models.CharField(
        max_length=50,
        blank=True,
        verbose_name=_('Resource Type')
    )
    entity = models.ForeignKey(
        Entity,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='resources',
        verbose_name=_('Entity')
    )
    dynamics_vendor_acc = models.CharField(
        max_length=50,
        blank=True,
        verbose_name=_('Dynamics Vendor Account')
    )
    start_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Start Date')
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('End Date')
    )
    work_days = models.CharField(
        max_length=10,
        choices=WorkWeek.choices,
        default=WorkWeek.MON_FRI,
        verbose_name=_('Work Days')
    )
    department = models.CharField(
        max_length=200,
        blank=True,
        verbose_name=_('Department')
    )
    track = models.BooleanField(
        default=True,
        verbose_name=_('Track')
    )

    class Meta:
        verbose_name = _('Resource')
        verbose_name_plural = _('Resources')
        ordering = ['name']
        indexes = [
            models.Index(fields=['resource_type'], name='resource_type_idx'),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def on_payroll(self) -> bool:
        return self.resource_type not in NON_PAYROLL_RESOURCE_TYPES
