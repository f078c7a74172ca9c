"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Fixed assets and prepayments written off over their
             useful life.
-------------------------------------------------------------------------
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class ScheduledType(models.TextChoices):
    FIXED_ASSET = 'Fixed Asset', _('Fixed Asset')
    PREPAID = 'Prepaid', _('Prepaid')


class ScheduledRecord(models.Model):
    """
    A purchase depreciated (or amortised) month by month.

    Attributes:
        usd_value: Value written off over the useful life.
        useful_months: Months of useful life.
        disposed: Disposed fixed assets stop depreciating on disposal_date.
    """

    scheduled_id = models.AutoField(
        primary_key=True,
        verbose_name=_('Scheduled ID')
    )
    type = models.CharField(
        max_length=20,
        choices=ScheduledType.choices,
        verbose_name=_('Type')
    )
    purchase_date = models.DateField(
        verbose_name=_('Purchase Date')
    )
    supplier = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_('Supplier')
    )
    description = models.CharField(
        max_length=500,
        blank=True,
        verbose_name=_('Description')
    )
    purchase_currency = models.CharField(
        max_length=10,
        default='USD',
        verbose_name=_('Purchase Currency')
    )
    original_currency_value = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Original Currency Value')
    )
    usd_value = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('USD Value')
    )
    useful_months = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name=_('Useful Months')
    )
    disposed = models.BooleanField(
        default=False,
        verbose_name=_('Disposed')
    )
    disposal_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Disposal Date')
    )

    class Meta:
        verbose_name = _('Scheduled Record')
        verbose_name_plural = _('Scheduled Records')
        ordering = ['scheduled_id']

    def __str__(self) -> str:
        return f"{self.scheduled_id}: {self.type} - {self.description or self.supplier}"

    @property
    def is_disposed_asset(self) -> bool:
        return self.type == ScheduledType.FIXED_ASSET and self.disposed
