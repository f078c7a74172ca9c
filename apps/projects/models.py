"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Projects, their monthly positions and the allocation of
             resources to those positions.
-------------------------------------------------------------------------
"""
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.mixins import TimeStampedMixin


class YesNo(models.TextChoices):
    """Flags kept as 'Yes'/'No' text, matching the budgeting sheets."""
    YES = 'Yes', _('Yes')
    NO = 'No', _('No')


class AllocationMode(models.TextChoices):
    """How a position's LoE is expressed."""
    PERCENT = '%', _('Percentage')
    DAYS = 'Days', _('Days')


# Working days in a month used to convert a days-based LoE to percent
DAYS_PER_MONTH = 20


class ProjectQuerySet(models.QuerySet):

    def active_in(self, month) -> 'ProjectQuerySet':
        """Projects whose month-truncated start/end range contains month."""
        return self.filter(
            start_date__lt=month + relativedelta(months=1),
            end_date__gte=month,
        )


class Project(TimeStampedMixin):
    """
    A funded project that positions are planned against.

    Attributes:
        project_currency: ISO currency of the project budget.
        project_budget: Total budget in project currency.
        budget_manager: System user responsible for the glidepath.
        allocation_mode: Default LoE mode for new positions.
        fringe: 'Yes' when the project carries fringe benefits.
    """

    name = models.CharField(
        max_length=200,
        db_index=True,
        verbose_name=_('Name')
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
    project_currency = models.CharField(
        max_length=10,
        blank=True,
        default='USD',
        verbose_name=_('Project Currency')
    )
    project_budget = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Project Budget')
    )
    budget_manager = models.ForeignKey(
        'users.SystemUser',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='managed_projects',
        verbose_name=_('Budget Manager')
    )
    allocation_mode = models.CharField(
        max_length=50,
        blank=True,
        default=AllocationMode.PERCENT,
        verbose_name=_('Allocation Mode')
    )
    fringe = models.CharField(
        max_length=3,
        choices=YesNo.choices,
        default=YesNo.NO,
        verbose_name=_('Fringe')
    )

    objects = ProjectQuerySet.as_manager()

    class Meta:
        verbose_name = _('Project')
        verbose_name_plural = _('Projects')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Position(TimeStampedMixin):
    """
    One month of a planned role on a project.

    A role that runs for a year is twelve Position rows sharing
    task_id and position_name.
    """

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='positions',
        verbose_name=_('Project')
    )
    task_id = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_('Task ID')
    )
    position_name = models.CharField(
        max_length=255,
        verbose_name=_('Position Name')
    )
    month_year = models.DateField(
        db_index=True,
        verbose_name=_('Month')
    )
    allocation_mode = models.CharField(
        max_length=50,
        blank=True,
        default=AllocationMode.PERCENT,
        verbose_name=_('Allocation Mode')
    )
    loe = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('LoE')
    )
    allocated = models.CharField(
        max_length=3,
        choices=YesNo.choices,
        default=YesNo.NO,
        verbose_name=_('Allocated')
    )
    fringe_task = models.CharField(
        max_length=255,
        blank=True,
        verbose_name=_('Fringe Task')
    )

    class Meta:
        verbose_name = _('Position')
        verbose_name_plural = _('Positions')
        ordering = ['project__name', 'task_id', 'position_name', 'month_year']
        indexes = [
            models.Index(fields=['position_name', 'month_year'], name='position_name_month_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.position_name} ({self.month_year:%Y-%m})"

    @property
    def loe_percent(self) -> Decimal:
        """LoE as a percentage; days-based positions assume a 20-day month."""
        if self.allocation_mode == AllocationMode.DAYS:
            return (self.loe / DAYS_PER_MONTH * 100).quantize(Decimal('1'))
        return self.loe


class Allocation(TimeStampedMixin):
    """A resource filling a position for one month."""

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='allocations',
        verbose_name=_('Project')
    )
    resource = models.ForeignKey(
        'resources.Resource',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Resource')
    )
    position = models.ForeignKey(
        Position,
        on_delete=models.CASCADE,
        related_name='allocations',
        verbose_name=_('Position')
    )
    month_year = models.DateField(
        db_index=True,
        verbose_name=_('Month')
    )
    allocation_mode = models.CharField(
        max_length=50,
        blank=True,
        verbose_name=_('Allocation Mode')
    )
    loe = models.DecimalField(
        max_digits=18,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('LoE')
    )

    class Meta:
        verbose_name = _('Allocation')
        verbose_name_plural = _('Allocations')
        ordering = ['month_year', 'project__name']

    def __str__(self) -> str:
        return f"{self.resource} -> {self.position}"
