"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Business logic for projects, positions and allocations:
             allocation by name with the position's Allocated flag kept
             in step, the monthly summary and the positions CSV grid.
-------------------------------------------------------------------------
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.db.models import Count, Q, Sum

from apps.core.exceptions import NotFoundException, ValidationException
from apps.core.logging import StaloLogger
from apps.core.utils import first_of_month, month_label, parse_month
from apps.projects.models import AllocationMode, Allocation, Position, Project, YesNo
from apps.resources.models import Resource


POSITION_GRID_HEADERS = ['Project', 'Task ID', 'Position Name', 'Allocated']


def get_project(pk) -> Project:
    project = Project.objects.filter(pk=pk).first()
    if project is None:
        raise NotFoundException("Project not found")
    return project


def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value).strip() or '0')
    except InvalidOperation:
        return Decimal('0')


class PositionService:
    """Position defaults and the month-by-month CSV grid."""

    @staticmethod
    def default_mode(project: Optional[Project], mode: Optional[str] = None) -> str:
        """A position inherits its project's allocation mode unless given one."""
        if mode:
            return mode
        if project and project.allocation_mode:
            return project.allocation_mode
        return AllocationMode.PERCENT

    @staticmethod
    def grid_months(year: Optional[int] = None) -> List[date]:
        """Twenty-four months: January of `year` (default this year) onwards."""
        start = date(year or date.today().year, 1, 1)
        return [start + relativedelta(months=i) for i in range(24)]

    @staticmethod
    def grid_rows(positions: Sequence[Position], months: Sequence[date]) -> List[List[Any]]:
        """
        One row per (project, task, position, allocated) with the LoE of
        each month in `months` (0 when there is no position that month).
        """
        rows: Dict[Tuple[str, str, str, str], Dict[date, Decimal]] = {}
        for p in positions:
            key = (p.project.name, p.task_id, p.position_name, p.allocated)
            rows.setdefault(key, {})[first_of_month(p.month_year)] = p.loe

        grid = []
        for key, by_month in rows.items():
            grid.append(list(key) + [by_month.get(m, 0) for m in months])
        return grid

    @staticmethod
    def _parse_month_header(header: str) -> date:
        try:
            return datetime.strptime(header.strip(), '%b %Y').date()
        except ValueError:
            raise ValidationException(f"Invalid month column: {header!r} (expected e.g. 'Oct 2025')")

    @staticmethod
    @transaction.atomic
    def import_grid(rows: List[List[str]]) -> Tuple[int, List[Dict[str, Any]]]:
        """
        Create a position for every month cell with LoE > 0.

        Rows for unknown projects are reported and skipped.

        Returns:
            Tuple of (created, errors).
        """
        if len(rows) < 2:
            raise ValidationException("Invalid file format", details='File has no data rows')

        header = rows[0]
        if [h.strip() for h in header[:4]] != POSITION_GRID_HEADERS:
            raise ValidationException(
                "Invalid file format",
                details=f"First columns must be: {', '.join(POSITION_GRID_HEADERS)}",
            )
        months = [PositionService._parse_month_header(h) for h in header[4:]]

        projects = {p.name: p for p in Project.objects.all()}
        created = 0
        errors: List[Dict[str, Any]] = []

        for row_num, row in enumerate(rows[1:], 2):
            if len(row) < 4:
                errors.append({'row': row_num, 'error': 'Row has fewer than 4 columns'})
                continue
            project_name, task_id, position_name, allocated = (cell.strip() for cell in row[:4])
            project = projects.get(project_name)
            if project is None:
                errors.append({'row': row_num, 'error': f"Project not found: {project_name}"})
                continue

            for month, cell in zip(months, row[4:]):
                loe = _to_decimal(cell)
                if loe <= 0:
                    continue
                Position.objects.create(
                    project=project,
                    task_id=task_id,
                    position_name=position_name,
                    month_year=month,
                    allocation_mode=PositionService.default_mode(project),
                    loe=loe,
                    allocated=allocated if allocated in YesNo.values else YesNo.NO,
                )
                created += 1

        return created, errors


class AllocationService:
    """Allocate resources to positions by name."""

    REQUIRED = ('project_name', 'resource_name', 'position_name', 'month_year')

    @staticmethod
    @transaction.atomic
    def create(data: Dict[str, Any], actor: Optional[str] = None) -> Allocation:
        """
        Allocate a resource to a position and flag the position Allocated.

        Raises:
            ValidationException: Missing fields or unresolved names.
        """
        missing = [f for f in AllocationService.REQUIRED if not data.get(f)]
        if missing:
            raise ValidationException(
                "Missing required fields: project_name, resource_name, position_name, month_year",
                extra={'missing_fields': missing},
            )

        month = parse_month(data['month_year'], 'month_year')
        project = Project.objects.filter(name=data['project_name']).first()
        resource = Resource.objects.filter(name=data['resource_name']).first()
        positions = Position.objects.filter(position_name=data['position_name'], month_year=month)
        position = None
        if project:
            # Position names repeat across projects
            position = positions.filter(project=project).first()
        if position is None:
            position = positions.first()

        if not (project and resource and position):
            raise ValidationException(
                "Invalid reference data",
                details={
                    'project_found': project is not None,
                    'resource_found': resource is not None,
                    'position_found': position is not None,
                },
            )

        loe = data.get('loe')
        allocation = Allocation.objects.create(
            project=project,
            resource=resource,
            position=position,
            month_year=month,
            allocation_mode=data.get('allocation_mode') or position.allocation_mode,
            loe=_to_decimal(loe) if loe not in (None, '') else position.loe_percent,
        )

        position.allocated = YesNo.YES
        position.save(update_fields=['allocated', 'updated_at'])

        StaloLogger.log_allocation(allocation, 'created', actor)
        return allocation

    @staticmethod
    @transaction.atomic
    def delete(allocation: Allocation, actor: Optional[str] = None) -> None:
        """Remove an allocation and reset its position to unallocated."""
        position = allocation.position
        StaloLogger.log_allocation(allocation, 'deleted', actor)
        allocation.delete()

        position.allocated = YesNo.NO
        position.save(update_fields=['allocated', 'updated_at'])

    @staticmethod
    def monthly_summary(month: date) -> List[Dict[str, Any]]:
        """Per project: positions, allocated positions and total LoE in month."""
        summary = (
            Position.objects.filter(month_year=month)
            .values('project_id', 'project__name')
            .annotate(
                position_count=Count('id'),
                allocated_count=Count('id', filter=Q(allocated=YesNo.YES)),
                total_loe=Sum('loe'),
            )
            .order_by('project__name')
        )
        return [
            {
                'project_id': row['project_id'],
                'project_name': row['project__name'],
                'month': month_label(month),
                'position_count': row['position_count'],
                'allocated_count': row['allocated_count'],
                'unallocated_count': row['position_count'] - row['allocated_count'],
                'total_loe': row['total_loe'] or Decimal('0.00'),
            }
            for row in summary
        ]
