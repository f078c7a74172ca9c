"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Business logic for budget versions: version maintenance,
             bulk replace and cell updates of budget data, copying
             between versions and the glidepath grid.
-------------------------------------------------------------------------
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.budgeting import glidepath
from apps.budgeting.models import BudgetData, BudgetVersion, SourceType
from apps.core.exceptions import ConflictException, NotFoundException, ValidationException
from apps.core.logging import StaloLogger
from apps.core.utils import parse_bool, parse_month


logger = logging.getLogger(__name__)

DEFAULT_MODIFIED_BY = 'System'


def get_version(pk, active_only: bool = False) -> BudgetVersion:
    versions = BudgetVersion.objects.all()
    if active_only:
        versions = versions.active()
    version = versions.filter(pk=pk).first()
    if version is None:
        raise NotFoundException("Budget version not found")
    return version


def _cell(item: Mapping[str, Any], version: BudgetVersion) -> Dict[str, Any]:
    task_no = str(item.get('job_task_no') or '').strip()
    if not task_no:
        raise ValidationException("job_task_no is required for every budget row")
    return {
        'job_no': str(item.get('job_no') or version.job_no),
        'job_task_no': task_no,
        'budget_month': parse_month(item.get('budget_month'), 'budget_month'),
        'budget_amount': glidepath.parse_amount(item.get('budget_amount')),
    }


class BudgetService:
    """Budget versions and their data."""

    @staticmethod
    def versions_for_job(job_no: str):
        """Active versions of a job, newest first."""
        return BudgetVersion.objects.active().for_job(job_no).order_by('-created_date', '-pk')

    @staticmethod
    def baseline(job_no: str) -> Optional[BudgetVersion]:
        return BudgetVersion.objects.active().for_job(job_no).filter(is_baseline=True).first()

    @staticmethod
    def create_version(data: Mapping[str, Any]) -> BudgetVersion:
        """
        Create a version.

        Raises:
            ValidationException: job_no, version_name or created_by missing.
            ConflictException: The job already has a version with that name.
        """
        job_no = data.get('job_no')
        version_name = data.get('version_name')
        created_by = data.get('created_by')
        if not (job_no and version_name and created_by):
            raise ValidationException("job_no, version_name and created_by are required")

        source_version = None
        if data.get('source_version_id'):
            source_version = get_version(data['source_version_id'])

        try:
            with transaction.atomic():
                return BudgetVersion.objects.create(
                    job_no=job_no,
                    version_name=version_name,
                    version_description=data.get('version_description') or '',
                    is_baseline=parse_bool(data.get('is_baseline', False)),
                    created_by=created_by,
                    source_type=data.get('source_type') or SourceType.MANUAL_EDIT,
                    source_version=source_version,
                )
        except IntegrityError:
            raise ConflictException("A version with this name already exists for this project")

    @staticmethod
    def update_version(version: BudgetVersion, data: Mapping[str, Any]) -> BudgetVersion:
        """Rename, describe or (un)set the baseline. Only provided fields change."""
        if 'version_name' in data:
            if not data['version_name']:
                raise ValidationException("version_name cannot be empty")
            version.version_name = data['version_name']
        if 'version_description' in data:
            version.version_description = data['version_description'] or ''
        if 'is_baseline' in data:
            version.is_baseline = parse_bool(data['is_baseline'])

        version.modified_by = data.get('modified_by') or DEFAULT_MODIFIED_BY
        version.modified_date = timezone.now()
        try:
            with transaction.atomic():
                version.save()
        except IntegrityError:
            raise ConflictException("A version with this name already exists for this project")
        return version

    @staticmethod
    def delete_version(version: BudgetVersion) -> None:
        """Soft delete: the version and its data are kept but hidden."""
        version.is_active = False
        version.is_baseline = False
        version.modified_date = timezone.now()
        version.save(update_fields=['is_active', 'is_baseline', 'modified_date'])

    @staticmethod
    def data(version: BudgetVersion):
        return version.data.order_by('job_task_no', 'budget_month')

    @staticmethod
    def _touch(version: BudgetVersion, modified_by: str) -> None:
        version.modified_by = modified_by
        version.modified_date = timezone.now()
        version.save(update_fields=['modified_by', 'modified_date'])

    @staticmethod
    def replace_data(version: BudgetVersion, items: Iterable[Mapping[str, Any]], modified_by: Optional[str] = None) -> int:
        """
        Replace all of a version's data.

        Raises:
            ValidationException: No rows were given, or a row is invalid.
        """
        items = list(items or [])
        if not items:
            raise ValidationException("budget_data array is required and cannot be empty")
        modified_by = modified_by or DEFAULT_MODIFIED_BY
        now = timezone.now()

        with transaction.atomic():
            cells: Dict[tuple, BudgetData] = {}
            for item in items:
                fields = _cell(item, version)
                key = (fields['job_no'], fields['job_task_no'], fields['budget_month'])
                # Later rows for the same cell win
                cells[key] = BudgetData(
                    version=version,
                    last_modified_by=modified_by,
                    last_modified_date=now,
                    **fields,
                )
            version.data.all().delete()
            BudgetData.objects.bulk_create(cells.values())
            BudgetService._touch(version, modified_by)

        StaloLogger.log_budget_saved(version, len(cells), modified_by, 'replace')
        return len(cells)

    @staticmethod
    def upsert_cells(version: BudgetVersion, updates: Iterable[Mapping[str, Any]], modified_by: Optional[str] = None) -> int:
        """
        Create or update individual cells.

        Raises:
            ValidationException: No updates were given, or one is invalid.
        """
        updates = list(updates or [])
        if not updates:
            raise ValidationException("updates array is required and cannot be empty")
        modified_by = modified_by or DEFAULT_MODIFIED_BY
        now = timezone.now()

        with transaction.atomic():
            for item in updates:
                fields = _cell(item, version)
                BudgetData.objects.update_or_create(
                    version=version,
                    job_no=fields['job_no'],
                    job_task_no=fields['job_task_no'],
                    budget_month=fields['budget_month'],
                    defaults={
                        'budget_amount': fields['budget_amount'],
                        'last_modified_by': modified_by,
                        'last_modified_date': now,
                    },
                )
            BudgetService._touch(version, modified_by)

        StaloLogger.log_budget_saved(version, len(updates), modified_by, 'update')
        return len(updates)

    @staticmethod
    def copy_data(version: BudgetVersion, source_version_id: Any, modified_by: Optional[str] = None) -> int:
        """
        Copy every cell of another version into this one.

        Cells already present in the target are overwritten.

        Raises:
            ValidationException: No source version was given.
            NotFoundException: The source version does not exist.
        """
        if not source_version_id:
            raise ValidationException("source_version_id is required")
        source = get_version(source_version_id)
        modified_by = modified_by or DEFAULT_MODIFIED_BY
        now = timezone.now()

        with transaction.atomic():
            existing = {
                (d.job_no, d.job_task_no, d.budget_month): d
                for d in version.data.all()
            }
            new_rows, changed = [], []
            for row in source.data.all():
                key = (row.job_no, row.job_task_no, row.budget_month)
                target = existing.get(key)
                if target is None:
                    new_rows.append(BudgetData(
                        version=version,
                        job_no=row.job_no,
                        job_task_no=row.job_task_no,
                        budget_month=row.budget_month,
                        budget_amount=row.budget_amount,
                        last_modified_by=modified_by,
                        last_modified_date=now,
                    ))
                else:
                    target.budget_amount = row.budget_amount
                    target.last_modified_by = modified_by
                    target.last_modified_date = now
                    changed.append(target)

            BudgetData.objects.bulk_create(new_rows)
            BudgetData.objects.bulk_update(changed, ['budget_amount', 'last_modified_by', 'last_modified_date'])
            if version.source_version_id is None:
                version.source_version = source
                version.save(update_fields=['source_version'])
            BudgetService._touch(version, modified_by)

        copied = len(new_rows) + len(changed)
        StaloLogger.log_budget_saved(version, copied, modified_by, 'copy')
        return copied

    @staticmethod
    def amounts(version: BudgetVersion) -> Dict[tuple, Decimal]:
        return {
            (row.job_task_no, row.budget_month): row.budget_amount
            for row in version.data.all()
        }

    @staticmethod
    def glidepath(
        version: BudgetVersion,
        start: Optional[date] = None,
        end: Optional[date] = None,
        task_lines: Optional[List[Mapping[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """
        The version's glidepath grid.

        Months run from start to end, defaulting to the first and last
        month holding data. Without task lines from Business Central the
        task hierarchy is derived from the task numbers in the data.
        """
        amounts = BudgetService.amounts(version)
        data_months = sorted({month for _, month in amounts})
        start = start or (data_months[0] if data_months else None)
        end = end or (data_months[-1] if data_months else None)
        months = glidepath.months_between(start, end) if start and end else []

        if task_lines:
            tasks = glidepath.normalize_task_lines(task_lines)
        else:
            tasks = glidepath.derive_tasks({task_no for task_no, _ in amounts})

        grid = glidepath.build_glidepath(months, tasks, amounts)
        grid.update({
            'version_id': version.pk,
            'job_no': version.job_no,
            'version_name': version.version_name,
        })
        return grid

    @staticmethod
    def glidepath_export_rows(version: BudgetVersion) -> Dict[str, Any]:
        """Headers and posting rows for the glidepath CSV download."""
        grid = BudgetService.glidepath(version)
        headers = ['Job Task No', 'Description'] + grid['months']
        rows = [
            [row['job_task_no'], row['description']] + [f"{row['values'][m]:.2f}" for m in grid['months']]
            for row in grid['rows'] if not row['is_total']
        ]
        return {'headers': headers, 'rows': rows}

    @staticmethod
    def import_glidepath(version: BudgetVersion, rows: List[List[str]], modified_by: Optional[str] = None) -> int:
        """
        Load an uploaded glidepath sheet into the version, cell by cell.

        Raises:
            ValidationException: Bad month headings or no data rows.
        """
        try:
            _, cells = glidepath.parse_glidepath_rows(rows)
        except ValueError as exc:
            raise ValidationException("Invalid file format", details=str(exc))
        if not cells:
            raise ValidationException("Invalid file format", details='File has no data rows')

        count = BudgetService.upsert_cells(version, cells, modified_by)
        logger.info(f"Glidepath uploaded for {version.job_no} / {version.version_name}: {count} cell(s)")
        return count
