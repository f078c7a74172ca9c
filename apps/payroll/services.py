"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Payroll services: the monthly payroll grid (who is on
             payroll, which projects run), record upsert and locking,
             Excel round trip and journal generation.
-------------------------------------------------------------------------
"""
import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta
from django.db import transaction

from apps.core.exceptions import PayrollLockedException, ValidationException
from apps.core.logging import StaloLogger
from apps.core.utils import is_valid_guid, parse_month
from apps.payroll import calculations
from apps.payroll.models import PayrollRecord
from apps.projects.models import Allocation, Project
from apps.resources.models import NON_PAYROLL_RESOURCE_TYPES, Entity, Resource


logger = logging.getLogger(__name__)

AMOUNT_FIELDS = (
    'net_salary', 'social_security', 'employee_tax', 'employer_tax',
    'housing', 'communications_other',
)
DAY_FIELDS = ('annual_leave', 'sick_leave', 'public_holidays')
TEXT_FIELDS = ('department', 'working_days', 'currency')

EXPORT_HEADERS = [
    'Entity Name', 'Resource Name', 'Work Days', 'Currency',
    'Net Salary', 'Social Security', 'Employee Tax', 'Employer Tax',
    'Housing', 'Communications/Other', 'Annual Leave', 'Sick Leave',
    'Public Holidays', 'Daily Rate',
]
# Columns holding record fields in an exported sheet, by index
IMPORT_COLUMNS = {
    3: 'currency',
    4: 'net_salary',
    5: 'social_security',
    6: 'employee_tax',
    7: 'employer_tax',
    8: 'housing',
    9: 'communications_other',
    10: 'annual_leave',
    11: 'sick_leave',
    12: 'public_holidays',
}
FIRST_PROJECT_COLUMN = 14


def _month_range(month: date) -> Tuple[date, date]:
    return month, month + relativedelta(months=1)


def _to_amount(value: Any, field: str) -> Optional[Decimal]:
    if value in (None, ''):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationException(f"Invalid {field}: {value!r}")


def _to_int(value: Any, field: str) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid {field}: {value!r}")


def _to_allocations(value: Any) -> Dict[str, Any]:
    """Project allocations arrive as a dict or as the grid's JSON string."""
    if value in (None, ''):
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationException("project_allocations must be a JSON object")
    if not isinstance(value, dict):
        raise ValidationException("project_allocations must be a JSON object")
    return {str(k): v for k, v in value.items()}


class PayrollService:
    """Monthly payroll grid operations."""

    @staticmethod
    def projects_for_month(month: date):
        """Projects running in the month, by name."""
        return Project.objects.active_in(month).order_by('name')

    @staticmethod
    def payroll_resources(month: date):
        """Resources allocated in the month, excluding non-payroll types."""
        start, end = _month_range(month)
        return (
            Resource.objects
            .filter(allocations__month_year__gte=start, allocations__month_year__lt=end)
            .exclude(resource_type__in=NON_PAYROLL_RESOURCE_TYPES)
            .select_related('entity')
            .distinct()
            .order_by('entity__name', 'name')
        )

    @staticmethod
    def records(month: date):
        start, end = _month_range(month)
        return (
            PayrollRecord.objects
            .filter(month__gte=start, month__lt=end)
            .select_related('resource', 'entity', 'resource__entity')
            .order_by('entity__name', 'resource__name')
        )

    @staticmethod
    def month_allocations(month: date):
        start, end = _month_range(month)
        return (
            Allocation.objects
            .filter(month_year__gte=start, month_year__lt=end)
            .select_related('resource', 'project', 'position')
            .order_by('resource__name', 'project__name')
        )

    @staticmethod
    def _apply(record: PayrollRecord, data: Dict[str, Any]) -> None:
        if 'entity_id' in data:
            entity_id = data.get('entity_id')
            # Unknown ids are stored as no entity
            record.entity = (
                Entity.objects.filter(pk=entity_id).first() if is_valid_guid(entity_id) else None
            )
        for field in TEXT_FIELDS:
            if field in data:
                setattr(record, field, data[field] or None)
        for field in AMOUNT_FIELDS:
            if field in data:
                setattr(record, field, _to_amount(data[field], field))
        for field in DAY_FIELDS:
            if field in data:
                setattr(record, field, _to_int(data[field], field))
        if 'project_allocations' in data:
            record.project_allocations = _to_allocations(data['project_allocations'])

    @staticmethod
    @transaction.atomic
    def upsert(data: Dict[str, Any], actor: Optional[str] = None) -> Tuple[PayrollRecord, bool]:
        """
        Create or update the record for (resource, month).

        Only the fields present in `data` are changed on update.

        Returns:
            Tuple of (record, created).

        Raises:
            ValidationException: resource_id or month missing or unknown.
            PayrollLockedException: The existing record is locked.
        """
        resource_id = data.get('resource_id')
        if not resource_id or not data.get('month'):
            raise ValidationException("resource_id and month are required")

        month = parse_month(data['month'])
        resource = Resource.objects.filter(pk=resource_id).first() if is_valid_guid(resource_id) else None
        if resource is None:
            raise ValidationException("Resource not found", extra={'resource_id': str(resource_id)})

        start, end = _month_range(month)
        record = (
            PayrollRecord.objects.select_for_update()
            .filter(resource=resource, month__gte=start, month__lt=end)
            .first()
        )
        created = record is None
        if created:
            record = PayrollRecord(resource=resource, month=month)
        elif record.locked:
            raise PayrollLockedException(
                "Payroll record is locked",
                extra={'record_id': str(record.pk)},
            )

        PayrollService._apply(record, data)
        if created and 'locked' in data:
            record.locked = bool(data['locked'])
        record.save_with_user(actor)
        return record, created

    @staticmethod
    def lock(record_ids: Any, locked: Any, actor: Optional[str] = None) -> int:
        """Lock or unlock the given records. Returns the number updated."""
        if not isinstance(record_ids, list) or not record_ids:
            raise ValidationException("record_ids array is required")
        if not isinstance(locked, bool):
            raise ValidationException("locked boolean value is required")
        invalid = [str(pk) for pk in record_ids if not is_valid_guid(pk)]
        if invalid:
            raise ValidationException("Invalid record ids", extra={'invalid_ids': invalid})

        count = PayrollRecord.objects.filter(pk__in=record_ids).update(locked=locked, modified_by=actor or 'System')
        StaloLogger.log_payroll_lock(None, count, locked, actor)
        return count

    @staticmethod
    def lock_month(month_value: Any, locked: Any, actor: Optional[str] = None) -> Tuple[date, int]:
        """Lock or unlock every record of a month."""
        if not month_value:
            raise ValidationException("month parameter is required")
        if not isinstance(locked, bool):
            raise ValidationException("locked boolean value is required")

        month = parse_month(month_value)
        start, end = _month_range(month)
        count = (
            PayrollRecord.objects
            .filter(month__gte=start, month__lt=end)
            .update(locked=locked, modified_by=actor or 'System')
        )
        StaloLogger.log_payroll_lock(month, count, locked, actor)
        return month, count

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @staticmethod
    def percentages(month: date) -> Dict[str, Any]:
        """Saved allocations of the month as percentages, with entity averages."""
        grouped: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for record in PayrollService.records(month):
            entity_id = str(record.entity_id or record.resource.entity_id or '')
            grouped.setdefault(entity_id, {})[str(record.resource_id)] = record.project_allocations or {}
        return calculations.percentage_view(grouped)

    @staticmethod
    def journal(month: date) -> List[Dict[str, str]]:
        """Business Central journal rows for every saved record of the month."""
        project_names = {str(p.pk): p.name for p in Project.objects.only('id', 'name')}
        rows: List[Dict[str, str]] = []
        for record in PayrollService.records(month):
            entity = record.entity or record.resource.entity
            codes = {}
            if entity:
                codes = {
                    'salary': entity.sal_exp_code,
                    'social_security': entity.ss_exp_code,
                    'tax': entity.tax_exp_code,
                }
            rows.extend(calculations.journal_rows(
                month=month,
                resource_name=record.resource.name,
                components={field: getattr(record, field) for field in AMOUNT_FIELDS},
                allocations=record.project_allocations or {},
                project_names=project_names,
                expense_codes=codes,
                currency=record.currency or (entity.currency_code if entity else None),
            ))
        return rows

    @staticmethod
    def export_table(month: date) -> Tuple[List[str], List[List[Any]]]:
        """Headers and rows of the payroll workbook for the month."""
        projects = list(PayrollService.projects_for_month(month))
        records = {r.resource_id: r for r in PayrollService.records(month)}
        headers = EXPORT_HEADERS + [p.name for p in projects]

        rows = []
        for resource in PayrollService.payroll_resources(month):
            record = records.get(resource.pk)

            def value(field: str) -> Any:
                current = getattr(record, field, None) if record else None
                return current if current not in (None, '') else ''

            allocations = (record.project_allocations or {}) if record else {}
            rate = calculations.daily_rate(record.net_salary if record else None)
            entity = resource.entity
            rows.append([
                entity.name if entity else 'No Entity',
                resource.name,
                calculations.working_days(month.year, month.month, resource.work_days),
                value('currency') or (entity.currency_code if entity else ''),
                *[value(field) for field in AMOUNT_FIELDS],
                *[value(field) for field in DAY_FIELDS],
                f"{rate:.2f}" if rate else '',
                *[allocations.get(str(p.pk), 0) for p in projects],
            ])
        return headers, rows

    @staticmethod
    @transaction.atomic
    def import_rows(month: date, rows: Sequence[Sequence[Any]], actor: Optional[str] = None) -> Tuple[int, int, List[Dict[str, Any]]]:
        """
        Apply an exported payroll sheet back onto the month's records.

        Rows are matched by resource name (second column); project
        columns follow the month's project order from column 15.
        Only positive project values are kept, so a row with empty
        project cells clears the record's allocations.

        Returns:
            Tuple of (created, updated, errors).
        """
        resources = {r.name: r for r in PayrollService.payroll_resources(month)}
        projects = list(PayrollService.projects_for_month(month))
        created = updated = 0
        errors: List[Dict[str, Any]] = []

        for row_num, row in enumerate(rows[1:], 2):
            if len(row) < 2 or not row[1]:
                continue
            name = str(row[1]).strip()
            resource = resources.get(name)
            if resource is None:
                logger.debug(f"Payroll import row {row_num}: {name} not on payroll for {month:%Y-%m}")
                errors.append({'row': row_num, 'name': name, 'error': 'Resource not on payroll for this month'})
                continue

            data: Dict[str, Any] = {
                'resource_id': str(resource.pk),
                'month': month,
                'entity_id': str(resource.entity_id) if resource.entity_id else None,
                'department': resource.department,
            }
            for index, field in IMPORT_COLUMNS.items():
                data[field] = row[index] if index < len(row) else None

            allocations = {}
            for offset, project in enumerate(projects):
                index = FIRST_PROJECT_COLUMN + offset
                cell = row[index] if index < len(row) else None
                try:
                    amount = float(cell) if cell not in (None, '') else 0
                except (TypeError, ValueError):
                    amount = 0
                if amount > 0:
                    allocations[str(project.pk)] = amount
            data['project_allocations'] = allocations

            try:
                with transaction.atomic():
                    _, was_created = PayrollService.upsert(data, actor)
            except (ValidationException, PayrollLockedException) as exc:
                errors.append({'row': row_num, 'name': name, 'error': exc.message})
                continue

            if was_created:
                created += 1
            else:
                updated += 1

        return created, updated, errors
