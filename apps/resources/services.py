"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Business logic for entities and resources: entity
             resolution by id or name, guarded deletes and the
             spreadsheet round trip used by the Resources screen.
-------------------------------------------------------------------------
"""
import itertools
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.db import transaction

from apps.core.exceptions import DeleteBlockedException, ValidationException
from apps.core.utils import is_valid_guid, parse_date
from apps.resources.models import Entity, Resource, WorkWeek


RESOURCE_EXPORT_HEADERS = [
    'Name', 'Type', 'Entity', 'Vendor Account',
    'Start Date', 'End Date', 'Work Days', 'Department',
]

RESOURCE_IMPORT_REQUIRED = ['Name', 'Type', 'Entity', 'Start Date', 'Work Days', 'Department']


def resolve_entity(value: Any) -> Optional[Entity]:
    """
    Find an entity by primary key or by (case-insensitive) name.

    Raises:
        ValidationException: If a non-empty value matches nothing.
    """
    if value in (None, ''):
        return None
    if isinstance(value, Entity):
        return value

    text = str(value).strip()
    if is_valid_guid(text):
        entity = Entity.objects.filter(pk=text).first()
    else:
        entity = Entity.objects.filter(name__iexact=text).first()

    if entity is None:
        raise ValidationException(
            "Entity not found",
            details=f"No entity found with name: {text}",
        )
    return entity


class EntityService:
    """Entity maintenance."""

    @staticmethod
    def delete(entity: Entity) -> None:
        """
        Delete an entity that no resource references.

        Raises:
            DeleteBlockedException: Resources still belong to the entity.
        """
        names = list(entity.resources.values_list('name', flat=True)[:20])
        if names:
            raise DeleteBlockedException(
                "Cannot delete entity with assigned resources",
                details=f"This entity is assigned to: {', '.join(names)}",
                extra={'resources_count': entity.resources.count()},
            )
        entity.delete()


class ResourceService:
    """Resource maintenance and spreadsheet import/export."""

    @staticmethod
    def delete(resource: Resource) -> None:
        """
        Delete a resource with no allocations.

        Raises:
            DeleteBlockedException: The resource is allocated to positions.
        """
        allocations = (
            resource.allocations
            .select_related('position')
            .order_by('month_year', 'position__position_name')
        )
        count = allocations.count()
        if count:
            allocated_to = ', '.join(
                f"{a.position.position_name} ({a.month_year:%Y-%m})" for a in allocations
            )
            raise DeleteBlockedException(
                "Cannot delete resource with active allocations",
                details=f"This resource is allocated to: {allocated_to}",
                extra={'allocations_count': count},
            )
        resource.delete()

    @staticmethod
    def export_rows(resources: Iterable[Resource]) -> List[List[Any]]:
        """Rows for the Resources workbook, in RESOURCE_EXPORT_HEADERS order."""
        rows = []
        for r in resources:
            rows.append([
                r.name,
                r.resource_type,
                r.entity.name if r.entity_id else '',
                r.dynamics_vendor_acc,
                r.start_date.isoformat() if r.start_date else '',
                r.end_date.isoformat() if r.end_date else '',
                r.work_days,
                r.department,
            ])
        return rows

    @staticmethod
    def _cell_date(value: Any, field: str) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        return parse_date(value, field)

    @staticmethod
    def _row_to_fields(row: Dict[str, Any]) -> Dict[str, Any]:
        missing = [name for name in RESOURCE_IMPORT_REQUIRED if row.get(name) in (None, '')]
        if missing:
            raise ValidationException(f"Missing required values: {', '.join(missing)}")

        work_days = str(row['Work Days']).strip()
        if work_days not in WorkWeek.values:
            raise ValidationException(f"Invalid Work Days: {work_days}")

        return {
            'name': str(row['Name']).strip(),
            'resource_type': str(row['Type']).strip(),
            'entity': resolve_entity(row['Entity']),
            'dynamics_vendor_acc': str(row.get('Vendor Account') or '').strip(),
            'start_date': ResourceService._cell_date(row['Start Date'], 'Start Date'),
            'end_date': ResourceService._cell_date(row.get('End Date'), 'End Date'),
            'work_days': work_days,
            'department': str(row['Department']).strip(),
        }

    @staticmethod
    def import_rows(rows: Iterable[Dict[str, Any]], dry_run: bool = False,
                    row_numbers: Optional[Iterable[int]] = None) -> Tuple[int, int, List[Dict[str, Any]]]:
        """
        Upsert resources by name from spreadsheet rows.

        Each row is applied in its own savepoint so one bad row does not
        discard the others. Row numbers in errors are spreadsheet rows
        (header is row 1); pass row_numbers when blank rows were dropped
        so errors still point at the right line.

        Returns:
            Tuple of (created, updated, errors).
        """
        created = updated = 0
        errors: List[Dict[str, Any]] = []

        with transaction.atomic():
            numbers = row_numbers if row_numbers is not None else itertools.count(2)
            for row_num, row in zip(numbers, rows):
                try:
                    with transaction.atomic():
                        fields = ResourceService._row_to_fields(row)
                        existing = Resource.objects.filter(name__iexact=fields['name']).first()
                        if existing:
                            for key, value in fields.items():
                                setattr(existing, key, value)
                            existing.save()
                            updated += 1
                        else:
                            Resource.objects.create(**fields)
                            created += 1
                except ValidationException as exc:
                    errors.append({'row': row_num, 'name': row.get('Name'), 'error': exc.message})

            if dry_run:
                transaction.set_rollback(True)

        return created, updated, errors
