"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for entities, resources and the resource
             spreadsheet import/export.
-------------------------------------------------------------------------
"""
import io
import os
import tempfile
from datetime import date, datetime

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase
from openpyxl import Workbook, load_workbook
from rest_framework.test import APIClient

from apps.core.exceptions import DeleteBlockedException, ValidationException
from apps.projects.models import Allocation, Position, Project
from apps.resources.models import Entity, Resource, WorkWeek
from apps.resources.services import EntityService, ResourceService, resolve_entity
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


IMPORT_HEADERS = ['Name', 'Type', 'Entity', 'Vendor Account', 'Start Date', 'End Date', 'Work Days', 'Department']


def workbook_bytes(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(IMPORT_HEADERS)
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class ResolveEntityTests(TestCase):
    """Tests for entity lookup by id or name."""

    def setUp(self) -> None:
        self.entity = Entity.objects.create(name='Stalo Jordan', currency_code='JOD')

    def test_by_id_and_by_name(self) -> None:
        """Test both ways of naming an entity."""
        self.assertEqual(resolve_entity(str(self.entity.pk)), self.entity)
        self.assertEqual(resolve_entity(' stalo jordan '), self.entity)
        self.assertIsNone(resolve_entity(''))

    def test_unknown_entity(self) -> None:
        """Test the error for a name that matches nothing."""
        with self.assertRaises(ValidationException) as ctx:
            resolve_entity('Nowhere Ltd')

        self.assertEqual(ctx.exception.message, 'Entity not found')


class GuardedDeleteTests(TestCase):
    """Tests for deletes blocked by references."""

    def setUp(self) -> None:
        self.entity = Entity.objects.create(name='Stalo UK', currency_code='GBP')
        self.resource = Resource.objects.create(name='Ada', resource_type='Staff', entity=self.entity)

    def test_entity_with_resources_cannot_be_deleted(self) -> None:
        """Test that an entity in use is kept."""
        with self.assertRaises(DeleteBlockedException) as ctx:
            EntityService.delete(self.entity)

        self.assertEqual(ctx.exception.extra['resources_count'], 1)
        self.assertIn('Ada', ctx.exception.details)
        self.assertTrue(Entity.objects.filter(pk=self.entity.pk).exists())

    def test_resource_with_allocations_cannot_be_deleted(self) -> None:
        """Test that an allocated resource is kept."""
        project = Project.objects.create(name='Water', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        position = Position.objects.create(project=project, position_name='Engineer', month_year=date(2025, 3, 1))
        Allocation.objects.create(project=project, resource=self.resource, position=position,
                                  month_year=date(2025, 3, 1))

        with self.assertRaises(DeleteBlockedException) as ctx:
            ResourceService.delete(self.resource)

        self.assertEqual(ctx.exception.extra['allocations_count'], 1)
        self.assertIn('Engineer (2025-03)', ctx.exception.details)

    def test_unreferenced_records_are_deleted(self) -> None:
        """Test that deletes go through once nothing refers to the record."""
        ResourceService.delete(self.resource)
        EntityService.delete(self.entity)

        self.assertFalse(Resource.objects.exists())
        self.assertFalse(Entity.objects.exists())


class ResourceImportTests(TestCase):
    """Tests for importing resource rows."""

    def setUp(self) -> None:
        Entity.objects.create(name='Stalo UK', currency_code='GBP')
        Resource.objects.create(name='Ada', resource_type='Staff', department='Old')

    def _row(self, **overrides):
        row = {
            'Name': 'Grace',
            'Type': 'Consultant',
            'Entity': 'Stalo UK',
            'Start Date': '2025-01-01',
            'Work Days': 'Mon-Fri',
            'Department': 'Programs',
        }
        row.update(overrides)
        return row

    def test_creates_and_updates_by_name(self) -> None:
        """Test the upsert on resource name."""
        created, updated, errors = ResourceService.import_rows([
            self._row(),
            self._row(Name='ADA', Type='Staff', **{'Start Date': datetime(2024, 6, 1)}),
        ])

        self.assertEqual((created, updated, errors), (1, 1, []))
        ada = Resource.objects.get(name='ADA')
        self.assertEqual(ada.department, 'Programs')
        self.assertEqual(ada.start_date, date(2024, 6, 1))
        self.assertEqual(ada.entity.name, 'Stalo UK')

    def test_bad_rows_are_reported_with_sheet_row_numbers(self) -> None:
        """Test that one bad row does not stop the others."""
        created, updated, errors = ResourceService.import_rows([
            self._row(Department=''),
            self._row(Name='Linus', **{'Work Days': 'Daily'}),
            self._row(Name='Ken', Entity='Nowhere'),
            self._row(Name='Dennis'),
        ])

        self.assertEqual(created, 1)
        self.assertEqual([e['row'] for e in errors], [2, 3, 4])
        self.assertIn('Department', errors[0]['error'])
        self.assertEqual(errors[1]['error'], 'Invalid Work Days: Daily')
        self.assertEqual(errors[2]['error'], 'Entity not found')

    def test_dry_run_saves_nothing(self) -> None:
        """Test that a dry run reports without saving."""
        created, updated, errors = ResourceService.import_rows([self._row()], dry_run=True)

        self.assertEqual(created, 1)
        self.assertFalse(Resource.objects.filter(name='Grace').exists())


class ImportResourcesCommandTests(TestCase):
    """Tests for the import_resources management command."""

    def test_import_from_workbook(self) -> None:
        """Test loading resources from an Excel file on disk."""
        Entity.objects.create(name='Stalo UK')
        content = workbook_bytes([['Grace', 'Staff', 'Stalo UK', 'V-100', datetime(2025, 2, 1), None,
                                   'Sun-Thu', 'Finance']])
        with tempfile.NamedTemporaryFile(suffix='.xlsx', delete=False) as handle:
            handle.write(content)
        self.addCleanup(os.remove, handle.name)
        out = io.StringIO()

        call_command('import_resources', handle.name, stdout=out)

        grace = Resource.objects.get(name='Grace')
        self.assertEqual(grace.work_days, WorkWeek.SUN_THU)
        self.assertEqual(grace.start_date, date(2025, 2, 1))
        self.assertIsNone(grace.end_date)
        self.assertIn('1 created', out.getvalue())

    def test_errors_point_at_sheet_rows_after_blank_rows(self) -> None:
        """Test that a blank line in the sheet does not shift reported row numbers."""
        Entity.objects.create(name='Stalo UK')
        content = workbook_bytes([
            ['Grace', 'Staff', 'Stalo UK', '', datetime(2025, 2, 1), None, 'Mon-Fri', 'Finance'],
            [None] * len(IMPORT_HEADERS),
            ['Linus', 'Staff', 'Stalo UK', '', datetime(2025, 2, 1), None, 'Daily', 'Finance'],
        ])
        with tempfile.NamedTemporaryFile(suffix='.xlsx', delete=False) as handle:
            handle.write(content)
        self.addCleanup(os.remove, handle.name)
        out = io.StringIO()

        call_command('import_resources', handle.name, stdout=out)

        self.assertIn('Row 4 (Linus): Invalid Work Days: Daily', out.getvalue())
        self.assertIn('1 created', out.getvalue())


class ResourceApiTests(TestCase):
    """Tests for the entity and resource endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Admin', email_address='admin-user@example.org', role=RoleCode.ADMIN)
        SystemUser.objects.create(name='Editor', email_address='editor@example.org', role=RoleCode.EDITOR)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.entity = Entity.objects.create(name='Stalo UK', currency_code='GBP')
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='editor@example.org'))

    def test_entity_writes_need_admin(self) -> None:
        """Test that an Editor may read but not create entities."""
        listed = self.client.get('/api/entities/')
        denied = self.client.post('/api/entities/', {'name': 'Stalo KE'}, format='json')

        self.client.force_authenticate(user=AzureUser(email='admin-user@example.org'))
        created = self.client.post('/api/entities/', {'name': 'Stalo KE', 'currency_code': 'KES'}, format='json')

        self.assertEqual(listed.status_code, 200)
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()['sal_exp_code'], '6000')

    def test_entity_delete_blocked_by_resources(self) -> None:
        """Test the delete guard through the API."""
        Resource.objects.create(name='Ada', entity=self.entity)
        self.client.force_authenticate(user=AzureUser(email='admin-user@example.org'))

        response = self.client.delete(f'/api/entities/{self.entity.pk}')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'ERR_DELETE_BLOCKED')
        self.assertEqual(response.json()['resources_count'], 1)

    def test_create_resource_with_entity_name(self) -> None:
        """Test that the entity may be given by name."""
        response = self.client.post('/api/resources/', {
            'name': 'Grace',
            'resource_type': 'Staff',
            'entity': 'stalo uk',
            'work_days': 'Mon-Fri',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['entity'], str(self.entity.pk))
        self.assertEqual(response.json()['entity_name'], 'Stalo UK')
        self.assertEqual(response.json()['currency_code'], 'GBP')

    def test_unknown_entity_is_rejected(self) -> None:
        """Test the error for an entity name that matches nothing."""
        response = self.client.post('/api/resources/', {'name': 'Grace', 'entity': 'Nowhere'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Entity not found')

    def test_list_filters_by_type(self) -> None:
        """Test the type filter on the resource list."""
        Resource.objects.create(name='Ada', resource_type='Staff')
        Resource.objects.create(name='Grace', resource_type='SME')

        response = self.client.get('/api/resources/', {'type': 'SME'})

        self.assertEqual([r['name'] for r in response.json()], ['Grace'])

    def test_patch_changes_only_given_fields(self) -> None:
        """Test a partial update."""
        resource = Resource.objects.create(name='Ada', resource_type='Staff', department='Programs')

        response = self.client.patch(f'/api/resources/{resource.pk}', {'department': 'Finance'}, format='json')

        resource.refresh_from_db()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(resource.department, 'Finance')
        self.assertEqual(resource.resource_type, 'Staff')

    def test_export_workbook(self) -> None:
        """Test the Excel download of resources."""
        Resource.objects.create(name='Ada', resource_type='Staff', entity=self.entity, start_date=date(2025, 1, 1))

        response = self.client.get('/api/resources/export')

        ws = load_workbook(io.BytesIO(response.content)).active
        self.assertEqual(response.status_code, 200)
        self.assertEqual([c.value for c in ws[1]], IMPORT_HEADERS)
        self.assertEqual(ws['A2'].value, 'Ada')
        self.assertEqual(ws['C2'].value, 'Stalo UK')
        self.assertEqual(ws['E2'].value, '2025-01-01')

    def test_import_workbook(self) -> None:
        """Test the Excel upload of resources."""
        upload = SimpleUploadedFile('resources.xlsx', workbook_bytes([
            ['Grace', 'Staff', 'Stalo UK', '', datetime(2025, 1, 1), None, 'Mon-Fri', 'Programs'],
            [None] * len(IMPORT_HEADERS),
            ['Linus', 'Staff', 'Stalo UK', '', datetime(2025, 1, 1), None, 'Daily', 'Programs'],
        ]))

        response = self.client.post('/api/resources/import', {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['created'], 1)
        self.assertEqual(response.json()['error_count'], 1)
        self.assertEqual(response.json()['errors'][0]['row'], 4)

    def test_viewer_cannot_import(self) -> None:
        """Test that uploads need an Editor."""
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

        response = self.client.post('/api/resources/import', {}, format='multipart')

        self.assertEqual(response.status_code, 403)
