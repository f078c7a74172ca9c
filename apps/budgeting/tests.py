"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for the budgeting module.
-------------------------------------------------------------------------
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from apps.budgeting import glidepath
from apps.budgeting.models import BudgetData, BudgetVersion
from apps.budgeting.services import BudgetService
from apps.core.exceptions import ConflictException, NotFoundException, ValidationException
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


class MonthLabelTests(TestCase):
    """Tests for glidepath month heading parsing."""

    def test_short_month_with_two_digit_year(self) -> None:
        """Test that 'Oct-25' and 'Oct 25' are October 2025."""
        self.assertEqual(glidepath.parse_month_label('Oct-25'), date(2025, 10, 1))
        self.assertEqual(glidepath.parse_month_label('Oct 25'), date(2025, 10, 1))

    def test_four_digit_year_and_full_name(self) -> None:
        """Test that full years and full month names are accepted."""
        self.assertEqual(glidepath.parse_month_label('Oct-2025'), date(2025, 10, 1))
        self.assertEqual(glidepath.parse_month_label('October 2025'), date(2025, 10, 1))
        self.assertEqual(glidepath.parse_month_label('Sept-25'), date(2025, 9, 1))

    def test_two_digit_years_from_fifty_are_last_century(self) -> None:
        """Test the 2000/1900 split for two digit years."""
        self.assertEqual(glidepath.parse_month_label('Mar-49'), date(2049, 3, 1))
        self.assertEqual(glidepath.parse_month_label('Mar-75'), date(1975, 3, 1))

    def test_invalid_labels(self) -> None:
        """Test that unparseable headings give None."""
        for label in (None, '', 'Total', 'Foo-25', '2025-10', 'Oct'):
            self.assertIsNone(glidepath.parse_month_label(label), label)


class GlidepathGridTests(TestCase):
    """Tests for the task hierarchy and glidepath totals."""

    def setUp(self) -> None:
        self.oct = date(2025, 10, 1)
        self.nov = date(2025, 11, 1)
        self.tasks = [
            {'job_task_no': '1000', 'description': 'Personnel', 'job_task_type': 'Total'},
            {'job_task_no': '1000.10', 'description': 'Salaries', 'job_task_type': 'Posting'},
            {'job_task_no': '1000.20', 'description': 'Benefits', 'job_task_type': 'Posting'},
            {'job_task_no': '2000', 'description': 'Travel', 'job_task_type': 'Posting'},
        ]
        self.amounts = {
            ('1000.10', self.oct): Decimal('100.00'),
            ('1000.20', self.oct): Decimal('50.00'),
            ('1000.10', self.nov): Decimal('25.00'),
            ('2000', self.nov): Decimal('10.00'),
        }

    def test_parent_total_sums_children(self) -> None:
        """Test that a Total task carries the sum of its posting children."""
        total = glidepath.parent_total('1000', self.oct, self.tasks, self.amounts)

        self.assertEqual(total, Decimal('150.00'))

    def test_grand_total_counts_posting_rows_only(self) -> None:
        """Test that Total rows are not counted twice in column totals."""
        grid = glidepath.build_glidepath([self.oct, self.nov], self.tasks, self.amounts)

        self.assertEqual(grid['months'], ['Oct 2025', 'Nov 2025'])
        self.assertEqual(grid['month_totals']['Oct 2025'], Decimal('150.00'))
        self.assertEqual(grid['month_totals']['Nov 2025'], Decimal('35.00'))
        self.assertEqual(grid['grand_total'], Decimal('185.00'))

        parent = grid['rows'][0]
        self.assertTrue(parent['is_total'])
        self.assertEqual(parent['total'], Decimal('175.00'))

    def test_derive_tasks_adds_parent_totals(self) -> None:
        """Test that dotted prefixes become Total tasks in numeric order."""
        tasks = glidepath.derive_tasks(['1000.10', '1000.2', '2000'])

        self.assertEqual(
            [(t['job_task_no'], t['job_task_type']) for t in tasks],
            [('1000', 'Total'), ('1000.2', 'Posting'), ('1000.10', 'Posting'), ('2000', 'Posting')],
        )

    def test_parse_glidepath_rows(self) -> None:
        """Test reading an uploaded sheet into cells."""
        rows = [
            ['Job Task No', 'Description', 'Oct-25', 'Nov 2025'],
            ['1000.10', 'Salaries', '1,200.50', ''],
            ['', 'Blank task is skipped', '5', '5'],
        ]

        months, cells = glidepath.parse_glidepath_rows(rows)

        self.assertEqual(months, [self.oct, self.nov])
        self.assertEqual(len(cells), 2)
        self.assertEqual(cells[0]['budget_amount'], Decimal('1200.50'))
        self.assertEqual(cells[1]['budget_amount'], Decimal('0'))

    def test_parse_glidepath_rows_bad_header(self) -> None:
        """Test that a bad month heading is rejected."""
        with self.assertRaises(ValueError):
            glidepath.parse_glidepath_rows([['Job Task No', 'Description', 'Total']])


class BudgetServiceTests(TestCase):
    """Tests for budget version maintenance and data writes."""

    def setUp(self) -> None:
        self.version = BudgetService.create_version({
            'job_no': 'J-100',
            'version_name': 'Original',
            'created_by': 'planner@example.org',
        })

    def test_create_requires_fields(self) -> None:
        """Test that job_no, version_name and created_by are required."""
        with self.assertRaises(ValidationException):
            BudgetService.create_version({'job_no': 'J-100'})

    def test_duplicate_name_conflicts(self) -> None:
        """Test that a job cannot have two versions with the same name."""
        with self.assertRaises(ConflictException):
            BudgetService.create_version({
                'job_no': 'J-100',
                'version_name': 'Original',
                'created_by': 'planner@example.org',
            })

    def test_single_baseline_per_job(self) -> None:
        """Test that setting a baseline unsets the previous one."""
        BudgetService.update_version(self.version, {'is_baseline': True})
        second = BudgetService.create_version({
            'job_no': 'J-100',
            'version_name': 'Revised',
            'created_by': 'planner@example.org',
            'is_baseline': 'true',
        })

        self.version.refresh_from_db()
        self.assertFalse(self.version.is_baseline)
        self.assertEqual(BudgetService.baseline('J-100'), second)

    def test_soft_delete_hides_version(self) -> None:
        """Test that a deleted version is inactive and no longer listed."""
        BudgetService.update_version(self.version, {'is_baseline': True})

        BudgetService.delete_version(self.version)

        self.version.refresh_from_db()
        self.assertFalse(self.version.is_active)
        self.assertFalse(self.version.is_baseline)
        self.assertEqual(list(BudgetService.versions_for_job('J-100')), [])

    def test_replace_data_dedupes_cells(self) -> None:
        """Test that a replace keeps the last row given for a cell."""
        BudgetData.objects.create(
            version=self.version, job_no='J-100', job_task_no='9999',
            budget_month=date(2024, 1, 1), budget_amount=Decimal('1'),
        )

        count = BudgetService.replace_data(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 100},
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 150},
            {'job_task_no': '1000.20', 'budget_month': '2025-10', 'budget_amount': '75.25'},
        ], 'planner@example.org')

        self.assertEqual(count, 2)
        self.assertFalse(self.version.data.filter(job_task_no='9999').exists())
        cell = self.version.data.get(job_task_no='1000.10')
        self.assertEqual(cell.budget_amount, Decimal('150.00'))
        self.assertEqual(cell.last_modified_by, 'planner@example.org')

    def test_replace_data_requires_rows(self) -> None:
        """Test that an empty replace is rejected."""
        with self.assertRaises(ValidationException):
            BudgetService.replace_data(self.version, [])

    def test_upsert_cells(self) -> None:
        """Test that cell updates create new cells and change existing ones."""
        BudgetService.replace_data(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 100},
        ])

        count = BudgetService.upsert_cells(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 120},
            {'job_task_no': '1000.10', 'budget_month': '2025-11-01', 'budget_amount': 80},
        ])

        self.assertEqual(count, 2)
        self.assertEqual(self.version.data.count(), 2)
        self.assertEqual(
            self.version.data.get(budget_month=date(2025, 10, 1)).budget_amount,
            Decimal('120.00'),
        )
        self.version.refresh_from_db()
        self.assertEqual(self.version.modified_by, 'System')

    def test_copy_data_overwrites_target(self) -> None:
        """Test copying cells from another version."""
        source = BudgetService.create_version({
            'job_no': 'J-100', 'version_name': 'Forecast', 'created_by': 'planner@example.org',
        })
        BudgetService.replace_data(source, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 500},
            {'job_task_no': '2000', 'budget_month': '2025-10-01', 'budget_amount': 40},
        ])
        BudgetService.replace_data(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 1},
        ])

        copied = BudgetService.copy_data(self.version, source.pk)

        self.assertEqual(copied, 2)
        self.assertEqual(self.version.data.count(), 2)
        self.assertEqual(self.version.data.get(job_task_no='1000.10').budget_amount, Decimal('500.00'))
        self.version.refresh_from_db()
        self.assertEqual(self.version.source_version, source)

    def test_copy_data_unknown_source(self) -> None:
        """Test copying from a missing version."""
        with self.assertRaises(NotFoundException):
            BudgetService.copy_data(self.version, 999999)
        with self.assertRaises(ValidationException):
            BudgetService.copy_data(self.version, None)

    def test_glidepath_months_default_to_data_range(self) -> None:
        """Test that the grid spans the first to last month with data."""
        BudgetService.replace_data(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 10},
            {'job_task_no': '1000.10', 'budget_month': '2025-12-01', 'budget_amount': 30},
        ])

        grid = BudgetService.glidepath(self.version)

        self.assertEqual(grid['months'], ['Oct 2025', 'Nov 2025', 'Dec 2025'])
        self.assertEqual(grid['rows'][0]['job_task_no'], '1000')
        self.assertEqual(grid['grand_total'], Decimal('40.00'))

    def test_export_rows_skip_totals(self) -> None:
        """Test that the CSV export only carries posting rows."""
        BudgetService.replace_data(self.version, [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 10},
        ])

        export = BudgetService.glidepath_export_rows(self.version)

        self.assertEqual(export['headers'], ['Job Task No', 'Description', 'Oct 2025'])
        self.assertEqual(export['rows'], [['1000.10', '', '10.00']])


class BudgetApiTests(TestCase):
    """Tests for the budget version endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Manager', email_address='manager@example.org', role=RoleCode.BUDGET_MANAGER)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='manager@example.org'))

    def _create(self, name='Original'):
        return self.client.post('/api/budget/versions', {
            'job_no': 'J-200',
            'version_name': name,
            'created_by': 'manager@example.org',
        }, format='json')

    def test_create_and_list_versions(self) -> None:
        """Test creating a version then listing the job's versions."""
        response = self._create()

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['success'])

        listing = self.client.get('/api/budget/versions/J-200')
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.json()['count'], 1)
        self.assertEqual(listing.json()['versions'][0]['version_name'], 'Original')

    def test_duplicate_version_returns_409(self) -> None:
        """Test the conflict response for a duplicate name."""
        self._create()

        response = self._create()

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'A version with this name already exists for this project')

    def test_missing_fields_return_400(self) -> None:
        """Test the validation response for an incomplete create."""
        response = self.client.post('/api/budget/versions', {'job_no': 'J-200'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'job_no, version_name and created_by are required')

    def test_viewer_cannot_write(self) -> None:
        """Test that a Viewer may list but not create versions."""
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

        self.assertEqual(self.client.get('/api/budget/versions/J-200').status_code, 200)
        self.assertEqual(self._create().status_code, 403)

    def test_update_and_delete_version(self) -> None:
        """Test renaming then soft deleting a version by id."""
        version_id = self._create().json()['version']['id']

        renamed = self.client.put(f'/api/budget/versions/{version_id}', {'version_name': 'Renamed'}, format='json')
        self.assertEqual(renamed.status_code, 200)
        self.assertEqual(renamed.json()['version']['modified_by'], 'manager@example.org')

        deleted = self.client.delete(f'/api/budget/versions/{version_id}')
        self.assertEqual(deleted.status_code, 200)
        self.assertFalse(BudgetVersion.objects.get(pk=version_id).is_active)

    def test_update_unknown_version_returns_404(self) -> None:
        """Test that a non numeric key cannot be updated."""
        response = self.client.put('/api/budget/versions/J-200', {'version_name': 'x'}, format='json')

        self.assertEqual(response.status_code, 404)

    def test_replace_update_and_read_data(self) -> None:
        """Test the budget data round trip through the API."""
        version_id = self._create().json()['version']['id']
        url = f'/api/budget/data/{version_id}'

        inserted = self.client.post(url, {'budget_data': [
            {'job_task_no': '1000', 'budget_month': '2025-10-01', 'budget_amount': 10},
        ]}, format='json')
        updated = self.client.put(url, {'updates': [
            {'job_task_no': '1000', 'budget_month': '2025-11-01', 'budget_amount': 20},
        ]}, format='json')
        listing = self.client.get(url)

        self.assertEqual(inserted.json()['records_inserted'], 1)
        self.assertEqual(updated.json()['records_updated'], 1)
        self.assertEqual(listing.json()['count'], 2)

    def test_empty_updates_return_400(self) -> None:
        """Test that an empty updates list is rejected."""
        version_id = self._create().json()['version']['id']

        response = self.client.put(f'/api/budget/data/{version_id}', {'updates': []}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'updates array is required and cannot be empty')

    def test_copy_endpoint(self) -> None:
        """Test copying data between versions through the API."""
        source_id = self._create('Source').json()['version']['id']
        target_id = self._create('Target').json()['version']['id']
        self.client.post(f'/api/budget/data/{source_id}', {'budget_data': [
            {'job_task_no': '1000', 'budget_month': '2025-10-01', 'budget_amount': 10},
        ]}, format='json')

        response = self.client.post(
            f'/api/budget/data/{target_id}/copy', {'source_version_id': source_id}, format='json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['records_copied'], 1)

    def test_glidepath_import_and_export(self) -> None:
        """Test uploading a glidepath CSV and downloading it again."""
        version_id = self._create().json()['version']['id']
        upload = SimpleUploadedFile(
            'glidepath.csv',
            b'Job Task No,Description,Oct-25,Nov-25\n1000.10,Salaries,100,200\n',
            content_type='text/csv',
        )

        imported = self.client.post(f'/api/budget/glidepath/{version_id}/import', {'file': upload}, format='multipart')
        exported = self.client.get(f'/api/budget/glidepath/{version_id}/export')

        self.assertEqual(imported.status_code, 200)
        self.assertEqual(imported.json()['records_updated'], 2)
        self.assertEqual(exported.status_code, 200)
        content = exported.content.decode('utf-8-sig')
        self.assertIn('Job Task No,Description,Oct 2025,Nov 2025', content)
        self.assertIn('1000.10,,100.00,200.00', content)

    def test_glidepath_import_bad_header(self) -> None:
        """Test that an unparseable month column is a 400."""
        version_id = self._create().json()['version']['id']
        upload = SimpleUploadedFile('g.csv', b'Job Task No,Description,Total\n1000,x,1\n', content_type='text/csv')

        response = self.client.post(f'/api/budget/glidepath/{version_id}/import', {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Invalid file format')

    @mock.patch('apps.budgeting.views.BusinessCentralService.job_task_lines')
    def test_glidepath_with_bc_tasks(self, job_task_lines) -> None:
        """Test that bc_tasks=true takes task rows from Business Central."""
        job_task_lines.return_value = [
            {'Job_Task_No': '1000', 'Description': 'Personnel', 'Job_Task_Type': 'Total'},
            {'Job_Task_No': '1000.10', 'Description': 'Salaries', 'Job_Task_Type': 'Posting'},
        ]
        version_id = self._create().json()['version']['id']
        self.client.post(f'/api/budget/data/{version_id}', {'budget_data': [
            {'job_task_no': '1000.10', 'budget_month': '2025-10-01', 'budget_amount': 10},
        ]}, format='json')

        response = self.client.get(f'/api/budget/glidepath/{version_id}', {'bc_tasks': 'true'})

        self.assertEqual(response.status_code, 200)
        job_task_lines.assert_called_once_with('J-200')
        rows = response.json()['rows']
        self.assertEqual(rows[0]['description'], 'Personnel')
        self.assertTrue(rows[0]['is_total'])
