"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for payroll arithmetic, record upsert and
             locking, the Excel round trip and the journal.
-------------------------------------------------------------------------
"""
import io
from datetime import date
from decimal import Decimal

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase
from openpyxl import load_workbook
from rest_framework.test import APIClient

from apps.core.exceptions import PayrollLockedException, ValidationException
from apps.payroll import calculations
from apps.payroll.models import PayrollRecord
from apps.payroll.services import PayrollService
from apps.projects.models import Allocation, Position, Project
from apps.resources.models import Entity, Resource
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


OCTOBER = date(2025, 10, 1)


class CalculationTests(SimpleTestCase):
    """Tests for the pure payroll arithmetic."""

    def test_working_days(self) -> None:
        """Test day counts for both work-week patterns."""
        self.assertEqual(calculations.working_days(2025, 10, 'Mon-Fri'), 23)
        self.assertEqual(calculations.working_days(2025, 10, 'Sun-Thu'), 22)
        self.assertEqual(calculations.working_days(2025, 2, 'Sun-Thu'), 20)
        self.assertEqual(calculations.working_days(2025, 10, None), 23)

    def test_daily_rate(self) -> None:
        """Test the salary x 12 / 220 rate."""
        self.assertEqual(calculations.daily_rate('2200'), Decimal('120'))
        self.assertIsNone(calculations.daily_rate(None))
        self.assertIsNone(calculations.daily_rate(0))

    def test_to_percentages(self) -> None:
        """Test shares of the row total."""
        self.assertEqual(calculations.to_percentages({'a': 1, 'b': 3}), {'a': Decimal('25.00'), 'b': Decimal('75.00')})
        self.assertEqual(calculations.to_percentages({'a': 0}), {'a': Decimal('0')})

    def test_percentage_view(self) -> None:
        """Test per resource shares and entity averages."""
        view = calculations.percentage_view({
            'e1': {
                'r1': {'p1': 1, 'p2': 1},
                'r2': {'p1': 3, 'p2': 1},
                'r3': {'p1': 0},
            },
        })

        self.assertEqual(view['resources']['r2'], {'p1': Decimal('75.00'), 'p2': Decimal('25.00')})
        self.assertNotIn('r3', view['resources'])
        self.assertEqual(view['entity_averages']['e1'], {'p1': Decimal('62.50'), 'p2': Decimal('37.50')})
        self.assertEqual(view['originals']['r3'], {'p1': 0})

    def test_document_number_and_account_type(self) -> None:
        """Test the journal document number and account types."""
        self.assertEqual(calculations.document_number(OCTOBER), 'P10/2025')
        self.assertEqual(calculations.account_type('6000'), 'G/L Account')
        self.assertEqual(calculations.account_type('1200'), 'Vendor')
        self.assertEqual(calculations.account_type('9000'), '')

    def test_journal_rows(self) -> None:
        """Test that each component is split by project share."""
        rows = calculations.journal_rows(
            month=date(2025, 10, 14),
            resource_name='Ada',
            components={'net_salary': 1000, 'social_security': Decimal('100'), 'housing': 0},
            allocations={'p1': 60, 'p2': 20, 'p3': 0},
            project_names={'p1': 'Water'},
            expense_codes={'salary': '6010', 'tax': ''},
        )

        self.assertEqual(
            [(r['Project_No'], r['Account_No'], r['Amount']) for r in rows],
            [
                ('Water', '6010', '750.00'),
                ('Water', '6100', '75.00'),
                ('Unknown Project', '6010', '250.00'),
                ('Unknown Project', '6100', '25.00'),
            ],
        )
        first = rows[0]
        self.assertEqual(first['Posting_Date'], '2025-10-31')
        self.assertEqual(first['Document_No'], 'P10/2025')
        self.assertEqual(first['Description'], 'Ada Salary for Oct 2025')
        self.assertEqual(first['Gen_Posting_Type'], 'Purchase')
        self.assertEqual(first['Currency_Code'], 'USD')

    def test_journal_table(self) -> None:
        """Test the CSV shape of journal rows."""
        headers, values = calculations.journal_table([{'Amount': '1.00', 'Project_No': 'Water'}])

        self.assertEqual(headers, calculations.JOURNAL_COLUMNS)
        self.assertEqual(values[0][headers.index('Amount')], '1.00')
        self.assertEqual(values[0][0], '')


class PayrollTestMixin:
    """Shared month of data: one payroll resource and one SME."""

    def create_payroll_data(self) -> None:
        self.entity = Entity.objects.create(name='Stalo UK', currency_code='GBP')
        self.project = Project.objects.create(name='Water', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        Project.objects.create(name='Closed', start_date=date(2024, 1, 1), end_date=date(2024, 12, 31))
        self.ada = Resource.objects.create(name='Ada', resource_type='Staff', entity=self.entity,
                                           department='Programs')
        self.sam = Resource.objects.create(name='Sam', resource_type='SME', entity=self.entity)
        position = Position.objects.create(project=self.project, task_id='1.1', position_name='Engineer',
                                           month_year=OCTOBER, loe=Decimal('100'))
        for resource in (self.ada, self.sam):
            Allocation.objects.create(project=self.project, resource=resource, position=position,
                                      month_year=OCTOBER, loe=Decimal('100'))

    def record_data(self, **overrides):
        data = {
            'resource_id': str(self.ada.pk),
            'month': '2025-10-15',
            'entity_id': str(self.entity.pk),
            'net_salary': '2200',
            'project_allocations': {str(self.project.pk): 100},
        }
        data.update(overrides)
        return data


class PayrollServiceTests(PayrollTestMixin, TestCase):
    """Tests for payroll record maintenance."""

    def setUp(self) -> None:
        self.create_payroll_data()

    def test_payroll_resources_skip_non_payroll_types(self) -> None:
        """Test that SMEs are left off payroll."""
        self.assertEqual(list(PayrollService.payroll_resources(OCTOBER)), [self.ada])
        self.assertEqual([p.name for p in PayrollService.projects_for_month(OCTOBER)], ['Water'])

    def test_upsert_creates_then_updates_given_fields(self) -> None:
        """Test that an update leaves absent fields alone."""
        record, created = PayrollService.upsert(self.record_data())
        same, created_again = PayrollService.upsert(
            {'resource_id': str(self.ada.pk), 'month': '2025-10-01', 'housing': '300'}, 'editor@example.org'
        )

        same.refresh_from_db()
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(record.pk, same.pk)
        self.assertEqual(same.month, OCTOBER)
        self.assertEqual(same.net_salary, Decimal('2200.00'))
        self.assertEqual(same.housing, Decimal('300.00'))
        self.assertEqual(same.entity, self.entity)
        self.assertEqual(same.modified_by, 'editor@example.org')

    def test_upsert_accepts_allocations_as_json_text(self) -> None:
        """Test the grid's JSON string form of allocations."""
        record, _ = PayrollService.upsert(self.record_data(project_allocations=f'{{"{self.project.pk}": 40}}'))

        self.assertEqual(record.project_allocations, {str(self.project.pk): 40})

    def test_upsert_validation(self) -> None:
        """Test required fields and bad values."""
        with self.assertRaises(ValidationException) as ctx:
            PayrollService.upsert({'month': '2025-10-01'})
        self.assertEqual(ctx.exception.message, 'resource_id and month are required')

        with self.assertRaises(ValidationException) as ctx:
            PayrollService.upsert(self.record_data(resource_id='not-a-guid'))
        self.assertEqual(ctx.exception.message, 'Resource not found')

        with self.assertRaises(ValidationException):
            PayrollService.upsert(self.record_data(net_salary='lots'))
        with self.assertRaises(ValidationException):
            PayrollService.upsert(self.record_data(project_allocations='[1, 2]'))

    def test_locked_record_rejects_updates(self) -> None:
        """Test that a locked record cannot be changed."""
        PayrollService.upsert(self.record_data(locked=True))

        with self.assertRaises(PayrollLockedException):
            PayrollService.upsert(self.record_data(net_salary='1'))

        self.assertEqual(PayrollRecord.objects.get().net_salary, Decimal('2200.00'))

    def test_lock_validation(self) -> None:
        """Test the arguments of lock."""
        with self.assertRaises(ValidationException):
            PayrollService.lock([], True)
        with self.assertRaises(ValidationException):
            PayrollService.lock(['x'], 'yes')
        with self.assertRaises(ValidationException) as ctx:
            PayrollService.lock(['x'], True)
        self.assertEqual(ctx.exception.extra, {'invalid_ids': ['x']})

    def test_lock_month(self) -> None:
        """Test locking and unlocking a whole month."""
        PayrollService.upsert(self.record_data())

        month, count = PayrollService.lock_month('2025-10-20', True, 'editor@example.org')

        record = PayrollRecord.objects.get()
        self.assertEqual((month, count), (OCTOBER, 1))
        self.assertTrue(record.locked)
        self.assertEqual(record.modified_by, 'editor@example.org')
        self.assertEqual(PayrollService.lock_month('2025-11-01', False)[1], 0)

    def test_journal_uses_entity_codes_and_currency(self) -> None:
        """Test journal rows built from saved records."""
        self.entity.sal_exp_code = '6050'
        self.entity.save()
        PayrollService.upsert(self.record_data(housing='300'))

        rows = PayrollService.journal(OCTOBER)

        self.assertEqual([(r['Account_No'], r['Amount']) for r in rows], [('6050', '2200.00'), ('6050', '300.00')])
        self.assertEqual(rows[0]['Currency_Code'], 'GBP')
        self.assertEqual(rows[0]['Project_No'], 'Water')

    def test_import_rows(self) -> None:
        """Test applying sheet rows by resource name."""
        headers, _ = PayrollService.export_table(OCTOBER)
        row = ['Stalo UK', 'Ada', 23, 'GBP', 1500, '', '', '', '', '', 2, '', '', '', 60]

        created, updated, errors = PayrollService.import_rows(OCTOBER, [headers, row, ['', 'Nobody']])

        record = PayrollRecord.objects.get()
        self.assertEqual((created, updated), (1, 0))
        self.assertEqual(errors, [{'row': 3, 'name': 'Nobody', 'error': 'Resource not on payroll for this month'}])
        self.assertEqual(record.net_salary, Decimal('1500.00'))
        self.assertEqual(record.annual_leave, 2)
        self.assertEqual(record.department, 'Programs')
        self.assertEqual(record.project_allocations, {str(self.project.pk): 60.0})

    def test_import_rows_with_empty_project_cells_clears_allocations(self) -> None:
        """Test that blanking every project column on the sheet clears the saved split."""
        PayrollService.upsert(self.record_data())
        headers, _ = PayrollService.export_table(OCTOBER)
        row = ['Stalo UK', 'Ada', 23, 'GBP', 1500, '', '', '', '', '', 0, '', '', '', '']

        created, updated, errors = PayrollService.import_rows(OCTOBER, [headers, row])

        record = PayrollRecord.objects.get()
        self.assertEqual((created, updated, errors), (0, 1, []))
        self.assertEqual(record.project_allocations, {})


class PayrollApiTests(PayrollTestMixin, TestCase):
    """Tests for the payroll endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Editor', email_address='editor@example.org', role=RoleCode.EDITOR)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='editor@example.org'))
        self.create_payroll_data()

    def test_grid_lists_payroll_resources(self) -> None:
        """Test the month's payroll resources with working days."""
        response = self.client.get('/api/payroll/', {'month': '2025-10'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]['resource_name'], 'Ada')
        self.assertEqual(response.json()[0]['working_days'], 23)
        self.assertEqual(response.json()[0]['currency'], 'GBP')

    def test_grid_needs_month(self) -> None:
        """Test that the month parameter is required."""
        self.assertEqual(self.client.get('/api/payroll/').status_code, 400)

    def test_upsert_statuses(self) -> None:
        """Test 201 on create and 200 on update."""
        created = self.client.post('/api/payroll/', self.record_data(), format='json')
        updated = self.client.post('/api/payroll/', {
            'resource_id': str(self.ada.pk),
            'month': '2025-10-01',
            'sick_leave': 1,
        }, format='json')

        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()['daily_rate'], '120.00')
        self.assertEqual(created.json()['modified_by'], 'editor@example.org')
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()['net_salary'], '2200.00')
        self.assertEqual(updated.json()['sick_leave'], 1)

    def test_locked_record_returns_conflict(self) -> None:
        """Test the 409 for a locked record."""
        record_id = self.client.post('/api/payroll/', self.record_data(), format='json').json()['id']
        locked = self.client.patch('/api/payroll/lock', {'record_ids': [record_id], 'locked': True}, format='json')

        response = self.client.post('/api/payroll/', self.record_data(net_salary='1'), format='json')

        self.assertEqual(locked.json(), {'success': True, 'updated_count': 1, 'locked': True})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'Payroll record is locked')
        self.assertEqual(response.json()['code'], 'ERR_PAYROLL_LOCKED')

    def test_lock_needs_editor(self) -> None:
        """Test that a Viewer cannot lock records."""
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

        response = self.client.patch('/api/payroll/lock-month', {'month': '2025-10', 'locked': True}, format='json')

        self.assertEqual(response.status_code, 403)

    def test_lock_month(self) -> None:
        """Test the month lock response."""
        self.client.post('/api/payroll/', self.record_data(), format='json')

        response = self.client.patch('/api/payroll/lock-month', {'month': '2025-10-09', 'locked': True},
                                     format='json')

        self.assertEqual(response.json(), {'success': True, 'updated_count': 1, 'month': '2025-10-01', 'locked': True})

    def test_lock_requires_record_ids(self) -> None:
        """Test the lock argument errors."""
        response = self.client.patch('/api/payroll/lock', {'locked': True}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'record_ids array is required')

    def test_records_and_allocations(self) -> None:
        """Test the saved records and allocation lists."""
        self.client.post('/api/payroll/', self.record_data(), format='json')

        records = self.client.get('/api/payroll/all', {'month': '2025-10'})
        allocations = self.client.get('/api/payroll/allocations', {'month': '2025-10'})
        projects = self.client.get('/api/payroll/projects', {'month': '2025-10'})

        self.assertEqual([r['resource_name'] for r in records.json()], ['Ada'])
        self.assertEqual({a['task_id'] for a in allocations.json()}, {'1.1'})
        self.assertEqual([p['name'] for p in projects.json()], ['Water'])

    def test_percentages(self) -> None:
        """Test the percentage view endpoint."""
        other = Project.objects.create(name='Health', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        allocations = {str(self.project.pk): 3, str(other.pk): 1}
        self.client.post('/api/payroll/', self.record_data(project_allocations=allocations), format='json')

        response = self.client.get('/api/payroll/percentages', {'month': '2025-10'})

        shares = response.json()['resources'][str(self.ada.pk)]
        self.assertEqual(response.status_code, 200)
        self.assertEqual(float(shares[str(self.project.pk)]), 75.0)
        self.assertEqual(float(shares[str(other.pk)]), 25.0)
        self.assertIn(str(self.entity.pk), response.json()['entity_averages'])

    def test_journal_json_and_csv(self) -> None:
        """Test both journal formats."""
        self.client.post('/api/payroll/', self.record_data(), format='json')

        as_json = self.client.get('/api/payroll/journal', {'month': '2025-10', 'json': 'true'})
        as_csv = self.client.get('/api/payroll/journal', {'month': '2025-10'})

        self.assertEqual(as_json.json()['month'], '2025-10-01')
        self.assertEqual(as_json.json()['count'], 1)
        self.assertEqual(as_json.json()['rows'][0]['Amount'], '2200.00')
        self.assertEqual(as_csv['Content-Disposition'], 'attachment; filename="Payroll_Journal_2025-10.csv"')
        self.assertTrue(as_csv.content.decode('utf-8-sig').startswith('Journal_Batch_Name,Line_No,'))

    def test_export_then_import(self) -> None:
        """Test that an exported workbook can be uploaded again."""
        self.client.post('/api/payroll/', self.record_data(), format='json')

        exported = self.client.get('/api/payroll/export', {'month': '2025-10'})
        ws = load_workbook(io.BytesIO(exported.content)).active
        upload = SimpleUploadedFile('payroll.xlsx', exported.content)
        imported = self.client.post('/api/payroll/import?month=2025-10', {'file': upload}, format='multipart')

        self.assertEqual(ws['B2'].value, 'Ada')
        self.assertEqual(ws['C2'].value, 23)
        self.assertEqual(ws['O1'].value, 'Water')
        self.assertEqual(ws['N2'].value, '120.00')
        self.assertEqual(imported.status_code, 200)
        self.assertEqual(imported.json()['updated'], 1)
        self.assertEqual(imported.json()['error_count'], 0)
        self.assertEqual(PayrollRecord.objects.get().net_salary, Decimal('2200.00'))
