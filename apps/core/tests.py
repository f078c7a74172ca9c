"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for the core module - utilities, the exception
             envelope, spreadsheet helpers and the health endpoints.
-------------------------------------------------------------------------
"""
import io
import os
import subprocess
import sys
import uuid
from datetime import date, datetime

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from openpyxl import Workbook, load_workbook
from rest_framework import exceptions as drf_exceptions
from rest_framework.test import APIClient

from apps.core import excel, utils
from apps.core.exceptions import (
    BusinessCentralException,
    ConflictException,
    DeleteBlockedException,
    NotFoundException,
    PayrollLockedException,
    ValidationException,
    stalo_exception_handler,
)
from apps.core.logging import StaloLogger


class UtilityTests(SimpleTestCase):
    """Tests for the shared parsing helpers."""

    def test_parse_month(self) -> None:
        """Test that months are truncated to their first day."""
        self.assertEqual(utils.parse_month('2025-10-17'), date(2025, 10, 1))
        self.assertEqual(utils.parse_month('2025-10'), date(2025, 10, 1))
        self.assertEqual(utils.parse_month('2025-10-17T08:30:00Z'), date(2025, 10, 1))
        self.assertEqual(utils.parse_month(datetime(2025, 2, 28, 12, 0)), date(2025, 2, 1))

    def test_parse_month_rejects_bad_values(self) -> None:
        """Test missing and unparseable months."""
        with self.assertRaises(ValidationException):
            utils.parse_month(None)
        with self.assertRaises(ValidationException) as ctx:
            utils.parse_month('October', 'month_year')
        self.assertIn('month_year', ctx.exception.message)

    def test_parse_date(self) -> None:
        """Test optional ISO dates."""
        self.assertIsNone(utils.parse_date(''))
        self.assertEqual(utils.parse_date('2025-03-09'), date(2025, 3, 9))
        with self.assertRaises(ValidationException):
            utils.parse_date('09/03/2025')

    def test_is_valid_guid(self) -> None:
        """Test GUID recognition."""
        self.assertTrue(utils.is_valid_guid(str(uuid.uuid4())))
        self.assertTrue(utils.is_valid_guid(uuid.uuid4()))
        self.assertFalse(utils.is_valid_guid('not-a-guid'))
        self.assertFalse(utils.is_valid_guid(None))
        self.assertFalse(utils.is_valid_guid(42))

    def test_month_helpers(self) -> None:
        """Test month labels and month ends."""
        self.assertEqual(utils.month_label(date(2025, 10, 1)), 'Oct 2025')
        self.assertEqual(utils.last_of_month(date(2024, 2, 10)), date(2024, 2, 29))

    def test_booleans(self) -> None:
        """Test query string booleans and Yes/No flags."""
        self.assertTrue(utils.parse_bool('true'))
        self.assertTrue(utils.parse_bool('1'))
        self.assertFalse(utils.parse_bool('false'))
        self.assertFalse(utils.parse_bool(None))
        self.assertEqual(utils.yes_no(True), 'Yes')
        self.assertEqual(utils.yes_no('No'), 'No')
        self.assertEqual(utils.yes_no('false'), 'No')


class ExceptionTests(SimpleTestCase):
    """Tests for the error envelope."""

    def test_to_dict_nests_dict_details(self) -> None:
        """Test that dict details stay under 'details' and never replace the error text."""
        body = {'error': {'code': 'BadRequest_NotFound', 'message': 'Vendor V1 is blocked'}, 'code': 'X'}
        exc = BusinessCentralException('Vendor V1 is blocked', details=body, status_code=400)

        self.assertEqual(exc.to_dict(), {
            'error': 'Vendor V1 is blocked',
            'code': 'ERR_BUSINESS_CENTRAL',
            'details': body,
        })

    def test_to_dict_merges_extra(self) -> None:
        """Test that named extra values sit beside error and code."""
        exc = DeleteBlockedException("Cannot delete", details='Assigned to: Ada', extra={'resources_count': 2})

        self.assertEqual(exc.to_dict(), {
            'error': 'Cannot delete',
            'code': 'ERR_DELETE_BLOCKED',
            'details': 'Assigned to: Ada',
            'resources_count': 2,
        })
        self.assertEqual(exc.status_code, 400)

    def test_extra_cannot_replace_error_or_code(self) -> None:
        """Test that the envelope keys win over extra values of the same name."""
        exc = ValidationException("Bad row", extra={'error': 'other', 'code': 'other'})

        self.assertEqual(exc.to_dict(), {'error': 'Bad row', 'code': 'ERR_VALIDATION'})

    def test_to_dict_wraps_other_details(self) -> None:
        """Test that non-dict details go under 'details'."""
        exc = NotFoundException(details='Project 7')

        self.assertEqual(exc.to_dict()['details'], 'Project 7')
        self.assertEqual(exc.to_dict()['error'], 'The requested record was not found.')

    def test_status_codes(self) -> None:
        """Test the HTTP status of each family."""
        self.assertEqual(ConflictException().status_code, 409)
        self.assertEqual(PayrollLockedException().status_code, 409)
        self.assertEqual(BusinessCentralException().status_code, 502)
        self.assertEqual(BusinessCentralException(status_code=401).status_code, 401)


class ExcelTests(SimpleTestCase):
    """Tests for the workbook and CSV helpers."""

    def _upload(self, rows) -> SimpleUploadedFile:
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return SimpleUploadedFile('sheet.xlsx', buffer.getvalue())

    def test_build_workbook(self) -> None:
        """Test the header row and values of a built workbook."""
        wb = excel.build_workbook('Resources', ['Name', 'Type'], [['Ada', 'Staff']])

        ws = wb.active
        self.assertEqual(ws.title, 'Resources')
        self.assertEqual(ws['A1'].value, 'Name')
        self.assertTrue(ws['A1'].font.bold)
        self.assertEqual(ws['B2'].value, 'Staff')

    def test_workbook_response(self) -> None:
        """Test that the response carries a loadable workbook."""
        wb = excel.build_workbook('Sheet', ['A'], [[1]])

        response = excel.workbook_response(wb, 'out.xlsx')

        self.assertEqual(response['Content-Disposition'], 'attachment; filename="out.xlsx"')
        loaded = load_workbook(io.BytesIO(response.content))
        self.assertEqual(loaded.active['A2'].value, 1)

    def test_sheet_records(self) -> None:
        """Test reading rows keyed by header, skipping blank rows but not their numbers."""
        ws = excel.open_worksheet(self._upload([
            [' Name ', 'Type'],
            ['Ada', 'Staff'],
            [None, None],
            ['Grace', 'SME'],
        ]))

        records = excel.sheet_records(ws, required=['Name'])

        self.assertEqual(records, [(2, {'Name': 'Ada', 'Type': 'Staff'}), (4, {'Name': 'Grace', 'Type': 'SME'})])

    def test_sheet_records_missing_column(self) -> None:
        """Test the missing required column error."""
        ws = excel.open_worksheet(self._upload([['Name'], ['Ada']]))

        with self.assertRaises(ValidationException) as ctx:
            excel.sheet_records(ws, required=['Name', 'Entity'])

        self.assertEqual(ctx.exception.extra, {'missing_columns': ['Entity']})

    def test_open_worksheet_rejects_non_workbooks(self) -> None:
        """Test that a text file is not accepted as a workbook."""
        with self.assertRaises(ValidationException):
            excel.open_worksheet(SimpleUploadedFile('sheet.xlsx', b'not a workbook'))
        with self.assertRaises(ValidationException):
            excel.open_worksheet(None)

    def test_csv_round_trip(self) -> None:
        """Test writing a CSV attachment and reading it back."""
        response = excel.csv_response('out.csv', ['A', 'B'], [['1', 'x,y']])

        rows = excel.read_csv_upload(SimpleUploadedFile('out.csv', response.content))

        self.assertEqual(rows, [['A', 'B'], ['1', 'x,y']])

    def test_read_csv_upload_rejects_binary(self) -> None:
        """Test that non UTF-8 uploads are rejected."""
        with self.assertRaises(ValidationException):
            excel.read_csv_upload(SimpleUploadedFile('data.csv', b'\xff\xfe\x00bad'))


class HealthViewTests(TestCase):
    """Tests for the unauthenticated diagnostics endpoints."""

    def test_health(self) -> None:
        """Test that the health check needs no token."""
        response = APIClient().get('/api/health')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

    def test_diagnostics_hidden_without_debug(self) -> None:
        """Test that env-check and db-test are 404 outside DEBUG."""
        client = APIClient()

        self.assertEqual(client.get('/api/env-check').status_code, 404)
        self.assertEqual(client.get('/api/db-test').status_code, 404)

    def test_api_requires_bearer_token(self) -> None:
        """Test that protected routes reject callers without a token."""
        response = APIClient().get('/api/projects/')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'No authorization header provided')


class ExceptionHandlerTests(TestCase):
    """Tests for the DRF exception handler."""

    def test_stalo_exception(self) -> None:
        """Test that Stalo errors keep their own status code."""
        response = stalo_exception_handler(PayrollLockedException(extra={'record_id': 'r1'}), {})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['code'], 'ERR_PAYROLL_LOCKED')
        self.assertEqual(response.data['record_id'], 'r1')

    def test_drf_errors_use_the_same_envelope(self) -> None:
        """Test that DRF's own errors are reshaped into error and code."""
        denied = stalo_exception_handler(drf_exceptions.NotAuthenticated(), {})
        invalid = stalo_exception_handler(drf_exceptions.ValidationError({'name': ['This field is required.']}), {})

        self.assertEqual(denied.status_code, 401)
        self.assertEqual(denied.data, {
            'error': 'Authentication credentials were not provided.',
            'code': 'not_authenticated',
        })
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.data['error'], 'Invalid request')
        self.assertEqual(invalid.data['code'], 'invalid')
        self.assertEqual(invalid.data['details'], {'name': ['This field is required.']})

    def test_other_errors_fall_through(self) -> None:
        """Test that unexpected errors are left to Django."""
        self.assertIsNone(stalo_exception_handler(ValueError('boom'), {}))


class LoggingTests(SimpleTestCase):
    """Tests for the structured log helpers."""

    def test_log_import(self) -> None:
        """Test the import counts carried on the log record."""
        with self.assertLogs('stalo', level='INFO') as logs:
            StaloLogger.log_import('Resource', 1, 2, [], 'editor@example.org')

        record = logs.records[0]
        self.assertEqual(record.levelname, 'INFO')
        self.assertEqual((record.kind, record.created_count, record.updated_count, record.errors),
                         ('Resource', 1, 2, 0))
        self.assertIn('1 created, 2 updated', record.getMessage())

    def test_log_import_with_errors_warns(self) -> None:
        """Test that an import with bad rows logs a warning."""
        with self.assertLogs('stalo', level='INFO') as logs:
            StaloLogger.log_import('Payroll', 0, 0, [{'row': 3}], None)

        self.assertEqual(logs.records[0].levelname, 'WARNING')
        self.assertEqual(logs.records[0].errors, 1)


class AppLoadingTests(SimpleTestCase):
    """Tests that the project loads and passes Django's system checks."""

    def test_system_check(self) -> None:
        """Test that manage.py check reports no issues."""
        out = io.StringIO()

        call_command('check', stdout=out)

        self.assertIn('no issues', out.getvalue())

    def test_fresh_interpreter_setup(self) -> None:
        """Test that django.setup() succeeds in a new process, where app import order is not warmed up."""
        env = dict(os.environ, DJANGO_SETTINGS_MODULE='config.settings')

        result = subprocess.run(
            [sys.executable, '-c', 'import django; django.setup(); from apps.users import signals'],
            cwd=str(settings.BASE_DIR),
            env=env,
            capture_output=True,
            text=True,
        )

        self.assertEqual(result.returncode, 0, result.stderr)
