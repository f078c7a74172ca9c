"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for the Business Central integration. HTTP is
             mocked at the requests session or at get_client().
-------------------------------------------------------------------------
"""
from datetime import date
from decimal import Decimal
from unittest import mock

import requests
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework.test import APIClient

from apps.budgeting.models import BudgetData
from apps.budgeting.services import BudgetService
from apps.core.exceptions import BusinessCentralAuthException, BusinessCentralException, ValidationException
from apps.erp import client as bc_client
from apps.erp import services
from apps.erp.client import BusinessCentralClient
from apps.erp.services import BusinessCentralService
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


def fake_response(status_code: int = 200, payload=None) -> mock.Mock:
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = b'' if payload is None else b'{}'
    response.text = ''
    response.json.return_value = payload
    return response


def make_client(session) -> BusinessCentralClient:
    return BusinessCentralClient(
        tenant_id='tenant-1',
        client_id='client-1',
        client_secret='secret',
        base_url="https://bc.example/ODataV4/Company('Acme')/",
        company_name='Acme Ltd',
        session=session,
    )


class HelperTests(SimpleTestCase):
    """Tests for the pure Business Central helpers."""

    def test_truncate_description(self) -> None:
        """Test that long descriptions are cut to 100 characters."""
        self.assertEqual(services.truncate_description('short'), 'short')

        text = services.truncate_description('x' * 101)

        self.assertEqual(len(text), 100)
        self.assertTrue(text.endswith('...'))

    def test_batched(self) -> None:
        """Test splitting entry numbers into batches of 50."""
        batches = list(services.batched(list(range(120))))

        self.assertEqual([len(b) for b in batches], [50, 50, 20])

    def test_build_task_hierarchy(self) -> None:
        """Test placing posting tasks under one or two Total levels."""
        tasks = [
            {'Job_Task_No': '1000', 'Description': 'Personnel', 'Job_Task_Type': 'Total'},
            {'Job_Task_No': '1000.10', 'Description': 'Staff', 'Job_Task_Type': 'Total'},
            {'Job_Task_No': '1000.10.01', 'Description': 'Salaries', 'Job_Task_Type': 'Posting'},
            {'Job_Task_No': '2000.10', 'Description': 'Flights', 'Job_Task_Type': 'Posting'},
        ]

        hierarchy = services.build_task_hierarchy(tasks)

        self.assertEqual(len(hierarchy), 2)
        self.assertEqual(hierarchy[0]['Level1_Job_Task_No'], '1000')
        self.assertEqual(hierarchy[0]['Level2_Description'], 'Staff')
        self.assertTrue(hierarchy[0]['Has_Middle_Level'])
        self.assertEqual(hierarchy[1]['Level1_Job_Task_No'], '')
        self.assertFalse(hierarchy[1]['Has_Middle_Level'])

    def test_filter_personnel_expenses(self) -> None:
        """Test that only unpaid, unreferenced, non-draft expenses remain."""
        expenses = [
            {'No': 1, 'Paid': False, 'Payment_Reference': '', 'Status': 'Released'},
            {'No': 2, 'Paid': True, 'Payment_Reference': '', 'Status': 'Released'},
            {'No': 3, 'Paid': False, 'Payment_Reference': 'PAY-1', 'Status': 'Released'},
            {'No': 4, 'Paid': False, 'Payment_Reference': '  ', 'Status': 'Draft'},
        ]

        self.assertEqual([e['No'] for e in services.filter_personnel_expenses(expenses)], [1])
        self.assertEqual(len(services.filter_personnel_expenses(expenses, show_all=True)), 4)

    def test_filter_prepayments(self) -> None:
        """Test that empty Business Central dates count as unpaid."""
        prepayments = [
            {'No': 1, 'Payment_Date': '2025-10-01'},
            {'No': 2, 'Payment_Date': '0001-01-01'},
            {'No': 3, 'Payment_Date': '1900-01-01T00:00:00'},
            {'No': 4, 'Payment_Date': None},
        ]

        paid = services.filter_prepayments(prepayments)

        self.assertEqual([p['No'] for p in paid], [1])
        self.assertEqual(paid[0]['Payment_Method'], '')
        self.assertEqual(len(services.filter_prepayments(prepayments, show_all=True)), 4)

    def test_merge_purchase_invoices(self) -> None:
        """Test that vendor ledger entries override invoice status and amount."""
        invoices = [
            {'No': 'PI-1', 'Amount': 10, 'Closed': False},
            {'No': 'PI-2', 'Amount': 20, 'Closed': True, 'Payment_Method_Code': 'BANK'},
        ]
        ledger = [
            {'Document_No': 'PI-1', 'Open': False, 'Original_Amount': -125.5, 'External_Document_No': 'INV-77'},
            {'Document_No': 'PI-1', 'Open': True, 'Original_Amount': -1},
        ]

        merged = services.merge_purchase_invoices(invoices, ledger)

        self.assertTrue(merged[0]['Closed'])
        self.assertEqual(merged[0]['Amount'], 125.5)
        self.assertEqual(merged[0]['External_Document_No'], 'INV-77')
        self.assertTrue(merged[1]['Closed'])
        self.assertEqual(merged[1]['Payment_Method_Code'], 'BANK')
        self.assertEqual(merged[1]['External_Document_No'], '')

    def test_journal_line(self) -> None:
        """Test the journalLines payload."""
        line = services.journal_line(
            'Vendor', 'V001', Decimal('-12.50'), 'Payment', 'DOC-1', 'EXT-1', posting_date=date(2025, 10, 3)
        )

        self.assertEqual(line, {
            'accountType': 'Vendor',
            'accountNumber': 'V001',
            'postingDate': '2025-10-03',
            'documentNumber': 'DOC-1',
            'amount': -12.5,
            'description': 'Payment',
            'externalDocumentNumber': 'EXT-1',
        })

    @override_settings(BC_WEB_CLIENT_URL='', BC_COMPANY_NAME='Acme Ltd')
    def test_journal_url_needs_web_client(self) -> None:
        """Test that no link is built without a web client URL."""
        self.assertEqual(services.journal_url('PAYMENT'), '')

    @override_settings(BC_WEB_CLIENT_URL='https://bc.example/tenant/Production', BC_COMPANY_NAME='Acme Ltd')
    def test_journal_url(self) -> None:
        """Test the General Journal link."""
        url = services.journal_url('PAYMENT')

        self.assertTrue(url.startswith('https://bc.example/tenant/Production?company=Acme%20Ltd&page=39&filter='))
        self.assertIn('PAYMENT', url)
        self.assertTrue(url.endswith('&dc=0'))


class ClientTests(SimpleTestCase):
    """Tests for token caching and error mapping in the client."""

    def setUp(self) -> None:
        self.session = mock.Mock()
        self.session.post.return_value = fake_response(200, {'access_token': 'token-1', 'expires_in': 3600})
        self.bc = make_client(self.session)

    def test_token_is_cached(self) -> None:
        """Test that a fresh token is reused."""
        self.assertEqual(self.bc.get_token(), 'token-1')
        self.assertEqual(self.bc.get_token(), 'token-1')

        self.assertEqual(self.session.post.call_count, 1)
        data = self.session.post.call_args.kwargs['data']
        self.assertEqual(data['grant_type'], 'client_credentials')
        self.assertEqual(data['scope'], 'https://api.businesscentral.dynamics.com/.default')

    def test_token_renewed_near_expiry(self) -> None:
        """Test that a token inside the expiry margin is renewed."""
        self.session.post.return_value = fake_response(200, {'access_token': 'token-1', 'expires_in': 300})

        self.bc.get_token()
        self.bc.get_token()

        self.assertEqual(self.session.post.call_count, 2)

    def test_token_rejected(self) -> None:
        """Test that a refused token request raises the auth error."""
        self.session.post.return_value = fake_response(401, {'error': 'invalid_client'})

        with self.assertRaises(BusinessCentralAuthException):
            self.bc.get_token()

    def test_default_api_url(self) -> None:
        """Test the API v2.0 URL built from tenant and environment."""
        self.assertEqual(
            self.bc.api_url,
            'https://api.businesscentral.dynamics.com/v2.0/tenant-1/Production/api/v2.0',
        )
        self.assertEqual(self.bc.base_url, "https://bc.example/ODataV4/Company('Acme')")

    def test_odata_values(self) -> None:
        """Test reading the value list of an OData page."""
        self.session.request.return_value = fake_response(200, {'value': [{'No': 'J-1'}]})

        rows = self.bc.odata_values('Job_List', params={'$select': 'No'})

        self.assertEqual(rows, [{'No': 'J-1'}])
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ('GET', "https://bc.example/ODataV4/Company('Acme')/Job_List"))
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer token-1')
        self.assertEqual(kwargs['params'], {'$select': 'No'})

    def test_error_status_is_passed_through(self) -> None:
        """Test that an upstream error keeps its status and message."""
        self.session.request.return_value = fake_response(404, {'error': {'code': 'NotFound', 'message': 'No such entity'}})

        with self.assertRaises(BusinessCentralException) as ctx:
            self.bc.odata('Missing_Page', message='Failed to fetch page')

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.message, 'No such entity')

    def test_network_error_is_502(self) -> None:
        """Test that a connection failure is a bad gateway."""
        self.session.request.side_effect = requests.exceptions.ConnectionError('connection refused')

        with self.assertRaises(BusinessCentralException) as ctx:
            self.bc.odata('Job_List', message='Failed to fetch projects')

        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(ctx.exception.message, 'Failed to fetch projects')

    def test_empty_body_is_empty_dict(self) -> None:
        """Test that a 204 reply decodes to an empty dict."""
        self.session.request.return_value = fake_response(204)

        self.assertEqual(self.bc.api_post('companies(1)/journals', {}), {})

    def test_company_id_is_looked_up_once(self) -> None:
        """Test the company lookup by name and its caching."""
        self.session.request.return_value = fake_response(200, {'value': [
            {'id': 'c-0', 'name': 'Other'},
            {'id': 'c-1', 'name': 'Acme Ltd'},
        ]})

        self.assertEqual(self.bc.company_id(), 'c-1')
        self.assertEqual(self.bc.company_id(), 'c-1')
        self.assertEqual(self.session.request.call_count, 1)

    def test_company_not_found(self) -> None:
        """Test the 404 when no company matches."""
        self.session.request.return_value = fake_response(200, {'value': []})

        with self.assertRaises(BusinessCentralException) as ctx:
            self.bc.company_id()

        self.assertEqual(ctx.exception.status_code, 404)

    def test_journal_created_when_missing(self) -> None:
        """Test that a missing journal batch is created."""
        self.bc._company_id = 'c-1'
        self.session.request.side_effect = [
            fake_response(200, {'value': []}),
            fake_response(201, {'id': 'journal-9'}),
        ]

        journal_id = self.bc.journal_id('PAYMENT', 'Payment Journal')

        self.assertEqual(journal_id, 'journal-9')
        args, kwargs = self.session.request.call_args
        self.assertEqual(args[0], 'POST')
        self.assertEqual(kwargs['json'], {'code': 'PAYMENT', 'displayName': 'Payment Journal'})

    @override_settings(BC_TENANT_ID='t-9', BC_CLIENT_ID='c', BC_CLIENT_SECRET='s',
                       BC_ENVIRONMENT='Sandbox', BC_API_URL='', BC_BASE_URL='https://bc.example')
    def test_shared_client_from_settings(self) -> None:
        """Test that get_client builds one client from settings."""
        bc_client.reset_client()
        self.addCleanup(bc_client.reset_client)

        first = bc_client.get_client()

        self.assertIs(bc_client.get_client(), first)
        self.assertEqual(first.api_url, 'https://api.businesscentral.dynamics.com/v2.0/t-9/Sandbox/api/v2.0')


@mock.patch('apps.erp.services.get_client')
class JournalLineTests(SimpleTestCase):
    """Tests for posting payment journal lines."""

    def test_payment_journal_line(self, get_client) -> None:
        """Test the vendor debit and bank credit of an invoice payment."""
        client = get_client.return_value
        client.journal_id.return_value = 'journal-1'
        client.create_journal_line.side_effect = [{'id': 'line-v'}, {'id': 'line-b'}]

        result = BusinessCentralService.payment_journal_line({
            'vendor_no': 'V001',
            'vendor_name': 'Office Supplies',
            'amount': '-250.00',
            'invoice_reference': 'PI-1001',
            'bank_account_no': 'BANK01',
            'payment_reference': 'PAY-55',
        })

        client.journal_id.assert_called_once_with('PAYMENT', 'Payment Journal')
        vendor_line = client.create_journal_line.call_args_list[0].args[1]
        bank_line = client.create_journal_line.call_args_list[1].args[1]
        self.assertEqual(vendor_line['accountType'], 'Vendor')
        self.assertEqual(vendor_line['amount'], 250.0)
        self.assertEqual(vendor_line['documentNumber'], 'PAY-55')
        self.assertEqual(vendor_line['externalDocumentNumber'], 'PI-1001')
        self.assertEqual(vendor_line['description'], 'Payment for Office Supplies PI-1001')
        self.assertEqual(bank_line['accountType'], 'Bank Account')
        self.assertEqual(bank_line['amount'], -250.0)
        self.assertEqual(result['vendor_line_id'], 'line-v')
        self.assertEqual(result['bank_line_id'], 'line-b')

    def test_payment_requires_fields(self, get_client) -> None:
        """Test that vendor, amount and bank account are required."""
        with self.assertRaises(ValidationException):
            BusinessCentralService.payment_journal_line({'vendor_no': 'V001'})
        get_client.assert_not_called()

    def test_customer_payment_journal_line(self, get_client) -> None:
        """Test the customer credit and bank debit of a receipt."""
        client = get_client.return_value
        client.journal_id.return_value = 'journal-2'
        client.create_journal_line.side_effect = [{'id': 'line-c'}, {'id': 'line-b'}]

        result = BusinessCentralService.customer_payment_journal_line({
            'customer_no': 'C001',
            'customer_name': 'Donor Org',
            'amount': 1000,
            'invoice_no': 'SI-9',
            'bank_account_no': 'BANK01',
        })

        client.journal_id.assert_called_once_with('CASHRECPT', 'Cash Receipt Journal')
        customer_line = client.create_journal_line.call_args_list[0].args[1]
        bank_line = client.create_journal_line.call_args_list[1].args[1]
        self.assertEqual(customer_line['amount'], -1000.0)
        self.assertEqual(customer_line['description'], 'Receipt from Donor Org')
        self.assertEqual(customer_line['documentNumber'], 'SI-9')
        self.assertEqual(bank_line['amount'], 1000.0)
        self.assertEqual(result['customer_line_id'], 'line-c')

    def test_salary_lines_report_failures(self, get_client) -> None:
        """Test that one failing employee does not stop the others."""
        client = get_client.return_value
        client.journal_id.return_value = 'journal-1'
        client.create_journal_line.side_effect = [
            {'id': 'v-1'}, {'id': 'b-1'},
            BusinessCentralException('Vendor V003 is blocked', status_code=400),
        ]

        result = BusinessCentralService.salary_payment_journal_lines({
            'bank_account_no': 'BANK01',
            'payroll_month': '2025-10',
            'employees': [
                {'vendor_no': 'V001', 'vendor_name': 'A. Khan', 'amount': 3000, 'payment_reference': 'SAL-1'},
                {'vendor_no': 'V002', 'vendor_name': 'B. Shah'},
                {'vendor_no': 'V003', 'vendor_name': 'C. Ali', 'amount': 2000},
            ],
        })

        self.assertFalse(result['success'])
        self.assertEqual(len(result['results']), 1)
        self.assertEqual(result['results'][0]['vendor_line_id'], 'v-1')
        self.assertEqual([e['vendor_no'] for e in result['errors']], ['V002', 'V003'])
        self.assertEqual(result['errors'][1]['error'], 'Vendor V003 is blocked')
        first_line = client.create_journal_line.call_args_list[0].args[1]
        self.assertEqual(first_line['description'], 'Salary for A. Khan 2025-10')
        self.assertEqual(first_line['externalDocumentNumber'], '2025-10')

    def test_projects_skip_blank_numbers(self, get_client) -> None:
        """Test that jobs without a number are dropped."""
        get_client.return_value.odata_values.return_value = [{'No': 'J-1'}, {'No': '  '}, {}]

        self.assertEqual(BusinessCentralService.projects(), ['J-1'])


class LedgerEntryTests(TestCase):
    """Tests for the budget-vs-actual ledger entry report."""

    def setUp(self) -> None:
        self.version = BudgetService.create_version({
            'job_no': 'J-1', 'version_name': 'Baseline', 'created_by': 'planner@example.org', 'is_baseline': True,
        })
        BudgetData.objects.create(
            version=self.version, job_no='J-1', job_task_no='1000.10',
            budget_month=date(2025, 10, 1), budget_amount=Decimal('100.00'),
        )
        self.tasks = [
            {'Job_Task_No': '1000', 'Description': 'Personnel', 'Job_Task_Type': 'Total'},
            {'Job_Task_No': '1000.10', 'Description': 'Salaries', 'Job_Task_Type': 'Posting'},
        ]
        self.entries = [{'Entry_No': 7, 'Donor_Project_No': 'J-1', 'Donor_Project_Task_No': '1000.10', 'Amount': 40}]

    @mock.patch('apps.erp.services.get_client')
    def test_entries_are_enriched(self, get_client) -> None:
        """Test document dates, hierarchy and baseline budget on entries."""
        def odata_values(entity, params=None, message=None):
            return {
                'Project_Ledger_Entries_Excel': self.entries,
                'jlentries': [{'entryNo': 7, 'documentDate': '2025-10-02', 'externalDocumentNo': 'EXT-7'}],
                'Job_Task_Lines': self.tasks,
            }[entity]
        get_client.return_value.odata_values.side_effect = odata_values

        result = BusinessCentralService.ledger_entries('J-1', start_date=date(2025, 10, 1))

        entry = result['entries'][0]
        self.assertEqual(result['count'], 1)
        self.assertEqual(result['budget_version_id'], self.version.pk)
        self.assertEqual(entry['Document_Date'], '2025-10-02')
        self.assertEqual(entry['External_Document_No'], 'EXT-7')
        self.assertEqual(entry['Level1_Job_Task_No'], '1000')
        self.assertEqual(entry['Budget_Amount'], Decimal('100.00'))
        self.assertEqual(result['job_task_hierarchy'][0]['Budget_Amount'], Decimal('100.00'))
        entry_filter = get_client.return_value.odata_values.call_args_list[0].kwargs['params']['$filter']
        self.assertEqual(entry_filter, "Donor_Project_No eq 'J-1' and Posting_Date ge 2025-10-01")

    @mock.patch('apps.erp.services.get_client')
    def test_lookup_failures_are_tolerated(self, get_client) -> None:
        """Test that failed document and task lookups still return entries."""
        def odata_values(entity, params=None, message=None):
            if entity == 'Project_Ledger_Entries_Excel':
                return self.entries
            raise BusinessCentralException('Lookup failed', status_code=500)
        get_client.return_value.odata_values.side_effect = odata_values

        result = BusinessCentralService.ledger_entries('J-1')

        entry = result['entries'][0]
        self.assertIsNone(entry['Document_Date'])
        self.assertEqual(entry['Level1_Job_Task_No'], '')
        self.assertEqual(entry['Budget_Amount'], Decimal('100.00'))
        self.assertEqual(result['job_task_hierarchy'], [])

    def test_project_is_required(self) -> None:
        """Test the missing project parameter."""
        with self.assertRaises(ValidationException):
            BusinessCentralService.ledger_entries('')


class ErpApiTests(TestCase):
    """Tests for the /api/bc endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Editor', email_address='editor@example.org', role=RoleCode.EDITOR)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

    @mock.patch('apps.erp.services.get_client')
    def test_projects(self, get_client) -> None:
        """Test listing project numbers."""
        get_client.return_value.odata_values.return_value = [{'No': 'J-1'}, {'No': 'J-2'}]

        response = self.client.get('/api/bc/projects')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'projects': ['J-1', 'J-2']})

    @mock.patch('apps.erp.services.get_client')
    def test_upstream_error_status(self, get_client) -> None:
        """Test that a Business Central failure keeps its status code."""
        get_client.return_value.odata_values.side_effect = BusinessCentralException(
            'Failed to fetch vendors', status_code=401,
        )

        response = self.client.get('/api/bc/vendors')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Failed to fetch vendors')

    @mock.patch('apps.erp.services.get_client')
    def test_upstream_error_body_is_nested(self, get_client) -> None:
        """Test that a Business Central error body cannot replace the error text."""
        body = {'error': {'code': 'BadRequest_NotFound', 'message': 'Vendor V1 is blocked'}}
        session = mock.Mock()
        session.post.return_value = fake_response(200, {'access_token': 'token-1', 'expires_in': 3600})
        session.request.return_value = fake_response(400, body)
        get_client.return_value = make_client(session)

        response = self.client.get('/api/bc/vendors')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {
            'error': 'Vendor V1 is blocked',
            'code': 'ERR_BUSINESS_CENTRAL',
            'details': body,
        })

    @mock.patch('apps.erp.services.get_client')
    def test_prepayments_show_all(self, get_client) -> None:
        """Test the show_all switch on prepayments."""
        get_client.return_value.odata_values.return_value = [
            {'No': 1, 'Payment_Date': '2025-10-01'},
            {'No': 2, 'Payment_Date': '0001-01-01'},
        ]

        paid = self.client.get('/api/bc/prepayments')
        everything = self.client.get('/api/bc/prepayments', {'show_all': 'true'})

        self.assertEqual(paid.json()['count'], 1)
        self.assertEqual(everything.json()['count'], 2)

    def test_job_task_lines_need_job_no(self) -> None:
        """Test the missing job_no parameter."""
        response = self.client.get('/api/bc/job-task-lines')

        self.assertEqual(response.status_code, 400)

    def test_ledger_entries_bad_version_id(self) -> None:
        """Test a non numeric version_id."""
        response = self.client.get('/api/bc/ledger-entries', {'project': 'J-1', 'version_id': 'abc'})

        self.assertEqual(response.status_code, 400)

    def test_viewer_cannot_post_journal_lines(self) -> None:
        """Test that journal posting needs an Editor."""
        response = self.client.post('/api/bc/payment-journal-line', {}, format='json')

        self.assertEqual(response.status_code, 403)

    @override_settings(BC_WEB_CLIENT_URL='')
    @mock.patch('apps.erp.services.get_client')
    def test_editor_posts_payment(self, get_client) -> None:
        """Test posting a payment through the API."""
        self.client.force_authenticate(user=AzureUser(email='editor@example.org'))
        get_client.return_value.journal_id.return_value = 'journal-1'
        get_client.return_value.create_journal_line.side_effect = [{'id': 'v'}, {'id': 'b'}]

        response = self.client.post('/api/bc/payment-journal-line', {
            'vendor_no': 'V001', 'amount': 10, 'bank_account_no': 'BANK01',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['vendor_line_id'], 'v')
        self.assertEqual(response.json()['payment_url'], '')
