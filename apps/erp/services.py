"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Business Central reads used by the reporting and payment
             screens (with the merge and filter rules applied to them)
             and the payment, receipt and salary journal lines posted
             back to Business Central.
-------------------------------------------------------------------------
"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

from django.conf import settings
from django.db.models import Sum

from apps.budgeting.models import BudgetData
from apps.budgeting.services import BudgetService
from apps.core.exceptions import BusinessCentralException, ValidationException
from apps.core.logging import StaloLogger
from apps.erp.client import get_client


logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 100
ENTRY_BATCH_SIZE = 50
EMPTY_DATES = ('0001-01-01', '1900-01-01')

PAYMENT_JOURNAL = ('PAYMENT', 'Payment Journal')
CASH_RECEIPT_JOURNAL = ('CASHRECPT', 'Cash Receipt Journal')


# =============================================================================
# Pure helpers
# =============================================================================

def truncate_description(text: str, limit: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Business Central descriptions hold at most 100 characters."""
    if len(text) <= limit:
        return text
    return text[:limit - 3] + '...'


def _amount(value: Any) -> Decimal:
    try:
        return abs(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        raise ValidationException(f"Invalid amount: {value!r}")


def batched(items: List[Any], size: int = ENTRY_BATCH_SIZE) -> Iterable[List[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def build_task_hierarchy(tasks: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Place every posting task under its Total parents.

    Level 1 is the Total task numbered by the first segment of the
    posting task, level 2 the Total task numbered by the first two
    segments (three-level jobs only).
    """
    tasks = list(tasks)
    totals = {t['Job_Task_No']: t for t in tasks if t.get('Job_Task_Type') == 'Total'}

    hierarchy = []
    for task in tasks:
        if task.get('Job_Task_Type') != 'Posting':
            continue
        parts = task['Job_Task_No'].split('.')
        level1 = totals.get(parts[0]) if len(parts) > 1 else None
        level2 = totals.get('.'.join(parts[:2])) if len(parts) > 2 else None
        hierarchy.append({
            'Job_Task_No': task['Job_Task_No'],
            'Description': task.get('Description') or '',
            'Level1_Job_Task_No': level1['Job_Task_No'] if level1 else '',
            'Level1_Description': (level1.get('Description') or '') if level1 else '',
            'Level2_Job_Task_No': level2['Job_Task_No'] if level2 else '',
            'Level2_Description': (level2.get('Description') or '') if level2 else '',
            'Has_Middle_Level': level2 is not None,
        })
    return hierarchy


def enrich_ledger_entries(
    entries: Iterable[Mapping[str, Any]],
    document_dates: Mapping[Any, Any],
    external_documents: Mapping[Any, Any],
    hierarchy: Iterable[Mapping[str, Any]],
    budgets: Mapping[str, Decimal],
) -> List[Dict[str, Any]]:
    """Add document date, external document, task hierarchy and budget to entries."""
    by_task = {h['Job_Task_No']: h for h in hierarchy}
    enriched = []
    for entry in entries:
        task_no = entry.get('Donor_Project_Task_No')
        task = by_task.get(task_no, {})
        enriched.append({
            **entry,
            'Document_Date': document_dates.get(entry.get('Entry_No')),
            'External_Document_No': external_documents.get(entry.get('Entry_No')),
            'Job_Task_Description': task.get('Description', ''),
            'Level1_Job_Task_No': task.get('Level1_Job_Task_No', ''),
            'Level1_Description': task.get('Level1_Description', ''),
            'Level2_Job_Task_No': task.get('Level2_Job_Task_No', ''),
            'Level2_Description': task.get('Level2_Description', ''),
            'Has_Middle_Level': task.get('Has_Middle_Level', False),
            'Budget_Amount': budgets.get(task_no, Decimal('0')),
        })
    return enriched


def filter_personnel_expenses(expenses: Iterable[Mapping[str, Any]], show_all: bool = False) -> List[Mapping[str, Any]]:
    """Unpaid, unreferenced, non-draft expenses unless show_all."""
    if show_all:
        return list(expenses)
    return [
        e for e in expenses
        if e.get('Paid') is False
        and not (e.get('Payment_Reference') or '').strip()
        and e.get('Status') != 'Draft'
    ]


def has_payment_date(prepayment: Mapping[str, Any]) -> bool:
    value = (prepayment.get('Payment_Date') or '').strip()
    return bool(value) and not value.startswith(EMPTY_DATES)


def filter_prepayments(prepayments: Iterable[Mapping[str, Any]], show_all: bool = False) -> List[Dict[str, Any]]:
    """Prepayments with a real payment date unless show_all."""
    return [
        {**p, 'Payment_Method': p.get('Payment_Method') or ''}
        for p in prepayments
        if show_all or has_payment_date(p)
    ]


def merge_purchase_invoices(
    invoices: Iterable[Mapping[str, Any]],
    ledger_entries: Iterable[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Overlay vendor ledger invoice entries on posted purchase invoices.

    A matching entry (first by Document_No) decides Closed, the absolute
    Original_Amount and the external document number.
    """
    ledger: Dict[str, Mapping[str, Any]] = {}
    for entry in ledger_entries:
        if entry.get('Document_No'):
            ledger.setdefault(entry['Document_No'], entry)

    merged = []
    for invoice in invoices:
        entry = ledger.get(invoice.get('No'))
        if entry:
            merged.append({
                **invoice,
                'Closed': not entry.get('Open'),
                'Amount': abs(entry.get('Original_Amount') or 0),
                'Payment_Method_Code': invoice.get('Payment_Method_Code') or '',
                'External_Document_No': entry.get('External_Document_No') or '',
            })
        else:
            merged.append({
                **invoice,
                'Closed': invoice.get('Closed') or False,
                'Amount': invoice.get('Amount') or 0,
                'Payment_Method_Code': invoice.get('Payment_Method_Code') or '',
                'External_Document_No': '',
            })
    return merged


def journal_line(
    account_type: str,
    account_number: str,
    amount: Decimal,
    description: str,
    document_number: str = '',
    external_document_number: str = '',
    posting_date: Optional[date] = None,
) -> Dict[str, Any]:
    """A v2.0 journalLines payload. Positive amounts debit, negative credit."""
    return {
        'accountType': account_type,
        'accountNumber': account_number,
        'postingDate': (posting_date or date.today()).isoformat(),
        'documentNumber': document_number or '',
        'amount': float(amount),
        'description': truncate_description(description),
        'externalDocumentNumber': external_document_number or '',
    }


def journal_url(batch_name: str) -> str:
    """Web client link to the General Journal page filtered to the batch."""
    base = settings.BC_WEB_CLIENT_URL
    if not base:
        return ''
    journal_filter = (
        "'Gen. Journal Line'.'Journal Template Name' IS 'GENERAL' AND "
        f"'Gen. Journal Line'.'Journal Batch Name' IS '{batch_name}'"
    )
    return f"{base}?company={quote(settings.BC_COMPANY_NAME)}&page=39&filter={quote(journal_filter)}&dc=0"


# =============================================================================
# Service
# =============================================================================

class BusinessCentralService:
    """Reads from and journal posting to Business Central."""

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @staticmethod
    def projects() -> List[str]:
        """Project (job) numbers from Job_List"""
        jobs = get_client().odata_values(
            'Job_List',
            params={'$select': 'No,Description,Bill_to_Customer_No,Status,Person_Responsible,Search_Description,Project_Manager'},
            message='Failed to fetch projects',
        )
        return [job['No'] for job in jobs if (job.get('No') or '').strip()]

    @staticmethod
    def project_cards() -> List[Dict[str, Any]]:
        return get_client().odata_values('Project_Card_Excel', message='Failed to fetch project cards')

    @staticmethod
    def job_task_lines(job_no: str, select: Optional[str] = None) -> List[Dict[str, Any]]:
        if not job_no:
            raise ValidationException("job_no parameter is required")
        params = {'$filter': f"Job_No eq '{job_no}'"}
        if select:
            params['$select'] = select
        return get_client().odata_values('Job_Task_Lines', params=params, message='Failed to fetch job task lines')

    @staticmethod
    def _entry_documents(entry_nos: List[Any]) -> Dict[str, Dict[Any, Any]]:
        """Document date and external document number per entry, batched."""
        client = get_client()
        dates: Dict[Any, Any] = {}
        externals: Dict[Any, Any] = {}
        for batch in batched(entry_nos):
            rows = client.odata_values('jlentries', params={
                '$filter': ' or '.join(f"entryNo eq {no}" for no in batch),
                '$select': 'entryNo,documentDate,externalDocumentNo',
            })
            for row in rows:
                dates.setdefault(row.get('entryNo'), row.get('documentDate'))
                if row.get('externalDocumentNo'):
                    externals.setdefault(row['entryNo'], row['externalDocumentNo'])
        return {'dates': dates, 'externals': externals}

    @staticmethod
    def task_budgets(job_no: str, version_id: Optional[int] = None,
                     start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        """Budget per task from the given version, or the job's baseline."""
        if version_id is None:
            baseline = BudgetService.baseline(job_no)
            version_id = baseline.pk if baseline else None
        if version_id is None:
            logger.info(f"No baseline budget version for project {job_no}")
            return {'version_id': None, 'budgets': {}}

        data = BudgetData.objects.filter(job_no=job_no, version_id=version_id)
        if start_date and end_date:
            data = data.filter(budget_month__gte=start_date, budget_month__lte=end_date)
        totals = data.values('job_task_no').annotate(total=Sum('budget_amount'))
        return {
            'version_id': version_id,
            'budgets': {row['job_task_no']: row['total'] for row in totals},
        }

    @staticmethod
    def ledger_entries(project: str, start_date: Optional[date] = None, end_date: Optional[date] = None,
                       version_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Project ledger entries enriched for the budget-vs-actual report.

        Document dates, task descriptions and budgets are best effort:
        a failure fetching them is logged and the entries are returned
        without them.
        """
        if not project:
            raise ValidationException("project parameter is required")

        odata_filter = f"Donor_Project_No eq '{project}'"
        if start_date:
            odata_filter += f" and Posting_Date ge {start_date.isoformat()}"
        if end_date:
            odata_filter += f" and Posting_Date le {end_date.isoformat()}"

        entries = get_client().odata_values(
            'Project_Ledger_Entries_Excel',
            params={'$filter': odata_filter},
            message='Failed to fetch ledger entries',
        )

        documents = {'dates': {}, 'externals': {}}
        entry_nos = list(dict.fromkeys(e.get('Entry_No') for e in entries if e.get('Entry_No') is not None))
        if entry_nos:
            try:
                documents = BusinessCentralService._entry_documents(entry_nos)
            except BusinessCentralException as e:
                logger.warning(f"Ledger entry document lookup failed for {project}: {e.message}")

        hierarchy: List[Dict[str, Any]] = []
        try:
            tasks = BusinessCentralService.job_task_lines(project, select='Job_No,Job_Task_No,Description,Job_Task_Type')
            hierarchy = build_task_hierarchy(tasks)
        except BusinessCentralException as e:
            logger.warning(f"Job task lookup failed for {project}: {e.message}")

        budget = BusinessCentralService.task_budgets(project, version_id, start_date, end_date)
        budgets = budget['budgets']

        enriched = enrich_ledger_entries(entries, documents['dates'], documents['externals'], hierarchy, budgets)
        return {
            'entries': enriched,
            'count': len(enriched),
            'budget_version_id': budget['version_id'],
            'job_task_hierarchy': [
                {**task, 'Budget_Amount': budgets.get(task['Job_Task_No'], Decimal('0'))}
                for task in hierarchy
            ],
        }

    @staticmethod
    def personnel_expenses(show_all: bool = False) -> List[Mapping[str, Any]]:
        expenses = get_client().odata_values('Grouped_Personnel_Expense_Excel', message='Failed to fetch personnel expenses')
        return filter_personnel_expenses(expenses, show_all)

    @staticmethod
    def prepayments(show_all: bool = False) -> List[Dict[str, Any]]:
        prepayments = get_client().odata_values('Prepayment_Information_Excel', message='Failed to fetch prepayments')
        return filter_prepayments(prepayments, show_all)

    @staticmethod
    def vendors() -> List[Dict[str, Any]]:
        return get_client().odata_values('workflowVendors', message='Failed to fetch vendors')

    @staticmethod
    def purchase_invoices() -> List[Dict[str, Any]]:
        """Posted purchase invoices merged with their vendor ledger entries"""
        client = get_client()
        invoices = client.odata_values('Posted_Purchase_Invoice_Excel', message='Failed to fetch purchase invoices')
        try:
            ledger = client.odata_values('Vendor_Ledger_Entries_Excel', params={'$filter': "Document_Type eq 'Invoice'"})
        except BusinessCentralException as e:
            logger.warning(f"Vendor ledger entries unavailable, using invoice data only: {e.message}")
            ledger = []
        return merge_purchase_invoices(invoices, ledger)

    @staticmethod
    def salary_payments() -> List[Dict[str, Any]]:
        return get_client().odata_values('SalariesList', message='Failed to fetch salary payments')

    @staticmethod
    def bank_accounts() -> List[Dict[str, Any]]:
        return get_client().odata_values(
            'Bank_Account_Card_Excel',
            params={'$select': 'No,Name,Currency_Code'},
            message='Failed to fetch bank accounts',
        )

    @staticmethod
    def vendor_cards() -> List[Dict[str, Any]]:
        return get_client().odata_values(
            'Vendor_Card_Excel',
            params={'$select': 'No,Name,Currency_Code'},
            message='Failed to fetch vendor cards',
        )

    @staticmethod
    def journal_batches(template_name: Optional[str] = None) -> List[Dict[str, Any]]:
        return get_client().odata_values(
            'Gen_Journal_Batch',
            params={'$filter': f"Journal_Template_Name eq '{template_name or 'PAYMENT'}'"},
            message='Failed to fetch journal batches',
        )

    @staticmethod
    def posted_sales_invoices(params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Posted sales invoices, each with the description of its first
        general ledger entry. OData $top, $skip, $filter and $select are
        passed through.
        """
        client = get_client()
        odata_params = {
            key: value for key, value in (params or {}).items()
            if key in ('$top', '$skip', '$filter', '$select') and value
        }
        body = client.odata('postedsalesinvoices', params=odata_params, message='Failed to fetch posted sales invoices')

        invoices = []
        for invoice in body.get('value') or []:
            description = ''
            try:
                gl_entries = client.odata_values('General_Ledger_Entries_Excel', params={
                    '$filter': f"Document_No eq '{invoice.get('No')}'",
                    '$select': 'Description',
                    '$top': 1,
                })
                if gl_entries:
                    description = gl_entries[0].get('Description') or ''
            except BusinessCentralException as e:
                logger.warning(f"No GL description for invoice {invoice.get('No')}: {e.message}")
            invoices.append({**invoice, 'Description': description})

        return {'invoices': invoices, 'count': len(invoices), 'odata_context': body.get('@odata.context')}

    # -------------------------------------------------------------------------
    # Journal lines
    # -------------------------------------------------------------------------

    @staticmethod
    def payment_journal_line(data: Mapping[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
        """
        Pay a purchase invoice: vendor debit plus bank credit in PAYMENT.

        The invoice reference becomes the external document number and the
        payment reference the document number.
        """
        vendor_no = data.get('vendor_no')
        bank_account_no = data.get('bank_account_no')
        if not (vendor_no and data.get('amount') and bank_account_no):
            raise ValidationException("vendor_no, amount and bank_account_no are required")

        amount = _amount(data['amount'])
        reference = data.get('invoice_reference') or ''
        description = f"Payment for {data.get('vendor_name') or vendor_no}{' ' + reference if reference else ''}"
        document_no = data.get('payment_reference') or ''

        client = get_client()
        journal_id = client.journal_id(*PAYMENT_JOURNAL)
        vendor_line = client.create_journal_line(journal_id, journal_line(
            'Vendor', vendor_no, amount, description, document_no, reference))
        bank_line = client.create_journal_line(journal_id, journal_line(
            'Bank Account', bank_account_no, -amount, description, document_no, reference))

        StaloLogger.log_journal_posted(PAYMENT_JOURNAL[0], 2, 0, actor)
        return {
            'success': True,
            'message': 'Payment journal lines created successfully (Vendor debit + Bank credit)',
            'vendor_line_id': vendor_line.get('id'),
            'bank_line_id': bank_line.get('id'),
            'payment_url': journal_url(PAYMENT_JOURNAL[0]),
        }

    @staticmethod
    def customer_payment_journal_line(data: Mapping[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
        """Receive a customer payment: customer credit plus bank debit in CASHRECPT."""
        customer_no = data.get('customer_no')
        bank_account_no = data.get('bank_account_no')
        if not (customer_no and data.get('amount') and bank_account_no):
            raise ValidationException("customer_no, amount and bank_account_no are required")

        amount = _amount(data['amount'])
        invoice_no = data.get('invoice_no') or ''
        document_no = invoice_no or data.get('document_no') or ''
        description = data.get('description') or f"Receipt from {data.get('customer_name') or customer_no}"

        client = get_client()
        journal_id = client.journal_id(*CASH_RECEIPT_JOURNAL)
        customer_line = client.create_journal_line(journal_id, journal_line(
            'Customer', customer_no, -amount, description, document_no, invoice_no))
        bank_line = client.create_journal_line(journal_id, journal_line(
            'Bank Account', bank_account_no, amount, description, document_no, invoice_no))

        StaloLogger.log_journal_posted(CASH_RECEIPT_JOURNAL[0], 2, 0, actor)
        return {
            'success': True,
            'message': 'Customer payment journal lines created successfully (Customer credit + Bank debit)',
            'customer_line_id': customer_line.get('id'),
            'bank_line_id': bank_line.get('id'),
            'payment_url': journal_url(CASH_RECEIPT_JOURNAL[0]),
        }

    @staticmethod
    def salary_payment_journal_lines(data: Mapping[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
        """
        Pay salaries: for each employee a vendor debit and a bank credit in
        PAYMENT. A failing employee is reported and the rest still post.
        """
        bank_account_no = data.get('bank_account_no')
        payroll_month = data.get('payroll_month')
        employees = data.get('employees') or []
        if not (bank_account_no and payroll_month and employees):
            raise ValidationException("bank_account_no, payroll_month and at least one employee are required")

        client = get_client()
        journal_id = client.journal_id(*PAYMENT_JOURNAL)

        results: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        for employee in employees:
            vendor_no = employee.get('vendor_no')
            vendor_name = employee.get('vendor_name')
            if not (vendor_no and employee.get('amount')):
                errors.append({'vendor_no': vendor_no, 'error': 'Missing vendor_no or amount'})
                continue

            description = f"Salary for {vendor_name or vendor_no} {payroll_month}"
            document_no = employee.get('payment_reference') or ''
            try:
                amount = _amount(employee['amount'])
                vendor_line = client.create_journal_line(journal_id, journal_line(
                    'Vendor', vendor_no, amount, description, document_no, payroll_month))
                bank_line = client.create_journal_line(journal_id, journal_line(
                    'Bank Account', bank_account_no, -amount, description, document_no, payroll_month))
            except (BusinessCentralException, ValidationException) as e:
                logger.error(f"Salary journal lines failed for {vendor_name or vendor_no}: {e.message}")
                errors.append({'vendor_no': vendor_no, 'vendor_name': vendor_name, 'error': e.message})
                continue

            results.append({
                'vendor_no': vendor_no,
                'vendor_name': vendor_name,
                'amount': amount,
                'vendor_line_id': vendor_line.get('id'),
                'bank_line_id': bank_line.get('id'),
                'success': True,
            })

        StaloLogger.log_journal_posted(PAYMENT_JOURNAL[0], len(results) * 2, len(errors), actor)
        if errors:
            message = f"Created journal lines for {len(results)} employees, {len(errors)} failed"
        else:
            message = f"Successfully created journal lines for {len(results)} employees"
        return {
            'success': not errors,
            'message': message,
            'results': results,
            'errors': errors,
            'payment_url': journal_url(PAYMENT_JOURNAL[0]),
        }
