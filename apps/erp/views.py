"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views proxying Business Central for the browser.
             Upstream failures keep Business Central's status code.
-------------------------------------------------------------------------
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import ValidationException
from apps.core.utils import parse_bool, parse_date
from apps.erp.services import BusinessCentralService
from apps.users.permissions import IsEditor, request_email


def _show_all(request) -> bool:
    return parse_bool(request.query_params.get('show_all', False))


# =============================================================================
# Reads
# =============================================================================

@api_view(['GET'])
def bc_projects(request):
    return Response({'projects': BusinessCentralService.projects()})


@api_view(['GET'])
def bc_ledger_entries(request):
    """Project ledger entries with task hierarchy and budget per task"""
    params = request.query_params
    version_id = params.get('version_id')
    if version_id and not str(version_id).isdigit():
        raise ValidationException("version_id must be a number")

    return Response(BusinessCentralService.ledger_entries(
        params.get('project'),
        start_date=parse_date(params.get('start_date'), 'start_date'),
        end_date=parse_date(params.get('end_date'), 'end_date'),
        version_id=int(version_id) if version_id else None,
    ))


@api_view(['GET'])
def bc_project_cards(request):
    cards = BusinessCentralService.project_cards()
    return Response({'project_cards': cards, 'count': len(cards)})


@api_view(['GET'])
def bc_job_task_lines(request):
    lines = BusinessCentralService.job_task_lines(request.query_params.get('job_no'))
    return Response({'task_lines': lines, 'count': len(lines)})


@api_view(['GET'])
def bc_personnel_expenses(request):
    """Unpaid personnel expenses (all of them with show_all=true)"""
    expenses = BusinessCentralService.personnel_expenses(_show_all(request))
    return Response({'expenses': expenses, 'count': len(expenses)})


@api_view(['GET'])
def bc_prepayments(request):
    """Paid prepayments (all of them with show_all=true)"""
    prepayments = BusinessCentralService.prepayments(_show_all(request))
    return Response({'prepayments': prepayments, 'count': len(prepayments)})


@api_view(['GET'])
def bc_vendors(request):
    vendors = BusinessCentralService.vendors()
    return Response({'vendors': vendors, 'count': len(vendors)})


@api_view(['GET'])
def bc_purchase_invoices(request):
    invoices = BusinessCentralService.purchase_invoices()
    return Response({'invoices': invoices, 'count': len(invoices)})


@api_view(['GET'])
def bc_salary_payments(request):
    salaries = BusinessCentralService.salary_payments()
    return Response({'salaries': salaries, 'count': len(salaries)})


@api_view(['GET'])
def bc_bank_accounts(request):
    accounts = BusinessCentralService.bank_accounts()
    return Response({'bank_accounts': accounts, 'count': len(accounts)})


@api_view(['GET'])
def bc_vendor_cards(request):
    vendors = BusinessCentralService.vendor_cards()
    return Response({'vendors': vendors, 'count': len(vendors)})


@api_view(['GET'])
def bc_journal_batches(request):
    batches = BusinessCentralService.journal_batches(request.query_params.get('template_name'))
    return Response({'batches': batches})


@api_view(['GET'])
def bc_posted_sales_invoices(request):
    return Response(BusinessCentralService.posted_sales_invoices(request.query_params))


# =============================================================================
# Journal lines
# =============================================================================

@api_view(['POST'])
@permission_classes([IsEditor])
def bc_payment_journal_line(request):
    """Vendor payment: vendor debit and bank credit"""
    return Response(BusinessCentralService.payment_journal_line(request.data, request_email(request)))


@api_view(['POST'])
@permission_classes([IsEditor])
def bc_customer_payment_journal_line(request):
    """Customer receipt: customer credit and bank debit"""
    return Response(BusinessCentralService.customer_payment_journal_line(request.data, request_email(request)))


@api_view(['POST'])
@permission_classes([IsEditor])
def bc_salary_payment_journal_lines(request):
    """Salary payments: two lines per employee"""
    return Response(BusinessCentralService.salary_payment_journal_lines(request.data, request_email(request)))
