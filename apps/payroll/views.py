"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for the payroll allocation grid, record locking,
             Excel export/import and the journal download.
-------------------------------------------------------------------------
"""
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.core.excel import build_workbook, csv_response, open_worksheet, sheet_rows, workbook_response
from apps.core.logging import StaloLogger
from apps.core.utils import month_label, parse_bool, parse_month
from apps.payroll import calculations
from apps.payroll.serializers import (
    PayrollAllocationSerializer,
    PayrollProjectSerializer,
    PayrollRecordSerializer,
    PayrollResourceSerializer,
)
from apps.payroll.services import PayrollService
from apps.users.permissions import IsEditor, ViewerReadEditorWrite, request_email


def _month(request):
    return parse_month(request.query_params.get('month'))


@api_view(['GET'])
def payroll_projects(request):
    """Projects running in the month"""
    projects = PayrollService.projects_for_month(_month(request))
    return Response(PayrollProjectSerializer(projects, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def payroll_grid(request):
    """
    GET: resources on payroll for the month.
    POST: create or update the record for (resource_id, month).
    """
    if request.method == 'GET':
        month = _month(request)
        resources = PayrollService.payroll_resources(month)
        return Response(PayrollResourceSerializer(resources, many=True, context={'month': month}).data)

    record, created = PayrollService.upsert(request.data, request_email(request))
    return Response(
        PayrollRecordSerializer(record).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['GET'])
def payroll_records(request):
    """Saved payroll records for the month"""
    records = PayrollService.records(_month(request))
    return Response(PayrollRecordSerializer(records, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsEditor])
def payroll_lock(request):
    """Lock or unlock records by id"""
    locked = request.data.get('locked')
    count = PayrollService.lock(request.data.get('record_ids'), locked, request_email(request))
    return Response({'success': True, 'updated_count': count, 'locked': locked})


@api_view(['PATCH'])
@permission_classes([IsEditor])
def payroll_lock_month(request):
    """Lock or unlock every record of a month"""
    locked = request.data.get('locked')
    month, count = PayrollService.lock_month(request.data.get('month'), locked, request_email(request))
    return Response({'success': True, 'updated_count': count, 'month': month.isoformat(), 'locked': locked})


@api_view(['GET'])
def payroll_allocations(request):
    """Allocations of the month with task ids"""
    allocations = PayrollService.month_allocations(_month(request))
    return Response(PayrollAllocationSerializer(allocations, many=True).data)


@api_view(['GET'])
def payroll_percentages(request):
    """Project allocations as percentages per resource plus entity averages"""
    return Response(PayrollService.percentages(_month(request)))


@api_view(['GET'])
def payroll_export(request):
    """Payroll grid of the month as an Excel workbook"""
    month = _month(request)
    headers, rows = PayrollService.export_table(month)
    wb = build_workbook(f"Payroll {month_label(month)}", headers, rows)
    return workbook_response(wb, f"Payroll_Allocation_{month:%Y-%m}.xlsx")


@api_view(['POST'])
@permission_classes([IsEditor])
@parser_classes([MultiPartParser, FormParser])
def payroll_import(request):
    """Apply an exported payroll workbook to the month's records"""
    month = _month(request)
    rows = sheet_rows(open_worksheet(request.FILES.get('file')))
    actor = request_email(request)
    created, updated, errors = PayrollService.import_rows(month, rows, actor)
    StaloLogger.log_import('Payroll', created, updated, errors, actor)
    return Response({
        'created': created,
        'updated': updated,
        'error_count': len(errors),
        'errors': errors,
    })


@api_view(['GET'])
def payroll_journal(request):
    """Journal rows for the month as CSV (or JSON with ?json=true)"""
    month = _month(request)
    rows = PayrollService.journal(month)
    if parse_bool(request.query_params.get('json', False)):
        return Response({'month': month.isoformat(), 'count': len(rows), 'rows': rows})
    headers, values = calculations.journal_table(rows)
    return csv_response(f"Payroll_Journal_{month:%Y-%m}.csv", headers, values)
