"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for budget versions, budget data and the glidepath.
-------------------------------------------------------------------------
"""
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.budgeting.serializers import BudgetDataSerializer, BudgetVersionSerializer
from apps.budgeting.services import BudgetService, get_version
from apps.core.excel import csv_response, read_csv_upload
from apps.core.exceptions import NotFoundException
from apps.core.utils import parse_bool, parse_month
from apps.erp.services import BusinessCentralService
from apps.users.permissions import IsBudgetManager, ViewerReadBudgetManagerWrite, request_email


def _modified_by(request):
    return request.data.get('modified_by') or request_email(request)


# =============================================================================
# Versions
# =============================================================================

@api_view(['POST'])
@permission_classes([ViewerReadBudgetManagerWrite])
def version_create(request):
    """Create a budget version for a job"""
    version = BudgetService.create_version(request.data)
    return Response(
        {'success': True, 'version': BudgetVersionSerializer(version).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadBudgetManagerWrite])
def version_detail(request, key):
    """
    GET: active versions of job `key`, newest first.
    PUT/PATCH/DELETE: update or soft delete version id `key`.
    """
    if request.method == 'GET':
        versions = BudgetService.versions_for_job(key)
        data = BudgetVersionSerializer(versions, many=True).data
        return Response({'success': True, 'versions': data, 'count': len(data)})

    if not str(key).isdigit():
        raise NotFoundException("Budget version not found")
    version = get_version(int(key))

    if request.method == 'DELETE':
        BudgetService.delete_version(version)
        return Response({'success': True, 'message': 'Version deleted successfully'})

    data = dict(request.data.items())
    data['modified_by'] = _modified_by(request)
    version = BudgetService.update_version(version, data)
    return Response({'success': True, 'version': BudgetVersionSerializer(version).data})


# =============================================================================
# Budget data
# =============================================================================

@api_view(['GET', 'POST', 'PUT'])
@permission_classes([ViewerReadBudgetManagerWrite])
def version_data(request, pk):
    """
    GET: the version's cells ordered by task and month.
    POST: replace every cell with `budget_data`.
    PUT: create or update the cells in `updates`.
    """
    version = get_version(pk)

    if request.method == 'GET':
        data = BudgetDataSerializer(BudgetService.data(version), many=True).data
        return Response({'success': True, 'budget_data': data, 'count': len(data)})

    if request.method == 'POST':
        count = BudgetService.replace_data(version, request.data.get('budget_data'), _modified_by(request))
        return Response({'success': True, 'message': 'Budget data saved successfully', 'records_inserted': count})

    count = BudgetService.upsert_cells(version, request.data.get('updates'), _modified_by(request))
    return Response({'success': True, 'message': 'Budget data updated successfully', 'records_updated': count})


@api_view(['POST'])
@permission_classes([IsBudgetManager])
def version_data_copy(request, pk):
    """Copy another version's cells into this version"""
    version = get_version(pk)
    count = BudgetService.copy_data(version, request.data.get('source_version_id'), _modified_by(request))
    return Response({'success': True, 'message': 'Budget data copied successfully', 'records_copied': count})


# =============================================================================
# Glidepath
# =============================================================================

@api_view(['GET'])
def glidepath(request, pk):
    """
    Month-by-task grid with parent totals.

    `start` and `end` bound the months; `bc_tasks=true` takes the task
    hierarchy from Business Central instead of deriving it.
    """
    version = get_version(pk)
    start = request.query_params.get('start')
    end = request.query_params.get('end')

    task_lines = None
    if parse_bool(request.query_params.get('bc_tasks', False)):
        task_lines = BusinessCentralService.job_task_lines(version.job_no)

    grid = BudgetService.glidepath(
        version,
        start=parse_month(start, 'start') if start else None,
        end=parse_month(end, 'end') if end else None,
        task_lines=task_lines,
    )
    return Response(grid)


@api_view(['GET'])
def glidepath_export(request, pk):
    """Download the glidepath as CSV"""
    version = get_version(pk)
    export = BudgetService.glidepath_export_rows(version)
    filename = f"glidepath_{version.job_no}_{timezone.now():%Y-%m-%d}.csv"
    return csv_response(filename, export['headers'], export['rows'])


@api_view(['POST'])
@permission_classes([IsBudgetManager])
@parser_classes([MultiPartParser, FormParser])
def glidepath_import(request, pk):
    """Upload a glidepath CSV into the version"""
    version = get_version(pk)
    rows = read_csv_upload(request.FILES.get('file'))
    count = BudgetService.import_glidepath(version, rows, _modified_by(request))
    return Response({'success': True, 'message': 'Glidepath uploaded successfully', 'records_updated': count})
