"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for projects, positions and allocations.
-------------------------------------------------------------------------
"""
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.core.excel import csv_response, read_csv_upload
from apps.core.exceptions import NotFoundException
from apps.core.logging import StaloLogger
from apps.core.utils import month_label, parse_month
from apps.projects.models import Allocation, Position, Project
from apps.projects.serializers import (
    AllocationSerializer,
    AllocationUpdateSerializer,
    PositionSerializer,
    ProjectSerializer,
)
from apps.projects.services import (
    POSITION_GRID_HEADERS,
    AllocationService,
    PositionService,
    get_project,
)
from apps.users.permissions import IsEditor, ViewerReadEditorWrite, request_email


def _get_position(pk) -> Position:
    position = Position.objects.select_related('project').filter(pk=pk).first()
    if position is None:
        raise NotFoundException("Position not found")
    return position


def _get_allocation(pk) -> Allocation:
    allocation = (
        Allocation.objects.select_related('project', 'position', 'resource')
        .filter(pk=pk).first()
    )
    if allocation is None:
        raise NotFoundException("Allocation not found")
    return allocation


# =============================================================================
# Projects
# =============================================================================

@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def project_list_create(request):
    """List projects or create one"""
    if request.method == 'GET':
        projects = Project.objects.select_related('budget_manager').order_by('name')
        return Response(ProjectSerializer(projects, many=True).data)

    serializer = ProjectSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    project = serializer.save()
    return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadEditorWrite])
def project_detail(request, pk):
    """Retrieve, update (provided fields only) or delete a project"""
    project = get_project(pk)

    if request.method == 'GET':
        return Response(ProjectSerializer(project).data)

    if request.method == 'DELETE':
        project.delete()
        return Response({'success': True})

    serializer = ProjectSerializer(project, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(ProjectSerializer(serializer.save()).data)


@api_view(['GET'])
def project_positions(request, pk):
    """All positions of a project"""
    project = get_project(pk)
    positions = project.positions.select_related('project').order_by('month_year', 'position_name')
    return Response(PositionSerializer(positions, many=True).data)


# =============================================================================
# Positions
# =============================================================================

@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def position_list_create(request):
    """List positions (filter by project and month) or create one"""
    if request.method == 'GET':
        positions = Position.objects.select_related('project')
        project_id = request.query_params.get('project')
        if project_id:
            positions = positions.filter(project_id=project_id)
        month = request.query_params.get('month')
        if month:
            positions = positions.filter(month_year=parse_month(month))
        return Response(PositionSerializer(positions, many=True).data)

    serializer = PositionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    position = serializer.save()
    return Response(PositionSerializer(position).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadEditorWrite])
def position_detail(request, pk):
    """Retrieve, update (provided fields only) or delete a position"""
    position = _get_position(pk)

    if request.method == 'GET':
        return Response(PositionSerializer(position).data)

    if request.method == 'DELETE':
        position.delete()
        return Response({'success': True})

    serializer = PositionSerializer(position, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(PositionSerializer(serializer.save()).data)


@api_view(['GET'])
def position_export(request):
    """Positions as a CSV grid: one row per position, one column per month"""
    year = request.query_params.get('year')
    months = PositionService.grid_months(int(year) if year and year.isdigit() else None)
    positions = Position.objects.select_related('project').order_by('project__name', 'task_id', 'position_name')
    headers = POSITION_GRID_HEADERS + [month_label(m) for m in months]
    filename = f"positions_table_{timezone.localdate():%Y-%m-%d}.csv"
    return csv_response(filename, headers, PositionService.grid_rows(positions, months))


@api_view(['POST'])
@permission_classes([IsEditor])
@parser_classes([MultiPartParser, FormParser])
def position_import(request):
    """Create positions from an uploaded CSV grid"""
    rows = read_csv_upload(request.FILES.get('file'))
    created, errors = PositionService.import_grid(rows)
    StaloLogger.log_import('Position', created, 0, errors, request_email(request))
    return Response({'created': created, 'error_count': len(errors), 'errors': errors})


# =============================================================================
# Allocations
# =============================================================================

@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def allocation_list_create(request):
    """List allocations (filter by month) or allocate a resource by names"""
    if request.method == 'GET':
        allocations = Allocation.objects.select_related('project', 'position', 'resource')
        month = request.query_params.get('month')
        if month:
            allocations = allocations.filter(month_year=parse_month(month))
        return Response(AllocationSerializer(allocations, many=True).data)

    allocation = AllocationService.create(request.data, request_email(request))
    return Response(AllocationSerializer(allocation).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadEditorWrite])
def allocation_detail(request, pk):
    """Retrieve, adjust or remove an allocation"""
    allocation = _get_allocation(pk)

    if request.method == 'GET':
        return Response(AllocationSerializer(allocation).data)

    if request.method == 'DELETE':
        AllocationService.delete(allocation, request_email(request))
        return Response({'success': True, 'message': 'Allocation deleted and position updated'})

    serializer = AllocationUpdateSerializer(allocation, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(AllocationSerializer(allocation).data)


@api_view(['GET'])
def allocation_summary(request):
    """Per-project position and allocation counts for a month"""
    month = parse_month(request.query_params.get('month'))
    return Response(AllocationService.monthly_summary(month))
