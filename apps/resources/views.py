"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for entities and resources, including the
             Excel download and upload of the resource list.
-------------------------------------------------------------------------
"""
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response

from apps.core.excel import build_workbook, open_worksheet, sheet_records, workbook_response
from apps.core.exceptions import NotFoundException
from apps.core.logging import StaloLogger
from apps.resources.models import Entity, Resource
from apps.resources.serializers import EntitySerializer, ResourceSerializer
from apps.resources.services import (
    RESOURCE_EXPORT_HEADERS,
    RESOURCE_IMPORT_REQUIRED,
    EntityService,
    ResourceService,
)
from apps.users.permissions import (
    IsEditor,
    ViewerReadAdminWrite,
    ViewerReadEditorWrite,
    request_email,
)


def _get_resource(pk) -> Resource:
    resource = Resource.objects.select_related('entity').filter(pk=pk).first()
    if resource is None:
        raise NotFoundException("Resource not found")
    return resource


# =============================================================================
# Entities
# =============================================================================

@api_view(['GET', 'POST'])
@permission_classes([ViewerReadAdminWrite])
def entity_list_create(request):
    """List entities or create one"""
    if request.method == 'GET':
        return Response(EntitySerializer(Entity.objects.order_by('name'), many=True).data)

    serializer = EntitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    entity = serializer.save()
    return Response(EntitySerializer(entity).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadAdminWrite])
def entity_detail(request, pk):
    """Retrieve, update or delete an entity"""
    entity = get_object_or_404(Entity, pk=pk)

    if request.method == 'GET':
        return Response(EntitySerializer(entity).data)

    if request.method == 'DELETE':
        EntityService.delete(entity)
        return Response({'success': True})

    serializer = EntitySerializer(entity, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(EntitySerializer(serializer.save()).data)


# =============================================================================
# Resources
# =============================================================================

@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def resource_list_create(request):
    """List resources (optionally by type) or create one"""
    if request.method == 'GET':
        resources = Resource.objects.select_related('entity').order_by('name')
        resource_type = request.query_params.get('type')
        if resource_type:
            resources = resources.filter(resource_type=resource_type)
        return Response(ResourceSerializer(resources, many=True).data)

    serializer = ResourceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    resource = serializer.save()
    return Response(ResourceSerializer(resource).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadEditorWrite])
def resource_detail(request, pk):
    """Retrieve, update (provided fields only) or delete a resource"""
    resource = _get_resource(pk)

    if request.method == 'GET':
        return Response(ResourceSerializer(resource).data)

    if request.method == 'DELETE':
        ResourceService.delete(resource)
        return Response({'success': True})

    serializer = ResourceSerializer(resource, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(ResourceSerializer(serializer.save()).data)


@api_view(['GET'])
def resource_export(request):
    """Download all resources as an Excel workbook"""
    resources = Resource.objects.select_related('entity').order_by('name')
    wb = build_workbook('Resources', RESOURCE_EXPORT_HEADERS, ResourceService.export_rows(resources))
    filename = f"resources_{timezone.localdate():%Y-%m-%d}.xlsx"
    return workbook_response(wb, filename)


@api_view(['POST'])
@permission_classes([IsEditor])
@parser_classes([MultiPartParser, FormParser])
def resource_import(request):
    """Upload resources from an Excel workbook (upsert by name)"""
    ws = open_worksheet(request.FILES.get('file'))
    numbered = sheet_records(ws, RESOURCE_IMPORT_REQUIRED)
    created, updated, errors = ResourceService.import_rows(
        [record for _, record in numbered], row_numbers=[row_num for row_num, _ in numbered]
    )
    StaloLogger.log_import('Resource', created, updated, errors, request_email(request))
    return Response({
        'success_count': created + updated,
        'created': created,
        'updated': updated,
        'error_count': len(errors),
        'errors': errors,
    })
