"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Core API views: health probe and development diagnostics.
-------------------------------------------------------------------------
"""
import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.http import Http404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


logger = logging.getLogger(__name__)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health(request):
    """Liveness probe for the load balancer."""
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def env_check(request):
    """Report which integration settings are present (development only)."""
    if not settings.DEBUG:
        raise Http404

    def present(name: str) -> str:
        return 'set' if getattr(settings, name, '') else 'missing'

    return Response({
        'debug': settings.DEBUG,
        'database_engine': settings.DATABASES['default']['ENGINE'],
        'azure_tenant_id': present('AZURE_TENANT_ID'),
        'azure_client_id': present('AZURE_CLIENT_ID'),
        'super_admin_email': present('SUPER_ADMIN_EMAIL'),
        'bc_tenant_id': present('BC_TENANT_ID'),
        'bc_client_id': present('BC_CLIENT_ID'),
        'bc_client_secret': present('BC_CLIENT_SECRET'),
        'bc_base_url': present('BC_BASE_URL'),
        'bc_company_name': present('BC_COMPANY_NAME'),
    })


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def db_test(request):
    """Round-trip a trivial query (development only)."""
    if not settings.DEBUG:
        raise Http404

    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error(f"Database connectivity check failed: {exc}")
        return Response(
            {'status': 'error', 'error': 'Database connection failed', 'details': str(exc)},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response({
        'status': 'ok',
        'vendor': connection.vendor,
        'timestamp': timezone.now().isoformat(),
    })
