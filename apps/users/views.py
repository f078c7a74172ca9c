"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for system user management, the role audit
             trail and the caller's own effective role.
-------------------------------------------------------------------------
"""
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.models import RoleAuditLog, SystemUser
from apps.users.permissions import IsAdmin, get_user_role, is_super_admin, request_email
from apps.users.serializers import RoleAuditLogSerializer, SystemUserSerializer
from apps.users.services import SystemUserService


def changed_by(request) -> str:
    """Actor for audit rows: X-User-Email header, else the caller's email."""
    return request.headers.get('X-User-Email') or request_email(request) or 'System'


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def system_user_list_create(request):
    """List all system users or create a new one"""
    if request.method == 'GET':
        users = SystemUser.objects.all().order_by('name')
        return Response(SystemUserSerializer(users, many=True).data)

    serializer = SystemUserSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = SystemUserService.create(serializer.validated_data, changed_by(request))
    return Response(SystemUserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdmin])
def system_user_detail(request, pk):
    """Retrieve, update or delete a system user"""
    user = get_object_or_404(SystemUser, pk=pk)

    if request.method == 'GET':
        return Response(SystemUserSerializer(user).data)

    if request.method == 'DELETE':
        SystemUserService.delete(user, changed_by(request))
        return Response({'success': True})

    serializer = SystemUserSerializer(user, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    user = SystemUserService.update(user, serializer.validated_data, changed_by(request))
    return Response(SystemUserSerializer(user).data)


@api_view(['GET'])
@permission_classes([IsAdmin])
def role_change_audit(request):
    """Role change history, newest first"""
    logs = RoleAuditLog.objects.all().order_by('-changed_at')
    return Response(RoleAuditLogSerializer(logs, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    """The caller's email and effective role (None when not granted access)"""
    email = request_email(request)
    user = SystemUser.objects.by_email(email).first()
    return Response({
        'email': email,
        'name': getattr(request.user, 'name', '') or (user.name if user else ''),
        'role': get_user_role(email),
        'is_super_admin': is_super_admin(email),
        'system_user': SystemUserSerializer(user).data if user else None,
    })
