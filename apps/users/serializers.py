"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializers for system users and the role audit log.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.users.models import RoleAuditLog, SystemUser


class SystemUserSerializer(serializers.ModelSerializer):
    """Read/write shape of a system user."""

    class Meta:
        model = SystemUser
        fields = [
            'id', 'name', 'email_address', 'start_date', 'end_date',
            'active', 'role', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            # uniqueness is enforced by the service so it can answer 409
            'email_address': {'validators': []},
        }


class RoleAuditLogSerializer(serializers.ModelSerializer):

    class Meta:
        model = RoleAuditLog
        fields = [
            'id', 'user', 'user_name', 'user_email', 'old_role',
            'new_role', 'changed_by', 'changed_at',
        ]
        read_only_fields = fields
