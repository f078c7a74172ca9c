"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Business logic for system user management.
             Protects the super admin account and records every
             role change in the audit log.
-------------------------------------------------------------------------
"""
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction

from apps.core.exceptions import (
    ConflictException,
    SuperAdminProtectedException,
    ValidationException,
)
from apps.core.logging import StaloLogger
from apps.users.models import RoleAuditLog, RoleCode, SystemUser
from apps.users.permissions import clear_role_cache, is_super_admin


EDITABLE_FIELDS = ('name', 'email_address', 'start_date', 'end_date', 'active', 'role')


class SystemUserService:
    """Create, update and delete system users."""

    @staticmethod
    def _check_role(role: Optional[str]) -> None:
        if role is not None and role not in RoleCode.values:
            raise ValidationException(
                f"Invalid role: {role}",
                extra={'allowed_roles': list(RoleCode.values)},
            )

    @staticmethod
    @transaction.atomic
    def create(data: Dict[str, Any], changed_by: str) -> SystemUser:
        """
        Create a system user.

        Raises:
            ValidationException: Missing name/email or unknown role.
            ConflictException: Email already registered.
        """
        name = (data.get('name') or '').strip()
        email = (data.get('email_address') or '').strip().lower()
        if not name or not email:
            raise ValidationException("name and email_address are required")

        role = data.get('role') or RoleCode.VIEWER
        SystemUserService._check_role(role)
        if is_super_admin(email):
            role = RoleCode.ADMIN

        if SystemUser.objects.by_email(email).exists():
            raise ConflictException("A user with this email already exists")

        try:
            user = SystemUser.objects.create(
                name=name,
                email_address=email,
                start_date=data.get('start_date'),
                end_date=data.get('end_date'),
                active=data.get('active', True),
                role=role,
            )
        except IntegrityError:
            raise ConflictException("A user with this email already exists")

        clear_role_cache(email)
        return user

    @staticmethod
    @transaction.atomic
    def update(user: SystemUser, data: Dict[str, Any], changed_by: str) -> SystemUser:
        """
        Apply the provided fields to a system user.

        A role change is written to RoleAuditLog and the role cache
        for the old and new email is dropped.

        Raises:
            SuperAdminProtectedException: Demoting or re-addressing the super admin.
            ConflictException: New email already registered.
        """
        old_email = user.email_address
        old_role = user.role

        new_role = data.get('role', old_role)
        SystemUserService._check_role(new_role)

        new_email = data.get('email_address')
        if new_email is not None:
            new_email = new_email.strip().lower()

        if is_super_admin(old_email):
            if new_role != RoleCode.ADMIN:
                raise SuperAdminProtectedException("Cannot change the super admin's role")
            if new_email is not None and new_email != old_email:
                raise SuperAdminProtectedException("Cannot change the super admin's email address")

        if new_email and new_email != old_email:
            if SystemUser.objects.by_email(new_email).exclude(pk=user.pk).exists():
                raise ConflictException("A user with this email already exists")

        for field in EDITABLE_FIELDS:
            if field in data:
                value = data[field]
                if field == 'email_address':
                    value = new_email
                setattr(user, field, value)
        user.save()

        if user.role != old_role:
            RoleAuditLog.objects.create(
                user=user,
                user_name=user.name,
                user_email=user.email_address,
                old_role=old_role,
                new_role=user.role,
                changed_by=changed_by,
            )
            StaloLogger.log_role_changed(user, old_role, user.role, changed_by)

        clear_role_cache(old_email)
        if user.email_address != old_email:
            clear_role_cache(user.email_address)
        return user

    @staticmethod
    @transaction.atomic
    def delete(user: SystemUser, deleted_by: str) -> None:
        """
        Remove a system user.

        Raises:
            SuperAdminProtectedException: Deleting the super admin.
        """
        if is_super_admin(user.email_address):
            raise SuperAdminProtectedException("Cannot delete the super admin account")

        email = user.email_address
        StaloLogger.log_system_user_deleted(user, deleted_by)
        user.delete()
        clear_role_cache(email)
