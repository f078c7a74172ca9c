"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Permission classes for role-based access control.
             Roles are hierarchical (Admin > BudgetManager > Editor >
             Viewer); an endpoint names the lowest role it accepts.
-------------------------------------------------------------------------
"""
import logging
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from rest_framework.permissions import SAFE_METHODS, BasePermission

from apps.core.exceptions import InsufficientPermissionsException, NoRoleAssignedException
from apps.users.models import RoleCode, SystemUser, role_level


logger = logging.getLogger(__name__)

ROLE_CACHE_PREFIX = 'stalo:role:'


def _cache_key(email: str) -> str:
    return f"{ROLE_CACHE_PREFIX}{email.strip().lower()}"


def is_super_admin(email: Optional[str]) -> bool:
    """True when email is the configured super admin (case-insensitive)."""
    super_admin = (settings.SUPER_ADMIN_EMAIL or '').strip().lower()
    return bool(email and super_admin and email.strip().lower() == super_admin)


def get_user_role(email: Optional[str]) -> Optional[str]:
    """
    Resolve the role for a directory email.

    The super admin is always Admin. Otherwise the role of the active
    system user with that email (case-insensitive), cached for
    ROLE_CACHE_TIMEOUT seconds. Returns None when no active user exists.
    """
    if not email:
        return None
    if is_super_admin(email):
        return RoleCode.ADMIN

    key = _cache_key(email)
    cached = cache.get(key)
    if cached is not None:
        return cached or None

    user = SystemUser.objects.active().by_email(email).only('role').first()
    role = user.role if user else None
    # Empty string caches the miss as well
    cache.set(key, role or '', settings.ROLE_CACHE_TIMEOUT)
    return role


def clear_role_cache(email: Optional[str] = None) -> None:
    """Drop cached roles for one email, or for everyone when email is None."""
    if email:
        cache.delete(_cache_key(email))
    else:
        keys = SystemUser.objects.values_list('email_address', flat=True)
        cache.delete_many([_cache_key(e) for e in keys])


def request_email(request) -> Optional[str]:
    """Email of the authenticated caller, if any."""
    user = getattr(request, 'user', None)
    return getattr(user, 'email', None)


class HasRole(BasePermission):
    """
    Base permission requiring at least `required_role`.

    Subclasses may set `write_role` to demand a higher role for
    non-safe methods.

    Raises:
        NoRoleAssignedException: Caller has no active system user.
        InsufficientPermissionsException: Caller's role is too low.
    """

    required_role: str = RoleCode.VIEWER
    write_role: Optional[str] = None

    def has_permission(self, request, view) -> bool:
        email = request_email(request)
        if not email:
            return False

        role = get_user_role(email)
        if not role:
            logger.warning(f"Access denied, no role assigned: {email} {request.method} {request.path}")
            raise NoRoleAssignedException(
                details='Your account has not been granted access. Contact an administrator.',
            )

        required = self.required_role
        if self.write_role and request.method not in SAFE_METHODS:
            required = self.write_role

        if role_level(role) < role_level(required):
            logger.warning(
                f"Access denied, insufficient role: {email} has {role}, "
                f"needs {required} for {request.method} {request.path}"
            )
            raise InsufficientPermissionsException(extra={
                'required': str(required),
                'current': str(role),
            })

        request.stalo_role = role
        return True


class IsViewer(HasRole):
    """Any active system user."""

    required_role = RoleCode.VIEWER


class IsEditor(HasRole):
    """Editors and above."""

    required_role = RoleCode.EDITOR


class IsBudgetManager(HasRole):
    """Budget managers and admins."""

    required_role = RoleCode.BUDGET_MANAGER


class IsAdmin(HasRole):
    """Admins only."""

    required_role = RoleCode.ADMIN


class ViewerReadEditorWrite(HasRole):
    """Viewers may read; writes need Editor."""

    required_role = RoleCode.VIEWER
    write_role = RoleCode.EDITOR


class ViewerReadBudgetManagerWrite(HasRole):
    """Viewers may read; writes need BudgetManager."""

    required_role = RoleCode.VIEWER
    write_role = RoleCode.BUDGET_MANAGER


class ViewerReadAdminWrite(HasRole):
    """Viewers may read; writes need Admin."""

    required_role = RoleCode.VIEWER
    write_role = RoleCode.ADMIN
