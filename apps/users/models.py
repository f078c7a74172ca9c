"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: System users with role-based access control (RBAC).
             Users sign in through Azure AD; this table maps their
             directory email to one of four hierarchical roles and
             keeps an audit trail of role changes.
-------------------------------------------------------------------------
"""
from typing import Optional

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.core.mixins import TimeStampedMixin


class RoleCode(models.TextChoices):
    """
    Roles in ascending order of privilege.

    The numeric level of each role lives in ROLE_HIERARCHY.
    """
    VIEWER = 'Viewer', _('Viewer')
    EDITOR = 'Editor', _('Editor')
    BUDGET_MANAGER = 'BudgetManager', _('Budget Manager')
    ADMIN = 'Admin', _('Admin')


ROLE_HIERARCHY = {
    RoleCode.ADMIN: 4,
    RoleCode.BUDGET_MANAGER: 3,
    RoleCode.EDITOR: 2,
    RoleCode.VIEWER: 1,
}


def role_level(role: Optional[str]) -> int:
    """Return the hierarchy level of a role code (0 for unknown/None)."""
    if not role:
        return 0
    return ROLE_HIERARCHY.get(role, 0)


class SystemUserQuerySet(models.QuerySet):
    """QuerySet helpers for system users."""

    def active(self) -> 'SystemUserQuerySet':
        return self.filter(active=True)

    def by_email(self, email: str) -> 'SystemUserQuerySet':
        return self.filter(email_address__iexact=(email or '').strip())


class SystemUser(TimeStampedMixin):
    """
    A person allowed to use Stalo.

    Attributes:
        name: Display name.
        email_address: Directory email (matched case-insensitively).
        start_date: Date access begins.
        end_date: Optional date access ends.
        active: Inactive users resolve to no role.
        role: One of RoleCode.
    """

    name = models.CharField(
        max_length=200,
        verbose_name=_('Name')
    )
    email_address = models.EmailField(
        max_length=254,
        unique=True,
        verbose_name=_('Email Address'),
        help_text=_('Azure AD sign-in email (preferred_username).')
    )
    start_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Start Date')
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('End Date')
    )
    active = models.BooleanField(
        default=True,
        verbose_name=_('Active')
    )
    role = models.CharField(
        max_length=20,
        choices=RoleCode.choices,
        default=RoleCode.VIEWER,
        verbose_name=_('Role')
    )

    objects = SystemUserQuerySet.as_manager()

    class Meta:
        verbose_name = _('System User')
        verbose_name_plural = _('System Users')
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} <{self.email_address}> ({self.role})"

    def save(self, *args, **kwargs) -> None:
        if self.email_address:
            self.email_address = self.email_address.strip().lower()
        super().save(*args, **kwargs)

    @property
    def level(self) -> int:
        return role_level(self.role)


class RoleAuditLog(models.Model):
    """
    One row per role change of a system user.

    The user's name and email are copied so the trail survives deletion.
    """

    user = models.ForeignKey(
        SystemUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='role_changes',
        verbose_name=_('User')
    )
    user_name = models.CharField(
        max_length=200,
        verbose_name=_('User Name')
    )
    user_email = models.CharField(
        max_length=254,
        verbose_name=_('User Email')
    )
    old_role = models.CharField(
        max_length=20,
        blank=True,
        verbose_name=_('Old Role')
    )
    new_role = models.CharField(
        max_length=20,
        verbose_name=_('New Role')
    )
    changed_by = models.CharField(
        max_length=254,
        verbose_name=_('Changed By')
    )
    changed_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        verbose_name=_('Changed At')
    )

    class Meta:
        verbose_name = _('Role Audit Log')
        verbose_name_plural = _('Role Audit Logs')
        ordering = ['-changed_at']

    def __str__(self) -> str:
        return f"{self.user_email}: {self.old_role} -> {self.new_role} by {self.changed_by}"
