"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for system users, roles and role-based access.
-------------------------------------------------------------------------
"""
import io

import jwt
from django.core.cache import cache
from django.core.management import call_command
from django.test import RequestFactory, TestCase, override_settings
from rest_framework import exceptions
from rest_framework.test import APIClient

from apps.core.exceptions import (
    ConflictException,
    InsufficientPermissionsException,
    NoRoleAssignedException,
    SuperAdminProtectedException,
    ValidationException,
)
from apps.users.authentication import AzureADAuthentication, AzureUser
from apps.users.models import RoleAuditLog, RoleCode, SystemUser, role_level
from apps.users.permissions import (
    IsBudgetManager,
    ViewerReadEditorWrite,
    get_user_role,
    is_super_admin,
)
from apps.users.services import SystemUserService


SUPER_ADMIN = 'owner@example.org'
SIGNING_KEY = 'stalo-test-signing-key-0123456789abcdef'


@override_settings(SUPER_ADMIN_EMAIL=SUPER_ADMIN)
class RoleResolutionTests(TestCase):
    """Tests for role levels and role lookup."""

    def setUp(self) -> None:
        cache.clear()

    def test_role_hierarchy(self) -> None:
        """Test the ordering of roles."""
        self.assertGreater(role_level(RoleCode.ADMIN), role_level(RoleCode.BUDGET_MANAGER))
        self.assertGreater(role_level(RoleCode.BUDGET_MANAGER), role_level(RoleCode.EDITOR))
        self.assertGreater(role_level(RoleCode.EDITOR), role_level(RoleCode.VIEWER))
        self.assertEqual(role_level(None), 0)
        self.assertEqual(role_level('Owner'), 0)

    def test_super_admin_is_always_admin(self) -> None:
        """Test that the super admin needs no system user row."""
        self.assertTrue(is_super_admin('Owner@Example.org '))
        self.assertEqual(get_user_role(SUPER_ADMIN), RoleCode.ADMIN)

    def test_role_lookup_is_case_insensitive(self) -> None:
        """Test that emails match regardless of case."""
        SystemUser.objects.create(name='Ed', email_address='Ed@Example.org', role=RoleCode.EDITOR)

        self.assertEqual(get_user_role('ED@example.ORG'), RoleCode.EDITOR)

    def test_inactive_user_has_no_role(self) -> None:
        """Test that inactive users resolve to no role."""
        SystemUser.objects.create(name='Gone', email_address='gone@example.org', active=False)

        self.assertIsNone(get_user_role('gone@example.org'))

    def test_saving_a_user_clears_the_cached_role(self) -> None:
        """Test that a role change is visible straight away."""
        user = SystemUser.objects.create(name='Vi', email_address='vi@example.org', role=RoleCode.VIEWER)
        self.assertEqual(get_user_role('vi@example.org'), RoleCode.VIEWER)

        user.role = RoleCode.EDITOR
        user.save()

        self.assertEqual(get_user_role('vi@example.org'), RoleCode.EDITOR)

    def test_role_is_cached(self) -> None:
        """Test that a second lookup does not hit the database."""
        SystemUser.objects.create(name='Vi', email_address='vi@example.org', role=RoleCode.VIEWER)

        with self.assertNumQueries(1):
            get_user_role('vi@example.org')
        with self.assertNumQueries(0):
            self.assertEqual(get_user_role('vi@example.org'), RoleCode.VIEWER)


class PermissionClassTests(TestCase):
    """Tests for the role permission classes."""

    def setUp(self) -> None:
        cache.clear()
        self.factory = RequestFactory()
        SystemUser.objects.create(name='Vi', email_address='vi@example.org', role=RoleCode.VIEWER)

    def _request(self, method: str, email: str):
        request = getattr(self.factory, method)('/api/anything')
        request.user = AzureUser(email=email)
        return request

    def test_viewer_may_read(self) -> None:
        """Test that a Viewer passes a read check."""
        self.assertTrue(ViewerReadEditorWrite().has_permission(self._request('get', 'vi@example.org'), None))

    def test_viewer_may_not_write(self) -> None:
        """Test that writes need the higher role."""
        with self.assertRaises(InsufficientPermissionsException) as ctx:
            ViewerReadEditorWrite().has_permission(self._request('post', 'vi@example.org'), None)

        self.assertEqual(ctx.exception.extra, {'required': 'Editor', 'current': 'Viewer'})

    def test_unknown_user_has_no_role(self) -> None:
        """Test the no-role error for callers without a system user."""
        with self.assertRaises(NoRoleAssignedException):
            IsBudgetManager().has_permission(self._request('get', 'stranger@example.org'), None)


@override_settings(SUPER_ADMIN_EMAIL=SUPER_ADMIN)
class SystemUserServiceTests(TestCase):
    """Tests for system user maintenance."""

    def setUp(self) -> None:
        cache.clear()
        self.user = SystemUserService.create(
            {'name': 'Bea', 'email_address': 'Bea@Example.org', 'role': RoleCode.VIEWER},
            'admin',
        )

    def test_create_normalizes_email(self) -> None:
        """Test that emails are stored lower case."""
        self.assertEqual(self.user.email_address, 'bea@example.org')

    def test_create_rejects_duplicates_and_bad_roles(self) -> None:
        """Test duplicate emails and unknown roles."""
        with self.assertRaises(ConflictException):
            SystemUserService.create({'name': 'B2', 'email_address': 'BEA@example.org'}, 'admin')
        with self.assertRaises(ValidationException):
            SystemUserService.create({'name': 'X', 'email_address': 'x@example.org', 'role': 'Owner'}, 'admin')

    def test_role_change_is_audited(self) -> None:
        """Test that a role change writes an audit row."""
        SystemUserService.update(self.user, {'role': RoleCode.EDITOR}, 'admin@example.org')

        log = RoleAuditLog.objects.get(user=self.user)
        self.assertEqual(log.old_role, RoleCode.VIEWER)
        self.assertEqual(log.new_role, RoleCode.EDITOR)
        self.assertEqual(log.changed_by, 'admin@example.org')

    def test_update_without_role_change_is_not_audited(self) -> None:
        """Test that other edits leave no audit row."""
        SystemUserService.update(self.user, {'name': 'Beatrice'}, 'admin')

        self.assertFalse(RoleAuditLog.objects.exists())

    def test_super_admin_is_protected(self) -> None:
        """Test that the super admin cannot be demoted, re-addressed or deleted."""
        owner = SystemUserService.create({'name': 'Owner', 'email_address': SUPER_ADMIN}, 'admin')
        self.assertEqual(owner.role, RoleCode.ADMIN)

        with self.assertRaises(SuperAdminProtectedException):
            SystemUserService.update(owner, {'role': RoleCode.VIEWER}, 'admin')
        with self.assertRaises(SuperAdminProtectedException):
            SystemUserService.update(owner, {'email_address': 'new@example.org'}, 'admin')
        with self.assertRaises(SuperAdminProtectedException):
            SystemUserService.delete(owner, 'admin')


@override_settings(AZURE_TENANT_ID='', ALLOWED_EMAIL_DOMAINS=['example.org'])
class AuthenticationTests(TestCase):
    """Tests for bearer token authentication."""

    def setUp(self) -> None:
        self.factory = RequestFactory()

    def _authenticate(self, header: str):
        request = self.factory.get('/api/projects/', HTTP_AUTHORIZATION=header)
        return AzureADAuthentication().authenticate(request)

    def test_claims_become_the_user(self) -> None:
        """Test that preferred_username is the caller's email."""
        token = jwt.encode({'preferred_username': 'Ana@Example.org', 'name': 'Ana'}, SIGNING_KEY, algorithm='HS256')

        user, _ = self._authenticate(f'Bearer {token}')

        self.assertEqual(user.email, 'ana@example.org')
        self.assertEqual(user.name, 'Ana')

    def test_bad_header_format(self) -> None:
        """Test a header without the Bearer keyword."""
        with self.assertRaises(exceptions.AuthenticationFailed):
            self._authenticate('Token abc')

    def test_malformed_token(self) -> None:
        """Test a token that does not decode."""
        with self.assertRaises(exceptions.AuthenticationFailed):
            self._authenticate('Bearer not.a.token')

    def test_disallowed_domain(self) -> None:
        """Test that other email domains are refused."""
        token = jwt.encode({'preferred_username': 'eve@elsewhere.com'}, SIGNING_KEY, algorithm='HS256')

        with self.assertRaises(exceptions.PermissionDenied):
            self._authenticate(f'Bearer {token}')


@override_settings(SUPER_ADMIN_EMAIL=SUPER_ADMIN)
class SystemUserApiTests(TestCase):
    """Tests for the system user endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Admin', email_address='admin@example.org', role=RoleCode.ADMIN)
        self.viewer = SystemUser.objects.create(name='Vi', email_address='vi@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='admin@example.org'))

    def test_list_and_create(self) -> None:
        """Test that admins list and add users."""
        created = self.client.post('/api/system-users/', {
            'name': 'New', 'email_address': 'new@example.org', 'role': 'Editor',
        }, format='json')
        listing = self.client.get('/api/system-users/')

        self.assertEqual(created.status_code, 201)
        self.assertEqual(len(listing.json()), 3)

    def test_duplicate_email_returns_409(self) -> None:
        """Test the conflict response for an existing email."""
        response = self.client.post('/api/system-users/', {
            'name': 'Dup', 'email_address': 'VI@example.org',
        }, format='json')

        self.assertEqual(response.status_code, 409)

    def test_role_change_audit_uses_header(self) -> None:
        """Test that X-User-Email names the actor in the audit log."""
        self.client.patch(
            f'/api/system-users/{self.viewer.pk}', {'role': 'Editor'},
            format='json', HTTP_X_USER_EMAIL='lead@example.org',
        )

        audit = self.client.get('/api/system-users/audit/role-changes')

        self.assertEqual(audit.json()[0]['changed_by'], 'lead@example.org')

    def test_non_admin_is_refused(self) -> None:
        """Test that system users are admin only."""
        self.client.force_authenticate(user=AzureUser(email='vi@example.org'))

        response = self.client.get('/api/system-users/')

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['code'], 'ERR_INSUFFICIENT_PERMISSIONS')

    def test_current_user(self) -> None:
        """Test the caller's own role, even without a system user."""
        self.client.force_authenticate(user=AzureUser(email='stranger@example.org'))

        response = self.client.get('/api/system-users/me')

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()['role'])
        self.assertIsNone(response.json()['system_user'])

    def test_delete_super_admin_refused(self) -> None:
        """Test the 403 when deleting the super admin."""
        owner = SystemUser.objects.create(name='Owner', email_address=SUPER_ADMIN, role=RoleCode.ADMIN)

        response = self.client.delete(f'/api/system-users/{owner.pk}')

        self.assertEqual(response.status_code, 403)
        self.assertTrue(SystemUser.objects.filter(pk=owner.pk).exists())



@override_settings(SUPER_ADMIN_EMAIL=SUPER_ADMIN)
class SeedRolesCommandTests(TestCase):
    """Tests for the seed_roles management command."""

    def test_creates_super_admin_and_normalizes_roles(self) -> None:
        """Test that legacy role names are fixed and the super admin added."""
        legacy = SystemUser.objects.create(name='Old', email_address='old@example.org', role='Budget Manager')

        call_command('seed_roles', stdout=io.StringIO())

        legacy.refresh_from_db()
        self.assertEqual(legacy.role, RoleCode.BUDGET_MANAGER)
        owner = SystemUser.objects.get(email_address=SUPER_ADMIN)
        self.assertEqual(owner.role, RoleCode.ADMIN)

    def test_dry_run_saves_nothing(self) -> None:
        """Test that --dry-run rolls back."""
        call_command('seed_roles', '--dry-run', stdout=io.StringIO())

        self.assertFalse(SystemUser.objects.exists())
