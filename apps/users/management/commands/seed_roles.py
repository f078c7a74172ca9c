"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Management command to make sure the super admin exists
             and to normalize legacy role spellings
             (e.g. 'Budget Manager' -> 'BudgetManager').
-------------------------------------------------------------------------
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.users.models import RoleCode, SystemUser
from apps.users.permissions import clear_role_cache


# Spellings found in older user lists
LEGACY_ROLE_NAMES = {
    'Budget Manager': RoleCode.BUDGET_MANAGER,
    'budget manager': RoleCode.BUDGET_MANAGER,
    'Administrator': RoleCode.ADMIN,
    'admin': RoleCode.ADMIN,
    'editor': RoleCode.EDITOR,
    'viewer': RoleCode.VIEWER,
}


class Command(BaseCommand):
    help = 'Ensures the super admin system user exists and normalizes legacy role names'

    def add_arguments(self, parser):
        parser.add_argument('--name', type=str, default='Super Admin', help='Display name for a newly created super admin')
        parser.add_argument('--dry-run', action='store_true', help='Report changes without saving them')

    def handle(self, *args, **options):
        email = (settings.SUPER_ADMIN_EMAIL or '').strip().lower()
        if not email:
            raise CommandError('SUPER_ADMIN_EMAIL is not configured.')

        dry_run = options['dry_run']
        self.stdout.write('Seeding system roles...')

        with transaction.atomic():
            normalized = 0
            for legacy, role in LEGACY_ROLE_NAMES.items():
                users = SystemUser.objects.filter(role=legacy)
                count = users.count()
                if count:
                    self.stdout.write(f'  {legacy!r} -> {role}: {count} user(s)')
                    if not dry_run:
                        users.update(role=role)
                    normalized += count

            admin = SystemUser.objects.by_email(email).first()
            if admin is None:
                self.stdout.write(self.style.SUCCESS(f'  Created super admin: {email}'))
                if not dry_run:
                    SystemUser.objects.create(
                        name=options['name'],
                        email_address=email,
                        role=RoleCode.ADMIN,
                        active=True,
                    )
            elif admin.role != RoleCode.ADMIN or not admin.active:
                self.stdout.write(self.style.WARNING(f'  Restored Admin role for: {email}'))
                if not dry_run:
                    admin.role = RoleCode.ADMIN
                    admin.active = True
                    admin.save()

            if dry_run:
                transaction.set_rollback(True)

        clear_role_cache()
        suffix = ' (dry run, nothing saved)' if dry_run else ''
        self.stdout.write(self.style.SUCCESS(f'\nDone! Normalized: {normalized}{suffix}'))
