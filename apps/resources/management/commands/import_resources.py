"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Management command to load resources from the Excel
             sheet produced by the Resources export (upsert by name).
-------------------------------------------------------------------------
"""
import pandas as pd
from django.core.management.base import BaseCommand, CommandError

from apps.core.logging import StaloLogger
from apps.resources.services import RESOURCE_IMPORT_REQUIRED, ResourceService


class Command(BaseCommand):
    help = 'Import resources from an Excel workbook (Name, Type, Entity, Start Date, Work Days, Department, ...)'

    def add_arguments(self, parser):
        parser.add_argument('file_path', type=str, help='Path to the Excel file')
        parser.add_argument('--sheet', type=str, default=0, help='Sheet name (defaults to the first sheet)')
        parser.add_argument('--dry-run', action='store_true', help='Validate rows without saving them')

    def handle(self, *args, **options):
        file_path = options['file_path']
        dry_run = options['dry_run']

        self.stdout.write(f"Reading {file_path}...")
        try:
            df = pd.read_excel(file_path, sheet_name=options['sheet'], engine='openpyxl')
        except (OSError, ValueError) as exc:
            raise CommandError(f"Could not read workbook: {exc}")

        df.columns = [str(c).strip() for c in df.columns]
        missing = [c for c in RESOURCE_IMPORT_REQUIRED if c not in df.columns]
        if missing:
            raise CommandError(f"Missing required columns: {', '.join(missing)}")

        # Blank rows are dropped and NaN cells become empty values; the
        # index keeps each row's place in the sheet (header is row 1)
        df = df.dropna(how='all')
        df = df.astype(object).where(pd.notna(df), None)
        records = df.to_dict(orient='records')
        row_numbers = [index + 2 for index in df.index]

        created, updated, errors = ResourceService.import_rows(records, dry_run=dry_run, row_numbers=row_numbers)

        for error in errors:
            self.stdout.write(self.style.WARNING(f"  Row {error['row']} ({error['name']}): {error['error']}"))

        if not dry_run:
            StaloLogger.log_import('Resource', created, updated, errors, 'manage.py')

        prefix = '[DRY RUN] ' if dry_run else ''
        self.stdout.write(self.style.SUCCESS(
            f"{prefix}{created} created, {updated} updated, {len(errors)} error(s)"
        ))
