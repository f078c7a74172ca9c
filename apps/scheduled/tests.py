"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for scheduled records and their depreciation.
-------------------------------------------------------------------------
"""
from datetime import date
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework.test import APIClient

from apps.scheduled import depreciation
from apps.scheduled.models import ScheduledRecord, ScheduledType
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


CENT = Decimal('0.01')


def make_record(**kwargs) -> ScheduledRecord:
    fields = {
        'type': ScheduledType.FIXED_ASSET,
        'purchase_date': date(2025, 1, 16),
        'supplier': 'Laptop Supplies Ltd',
        'description': 'Laptop',
        'usd_value': Decimal('1200.00'),
        'useful_months': 12,
    }
    fields.update(kwargs)
    return ScheduledRecord(**fields)


class DepreciationTests(TestCase):
    """Tests for the 30 day month write-off rules."""

    def test_first_month_is_prorated(self) -> None:
        """Test that a purchase on the 16th writes off 15 days in its first month."""
        record = make_record()

        self.assertEqual(depreciation.first_month_days(record.purchase_date), 15)
        self.assertEqual(depreciation.month_depreciation(record, date(2025, 1, 1)).quantize(CENT), Decimal('50.00'))
        self.assertEqual(depreciation.month_depreciation(record, date(2025, 2, 1)).quantize(CENT), Decimal('100.00'))

    def test_nothing_before_purchase_or_after_useful_life(self) -> None:
        """Test the zero months around the useful life."""
        record = make_record()

        self.assertEqual(depreciation.month_depreciation(record, date(2024, 12, 1)), Decimal('0'))
        self.assertEqual(depreciation.month_depreciation(record, date(2026, 1, 1)).quantize(CENT), Decimal('50.00'))
        self.assertEqual(depreciation.month_depreciation(record, date(2026, 2, 1)), Decimal('0'))

    def test_full_life_writes_off_full_value(self) -> None:
        """Test that the months of the useful life add up to the value."""
        record = make_record()

        result = depreciation.schedule([record], date(2025, 1, 1), 14)

        self.assertEqual(result['total'], Decimal('1200.00'))

    def test_disposed_asset_stops_on_disposal(self) -> None:
        """Test that a disposed fixed asset stops from its disposal date."""
        record = make_record(disposed=True, disposal_date=date(2025, 6, 15))

        self.assertGreater(depreciation.month_depreciation(record, date(2025, 6, 1)), 0)
        self.assertEqual(depreciation.month_depreciation(record, date(2025, 7, 1)), Decimal('0'))
        self.assertEqual(depreciation.balance(record, date(2025, 3, 1)), Decimal('0'))

    def test_disposed_prepaid_keeps_amortising(self) -> None:
        """Test that the disposal flag only applies to fixed assets."""
        record = make_record(type=ScheduledType.PREPAID, disposed=True, disposal_date=date(2025, 2, 1))

        self.assertEqual(depreciation.month_depreciation(record, date(2025, 3, 1)).quantize(CENT), Decimal('100.00'))

    def test_balance(self) -> None:
        """Test the value left at the end of a month."""
        record = make_record()

        self.assertEqual(depreciation.balance(record, date(2024, 12, 1)), Decimal('1200.00'))
        self.assertEqual(depreciation.balance(record, date(2025, 1, 1)).quantize(CENT), Decimal('1150.00'))
        self.assertEqual(depreciation.balance(record, date(2027, 1, 1)).quantize(CENT), Decimal('0.00'))

    def test_schedule_totals(self) -> None:
        """Test month totals and balances of a schedule."""
        records = [make_record(), make_record(description='Desk', usd_value=Decimal('600.00'), useful_months=6,
                                              purchase_date=date(2025, 2, 1))]

        result = depreciation.schedule(records, date(2025, 1, 1), 3)

        self.assertEqual(result['months'], ['Jan 2025', 'Feb 2025', 'Mar 2025'])
        self.assertEqual(result['month_totals']['Jan 2025'], Decimal('50.00'))
        self.assertEqual(result['month_totals']['Feb 2025'], Decimal('200.00'))
        self.assertEqual(result['records'][0]['monthly_cost'], Decimal('100.00'))
        self.assertEqual(result['records'][1]['balance'], Decimal('600.00'))
        self.assertEqual(result['total'], Decimal('450.00'))


class ScheduledApiTests(TestCase):
    """Tests for the scheduled record endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Editor', email_address='editor@example.org', role=RoleCode.EDITOR)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='editor@example.org'))
        self.record = make_record()
        self.record.save()

    def test_list_and_filter_by_type(self) -> None:
        """Test listing records with a type filter."""
        make_record(type=ScheduledType.PREPAID, description='Insurance').save()

        everything = self.client.get('/api/scheduled-records/')
        prepaid = self.client.get('/api/scheduled-records/', {'type': 'Prepaid'})

        self.assertEqual(len(everything.json()), 2)
        self.assertEqual([r['description'] for r in prepaid.json()], ['Insurance'])

    def test_create_record(self) -> None:
        """Test creating a record."""
        response = self.client.post('/api/scheduled-records/', {
            'type': 'Prepaid',
            'purchase_date': '2025-03-01',
            'supplier': 'Insurer',
            'description': 'Annual cover',
            'usd_value': '2400.00',
            'useful_months': 12,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(ScheduledRecord.objects.count(), 2)

    def test_useful_months_must_be_positive(self) -> None:
        """Test that zero useful months is rejected."""
        response = self.client.post('/api/scheduled-records/', {
            'type': 'Prepaid',
            'purchase_date': '2025-03-01',
            'usd_value': '100.00',
            'useful_months': 0,
        }, format='json')

        self.assertEqual(response.status_code, 400)

    def test_viewer_cannot_create(self) -> None:
        """Test that writes need an Editor."""
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

        response = self.client.post('/api/scheduled-records/', {}, format='json')

        self.assertEqual(response.status_code, 403)

    def test_update_and_delete(self) -> None:
        """Test patching then deleting a record."""
        url = f'/api/scheduled-records/{self.record.pk}'

        patched = self.client.patch(url, {'disposed': True, 'disposal_date': '2025-05-01'}, format='json')
        deleted = self.client.delete(url)

        self.assertEqual(patched.status_code, 200)
        self.assertTrue(patched.json()['disposed'])
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_disposal_before_purchase_rejected(self) -> None:
        """Test that the disposal date cannot precede the purchase."""
        response = self.client.patch(
            f'/api/scheduled-records/{self.record.pk}', {'disposal_date': '2024-01-01'}, format='json'
        )

        self.assertEqual(response.status_code, 400)

    def test_schedule(self) -> None:
        """Test the schedule endpoint."""
        response = self.client.get('/api/scheduled-records/schedule', {'month': '2025-01-01', 'months': 2})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['months'], ['Jan 2025', 'Feb 2025'])
        self.assertEqual(len(response.json()['records']), 1)

    def test_schedule_months_out_of_range(self) -> None:
        """Test the bounds on the number of months."""
        self.assertEqual(self.client.get('/api/scheduled-records/schedule', {'months': 0}).status_code, 400)
        self.assertEqual(self.client.get('/api/scheduled-records/schedule', {'months': 121}).status_code, 400)
        self.assertEqual(self.client.get('/api/scheduled-records/schedule', {'months': 'x'}).status_code, 400)
