"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Unit tests for projects, positions, allocations and the
             positions CSV grid.
-------------------------------------------------------------------------
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from apps.core.exceptions import ValidationException
from apps.projects.models import Allocation, AllocationMode, Position, Project, YesNo
from apps.projects.services import AllocationService, PositionService
from apps.resources.models import Resource
from apps.users.authentication import AzureUser
from apps.users.models import RoleCode, SystemUser


class ProjectModelTests(TestCase):
    """Tests for project and position helpers on the models."""

    def test_active_in(self) -> None:
        """Test the month range filter, which skips undated projects."""
        Project.objects.create(name='Water', start_date=date(2025, 3, 15), end_date=date(2025, 6, 10))
        Project.objects.create(name='Open Ended')

        def names(month):
            return list(Project.objects.active_in(month).values_list('name', flat=True))

        self.assertEqual(names(date(2025, 3, 1)), ['Water'])
        self.assertEqual(names(date(2025, 6, 1)), ['Water'])
        self.assertEqual(names(date(2025, 7, 1)), [])
        self.assertEqual(names(date(2025, 2, 1)), [])

    def test_loe_percent(self) -> None:
        """Test that days are converted on a 20 day month."""
        project = Project.objects.create(name='Water')

        days = Position(project=project, position_name='Engineer', allocation_mode=AllocationMode.DAYS,
                        loe=Decimal('5'))
        percent = Position(project=project, position_name='Engineer', loe=Decimal('40'))

        self.assertEqual(days.loe_percent, Decimal('25'))
        self.assertEqual(percent.loe_percent, Decimal('40'))


class AllocationServiceTests(TestCase):
    """Tests for allocating resources by name."""

    def setUp(self) -> None:
        self.project = Project.objects.create(name='Water', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        self.other = Project.objects.create(name='Health')
        self.resource = Resource.objects.create(name='Ada', resource_type='Staff')
        Position.objects.create(project=self.other, position_name='Engineer', month_year=date(2025, 3, 1),
                                loe=Decimal('10'))
        self.position = Position.objects.create(project=self.project, position_name='Engineer',
                                                month_year=date(2025, 3, 1), loe=Decimal('50'))

    def _data(self, **overrides):
        data = {
            'project_name': 'Water',
            'resource_name': 'Ada',
            'position_name': 'Engineer',
            'month_year': '2025-03-17',
        }
        data.update(overrides)
        return data

    def test_create_marks_position_allocated(self) -> None:
        """Test that allocating flags the project's own position."""
        allocation = AllocationService.create(self._data(), 'editor@example.org')

        self.position.refresh_from_db()
        self.assertEqual(allocation.position, self.position)
        self.assertEqual(allocation.month_year, date(2025, 3, 1))
        self.assertEqual(allocation.loe, Decimal('50'))
        self.assertEqual(self.position.allocated, YesNo.YES)

    def test_explicit_loe_wins(self) -> None:
        """Test that a given LoE overrides the position's."""
        allocation = AllocationService.create(self._data(loe='30'))

        self.assertEqual(allocation.loe, Decimal('30'))

    def test_missing_fields(self) -> None:
        """Test the missing fields error."""
        with self.assertRaises(ValidationException) as ctx:
            AllocationService.create({'project_name': 'Water'})

        self.assertEqual(ctx.exception.extra['missing_fields'], ['resource_name', 'position_name', 'month_year'])

    def test_invalid_references(self) -> None:
        """Test the error for names that match nothing."""
        with self.assertRaises(ValidationException) as ctx:
            AllocationService.create(self._data(resource_name='Nobody'))

        self.assertEqual(ctx.exception.message, 'Invalid reference data')
        self.assertEqual(ctx.exception.details, {
            'project_found': True,
            'resource_found': False,
            'position_found': True,
        })

    def test_delete_resets_position(self) -> None:
        """Test that deleting an allocation frees its position."""
        allocation = AllocationService.create(self._data())

        AllocationService.delete(allocation)

        self.position.refresh_from_db()
        self.assertEqual(self.position.allocated, YesNo.NO)
        self.assertFalse(Allocation.objects.exists())

    def test_monthly_summary(self) -> None:
        """Test the per project counts for a month."""
        AllocationService.create(self._data())
        Position.objects.create(project=self.project, position_name='Driver', month_year=date(2025, 3, 1),
                                loe=Decimal('100'))

        summary = AllocationService.monthly_summary(date(2025, 3, 1))

        self.assertEqual([row['project_name'] for row in summary], ['Health', 'Water'])
        water = summary[1]
        self.assertEqual(water['month'], 'Mar 2025')
        self.assertEqual(water['position_count'], 2)
        self.assertEqual(water['allocated_count'], 1)
        self.assertEqual(water['unallocated_count'], 1)
        self.assertEqual(water['total_loe'], Decimal('150'))


class PositionGridTests(TestCase):
    """Tests for the positions CSV grid."""

    def setUp(self) -> None:
        self.project = Project.objects.create(name='Water', allocation_mode=AllocationMode.DAYS)

    def test_grid_months(self) -> None:
        """Test the 24 month window from January."""
        months = PositionService.grid_months(2025)

        self.assertEqual(len(months), 24)
        self.assertEqual(months[0], date(2025, 1, 1))
        self.assertEqual(months[-1], date(2026, 12, 1))

    @mock.patch('apps.projects.services.date')
    def test_grid_months_default_to_this_year(self, mock_date) -> None:
        """Test that the window starts in January of the current year."""
        mock_date.today.return_value = date(2027, 5, 4)
        mock_date.side_effect = lambda *args: date(*args)

        months = PositionService.grid_months()

        self.assertEqual(months[0], date(2027, 1, 1))

    def test_grid_rows(self) -> None:
        """Test that months of a position share one row."""
        for month, loe in ((date(2025, 1, 1), '10'), (date(2025, 3, 1), '20')):
            Position.objects.create(project=self.project, task_id='1.1', position_name='Engineer',
                                    month_year=month, loe=Decimal(loe))

        rows = PositionService.grid_rows(Position.objects.select_related('project'),
                                         PositionService.grid_months(2025)[:3])

        self.assertEqual(rows, [['Water', '1.1', 'Engineer', 'No', Decimal('10.00'), 0, Decimal('20.00')]])

    def test_default_mode(self) -> None:
        """Test that positions inherit the project's mode."""
        self.assertEqual(PositionService.default_mode(self.project), AllocationMode.DAYS)
        self.assertEqual(PositionService.default_mode(self.project, '%'), '%')
        self.assertEqual(PositionService.default_mode(None), AllocationMode.PERCENT)

    def test_import_grid(self) -> None:
        """Test creating positions from grid cells above zero."""
        created, errors = PositionService.import_grid([
            ['Project', 'Task ID', 'Position Name', 'Allocated', 'Jan 2025', 'Feb 2025'],
            ['Water', '1.1', 'Engineer', 'Yes', '5', '0'],
            ['Nowhere', '1.2', 'Driver', 'No', '10', '10'],
            ['Water', '1.3', 'Cook'],
        ])

        self.assertEqual(created, 1)
        position = Position.objects.get()
        self.assertEqual(position.month_year, date(2025, 1, 1))
        self.assertEqual(position.allocation_mode, AllocationMode.DAYS)
        self.assertEqual(position.allocated, YesNo.YES)
        self.assertEqual(errors, [
            {'row': 3, 'error': 'Project not found: Nowhere'},
            {'row': 4, 'error': 'Row has fewer than 4 columns'},
        ])

    def test_import_grid_rejects_bad_headers(self) -> None:
        """Test header checks on the grid."""
        with self.assertRaises(ValidationException) as ctx:
            PositionService.import_grid([['Name', 'Task'], ['Water', '1']])
        self.assertEqual(ctx.exception.message, 'Invalid file format')

        with self.assertRaises(ValidationException):
            PositionService.import_grid([
                ['Project', 'Task ID', 'Position Name', 'Allocated', 'January'],
                ['Water', '1', 'Engineer', 'No', '1'],
            ])


class ProjectApiTests(TestCase):
    """Tests for the project, position and allocation endpoints."""

    def setUp(self) -> None:
        cache.clear()
        SystemUser.objects.create(name='Editor', email_address='editor@example.org', role=RoleCode.EDITOR)
        SystemUser.objects.create(name='Viewer', email_address='viewer@example.org', role=RoleCode.VIEWER)
        self.client = APIClient()
        self.client.force_authenticate(user=AzureUser(email='editor@example.org'))
        self.project = Project.objects.create(name='Water', start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        self.resource = Resource.objects.create(name='Ada', resource_type='Staff')

    def test_create_project_and_position(self) -> None:
        """Test that a new position takes its project's mode and month start."""
        project = self.client.post('/api/projects/', {
            'name': 'Health',
            'allocation_mode': 'Days',
            'fringe': True,
        }, format='json')

        position = self.client.post('/api/positions/', {
            'project': project.json()['id'],
            'position_name': 'Nurse',
            'month_year': '2025-04-20',
            'loe': '10',
        }, format='json')

        self.assertEqual(project.status_code, 201)
        self.assertEqual(project.json()['fringe'], 'Yes')
        self.assertEqual(position.status_code, 201)
        self.assertEqual(position.json()['month_year'], '2025-04-01')
        self.assertEqual(position.json()['allocation_mode'], 'Days')
        self.assertEqual(position.json()['project_name'], 'Health')

    def test_viewer_cannot_create_project(self) -> None:
        """Test that writes need an Editor."""
        self.client.force_authenticate(user=AzureUser(email='viewer@example.org'))

        response = self.client.post('/api/projects/', {'name': 'Health'}, format='json')

        self.assertEqual(response.status_code, 403)

    def test_project_positions(self) -> None:
        """Test listing a project's positions."""
        Position.objects.create(project=self.project, position_name='Engineer', month_year=date(2025, 2, 1))

        response = self.client.get(f'/api/projects/{self.project.pk}/positions')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([p['position_name'] for p in response.json()], ['Engineer'])

    def test_allocate_and_release(self) -> None:
        """Test the allocation round trip through the API."""
        position = Position.objects.create(project=self.project, position_name='Engineer',
                                           month_year=date(2025, 2, 1), loe=Decimal('50'))

        created = self.client.post('/api/allocations/', {
            'project_name': 'Water',
            'resource_name': 'Ada',
            'position_name': 'Engineer',
            'month_year': '2025-02-01',
        }, format='json')
        position.refresh_from_db()
        allocated_flag = position.allocated
        deleted = self.client.delete(f"/api/allocations/{created.json()['id']}")
        position.refresh_from_db()

        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()['resource_name'], 'Ada')
        self.assertEqual(allocated_flag, YesNo.YES)
        self.assertEqual(deleted.json()['message'], 'Allocation deleted and position updated')
        self.assertEqual(position.allocated, YesNo.NO)

    def test_allocation_missing_fields(self) -> None:
        """Test the missing field message."""
        response = self.client.post('/api/allocations/', {'project_name': 'Water'}, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()['error'],
            'Missing required fields: project_name, resource_name, position_name, month_year',
        )

    def test_allocation_summary_needs_month(self) -> None:
        """Test that the summary requires a month."""
        self.assertEqual(self.client.get('/api/allocations/summary').status_code, 400)
        self.assertEqual(self.client.get('/api/allocations/summary', {'month': '2025-02'}).status_code, 200)

    def test_export_positions_csv(self) -> None:
        """Test the CSV grid download."""
        Position.objects.create(project=self.project, task_id='1.1', position_name='Engineer',
                                month_year=date(2025, 2, 1), loe=Decimal('50'))

        response = self.client.get('/api/positions/export', {'year': '2025'})

        lines = response.content.decode('utf-8-sig').splitlines()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(lines[0].startswith('Project,Task ID,Position Name,Allocated,Jan 2025,Feb 2025'))
        self.assertTrue(lines[0].endswith('Dec 2026'))
        self.assertTrue(lines[1].startswith('Water,1.1,Engineer,No,0,50.00,0'))

    def test_import_positions_csv(self) -> None:
        """Test the CSV grid upload."""
        content = 'Project,Task ID,Position Name,Allocated,Mar 2025\nWater,2.1,Driver,No,100\n'
        upload = SimpleUploadedFile('positions.csv', content.encode('utf-8'))

        response = self.client.post('/api/positions/import', {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'created': 1, 'error_count': 0, 'errors': []})
        self.assertTrue(Position.objects.filter(position_name='Driver', month_year=date(2025, 3, 1)).exists())
