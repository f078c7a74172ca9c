"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializers for projects, positions and allocations.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.core.utils import parse_month, yes_no
from apps.projects.models import Allocation, Position, Project, YesNo
from apps.projects.services import PositionService


class YesNoField(serializers.Field):
    """Accepts booleans or 'Yes'/'No' and always stores 'Yes'/'No'."""

    def to_representation(self, value):
        return value

    def to_internal_value(self, data):
        return yes_no(data)


class ProjectSerializer(serializers.ModelSerializer):

    fringe = YesNoField(required=False, default=YesNo.NO)
    budget_manager_name = serializers.CharField(source='budget_manager.name', read_only=True, default=None)

    class Meta:
        model = Project
        fields = [
            'id', 'name', 'start_date', 'end_date', 'project_currency',
            'project_budget', 'budget_manager', 'budget_manager_name',
            'allocation_mode', 'fringe', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class PositionSerializer(serializers.ModelSerializer):
    """Position with its project's name; the month is stored as its first day."""

    project_name = serializers.CharField(source='project.name', read_only=True)
    allocated = YesNoField(required=False, default=YesNo.NO)

    class Meta:
        model = Position
        fields = [
            'id', 'project', 'project_name', 'task_id', 'position_name',
            'month_year', 'allocation_mode', 'loe', 'allocated', 'fringe_task',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {'allocation_mode': {'required': False}}

    def validate_month_year(self, value):
        return parse_month(value, 'month_year')

    def validate(self, attrs):
        if not attrs.get('allocation_mode'):
            project = attrs.get('project') or getattr(self.instance, 'project', None)
            if self.instance is None or 'allocation_mode' in attrs:
                attrs['allocation_mode'] = PositionService.default_mode(project)
        return attrs


class AllocationSerializer(serializers.ModelSerializer):
    """Read shape of an allocation with the names the grid displays."""

    project_name = serializers.CharField(source='project.name', read_only=True)
    position_name = serializers.CharField(source='position.position_name', read_only=True)
    resource_name = serializers.CharField(source='resource.name', read_only=True)

    class Meta:
        model = Allocation
        fields = [
            'id', 'project', 'resource', 'position', 'month_year',
            'allocation_mode', 'loe', 'project_name', 'position_name',
            'resource_name', 'created_at',
        ]
        read_only_fields = fields


class AllocationUpdateSerializer(serializers.ModelSerializer):
    """Allocations may only change mode and LoE once made."""

    class Meta:
        model = Allocation
        fields = ['allocation_mode', 'loe']
