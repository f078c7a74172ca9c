"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializers for the payroll grid.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.payroll import calculations
from apps.payroll.models import PayrollRecord
from apps.projects.models import Allocation, Project
from apps.resources.models import Resource


class PayrollProjectSerializer(serializers.ModelSerializer):

    class Meta:
        model = Project
        fields = ['id', 'name', 'start_date', 'end_date', 'fringe']


class PayrollResourceSerializer(serializers.ModelSerializer):
    """A resource on the month's payroll with its entity's currency and accounts."""

    resource_id = serializers.UUIDField(source='id')
    resource_name = serializers.CharField(source='name')
    entity_id = serializers.UUIDField(source='entity.id', default=None)
    entity_name = serializers.CharField(source='entity.name', default=None)
    currency = serializers.CharField(source='entity.currency_code', default=None)
    ss_acc_code = serializers.CharField(source='entity.ss_acc_code', default=None)
    tax_acc_code = serializers.CharField(source='entity.tax_acc_code', default=None)
    working_days = serializers.SerializerMethodField()

    class Meta:
        model = Resource
        fields = [
            'resource_id', 'resource_name', 'resource_type', 'work_days',
            'working_days', 'department', 'dynamics_vendor_acc', 'entity_id',
            'entity_name', 'currency', 'ss_acc_code', 'tax_acc_code',
        ]

    def get_working_days(self, obj: Resource) -> int:
        month = self.context['month']
        return calculations.working_days(month.year, month.month, obj.work_days)


class PayrollRecordSerializer(serializers.ModelSerializer):

    resource_name = serializers.CharField(source='resource.name', read_only=True)
    entity_name = serializers.CharField(source='entity.name', read_only=True, default=None)
    daily_rate = serializers.SerializerMethodField()

    class Meta:
        model = PayrollRecord
        fields = [
            'id', 'resource', 'resource_name', 'entity', 'entity_name', 'month',
            'department', 'working_days', 'currency', 'net_salary',
            'social_security', 'employee_tax', 'employer_tax', 'housing',
            'communications_other', 'annual_leave', 'sick_leave',
            'public_holidays', 'daily_rate', 'project_allocations', 'locked',
            'modified_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_daily_rate(self, obj: PayrollRecord):
        rate = calculations.daily_rate(obj.net_salary)
        return f"{rate:.2f}" if rate else None


class PayrollAllocationSerializer(serializers.ModelSerializer):
    """Allocation row used to pre-fill the project split."""

    resource_id = serializers.UUIDField()
    project_id = serializers.UUIDField()
    position_id = serializers.UUIDField()
    resource_name = serializers.CharField(source='resource.name')
    project_name = serializers.CharField(source='project.name')
    task_id = serializers.CharField(source='position.task_id')
    fringe_task = serializers.CharField(source='position.fringe_task')

    class Meta:
        model = Allocation
        fields = [
            'resource_id', 'project_id', 'position_id', 'resource_name',
            'project_name', 'task_id', 'fringe_task', 'month_year', 'loe',
        ]
