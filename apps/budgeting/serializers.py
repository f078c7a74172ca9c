"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializers for budget versions and budget data.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.budgeting.models import BudgetData, BudgetVersion


class BudgetVersionSerializer(serializers.ModelSerializer):

    source_version_id = serializers.IntegerField(read_only=True, allow_null=True)
    record_count = serializers.SerializerMethodField()

    class Meta:
        model = BudgetVersion
        fields = [
            'id', 'job_no', 'version_name', 'version_description',
            'is_active', 'is_baseline', 'source_type', 'source_version_id',
            'created_by', 'created_date', 'modified_by', 'modified_date',
            'record_count',
        ]
        read_only_fields = fields

    def get_record_count(self, obj: BudgetVersion) -> int:
        return obj.data.count()


class BudgetDataSerializer(serializers.ModelSerializer):

    class Meta:
        model = BudgetData
        fields = [
            'id', 'version', 'job_no', 'job_task_no', 'budget_month',
            'budget_amount', 'last_modified_by', 'last_modified_date',
        ]
        read_only_fields = fields
