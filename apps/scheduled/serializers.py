"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializer for scheduled records.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.scheduled.models import ScheduledRecord


class ScheduledRecordSerializer(serializers.ModelSerializer):

    class Meta:
        model = ScheduledRecord
        fields = [
            'scheduled_id', 'type', 'purchase_date', 'supplier', 'description',
            'purchase_currency', 'original_currency_value', 'usd_value',
            'useful_months', 'disposed', 'disposal_date',
        ]
        read_only_fields = ['scheduled_id']

    def validate(self, attrs):
        purchase_date = attrs.get('purchase_date', getattr(self.instance, 'purchase_date', None))
        disposal_date = attrs.get('disposal_date', getattr(self.instance, 'disposal_date', None))
        if purchase_date and disposal_date and disposal_date < purchase_date:
            raise serializers.ValidationError({'disposal_date': 'Disposal date cannot be before the purchase date.'})
        return attrs
