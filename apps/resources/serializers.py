"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Serializers for entities and resources.
-------------------------------------------------------------------------
"""
from rest_framework import serializers

from apps.resources.models import Entity, Resource
from apps.resources.services import resolve_entity


class EntitySerializer(serializers.ModelSerializer):

    class Meta:
        model = Entity
        fields = [
            'id', 'name', 'currency_code', 'ss_acc_code', 'tax_acc_code',
            'sal_exp_code', 'ss_exp_code', 'tax_exp_code',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class EntityReferenceField(serializers.Field):
    """
    Entity given as its id or its name.

    Unknown values surface as the service's ValidationException so the
    client sees ``Entity not found`` rather than a field error.
    """

    def to_representation(self, value):
        return str(value.pk) if value else None

    def to_internal_value(self, data):
        return resolve_entity(data)


class ResourceSerializer(serializers.ModelSerializer):
    """Read/write shape of a resource, with the entity name for display."""

    entity = EntityReferenceField(required=False, allow_null=True)
    entity_name = serializers.CharField(source='entity.name', read_only=True, default=None)
    currency_code = serializers.CharField(source='entity.currency_code', read_only=True, default=None)

    class Meta:
        model = Resource
        fields = [
            'id', 'name', 'resource_type', 'entity', 'entity_name', 'currency_code',
            'dynamics_vendor_acc', 'start_date', 'end_date', 'work_days',
            'department', 'track', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
