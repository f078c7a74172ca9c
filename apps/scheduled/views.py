"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: API views for scheduled records and their write-off schedule.
-------------------------------------------------------------------------
"""
from datetime import date

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.exceptions import NotFoundException, ValidationException
from apps.core.utils import parse_month
from apps.scheduled import depreciation
from apps.scheduled.models import ScheduledRecord
from apps.scheduled.serializers import ScheduledRecordSerializer
from apps.users.permissions import ViewerReadEditorWrite


MAX_SCHEDULE_MONTHS = 120


def _get_record(pk) -> ScheduledRecord:
    record = ScheduledRecord.objects.filter(pk=pk).first()
    if record is None:
        raise NotFoundException("Scheduled record not found")
    return record


@api_view(['GET', 'POST'])
@permission_classes([ViewerReadEditorWrite])
def scheduled_list_create(request):
    """List scheduled records (optionally by `type`) or create one"""
    if request.method == 'GET':
        records = ScheduledRecord.objects.order_by('scheduled_id')
        if request.query_params.get('type'):
            records = records.filter(type=request.query_params['type'])
        return Response(ScheduledRecordSerializer(records, many=True).data)

    serializer = ScheduledRecordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    record = serializer.save()
    return Response(ScheduledRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ViewerReadEditorWrite])
def scheduled_detail(request, pk):
    """Retrieve, update or delete a scheduled record"""
    record = _get_record(pk)

    if request.method == 'GET':
        return Response(ScheduledRecordSerializer(record).data)

    if request.method == 'DELETE':
        record.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = ScheduledRecordSerializer(record, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    return Response(ScheduledRecordSerializer(serializer.save()).data)


@api_view(['GET'])
def scheduled_schedule(request):
    """
    Monthly write-off of every record for `months` months from `month`
    (default: this month, 12 months), with balances at the end of `month`.
    """
    month_param = request.query_params.get('month')
    start = parse_month(month_param) if month_param else date.today()

    try:
        months = int(request.query_params.get('months', 12))
    except ValueError:
        raise ValidationException("months must be a whole number")
    if not 1 <= months <= MAX_SCHEDULE_MONTHS:
        raise ValidationException(f"months must be between 1 and {MAX_SCHEDULE_MONTHS}")

    records = ScheduledRecord.objects.order_by('scheduled_id')
    if request.query_params.get('type'):
        records = records.filter(type=request.query_params['type'])
    return Response(depreciation.schedule(records, start, months))
