"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Straight-line write-off of scheduled records on a 30-day
             month: the purchase month covers the days from the purchase
             day, every later month 30 days, until useful_months x 30
             days are used up.
-------------------------------------------------------------------------
"""
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List

from dateutil.relativedelta import relativedelta

from apps.core.utils import first_of_month, month_label


DAYS_PER_MONTH = 30
TWO_PLACES = Decimal('0.01')


def _round(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def monthly_allocation(usd_value: Decimal, useful_months: int) -> Decimal:
    if not useful_months or useful_months <= 0:
        return Decimal('0')
    return Decimal(usd_value) / useful_months


def daily_cost(usd_value: Decimal, useful_months: int) -> Decimal:
    """Value per day of useful life."""
    return monthly_allocation(usd_value, useful_months) / DAYS_PER_MONTH


def first_month_days(purchase_date: date) -> int:
    return max(DAYS_PER_MONTH - purchase_date.day + 1, 0)


def month_depreciation(record, month: date) -> Decimal:
    """
    Amount written off in month.

    Zero before the purchase month, after the useful life, and for
    disposed fixed assets from the disposal date on. Never more than the
    monthly allocation.
    """
    month = first_of_month(month)
    offset = _months_between(record.purchase_date, month)
    if offset < 0 or not record.useful_months:
        return Decimal('0')

    if record.is_disposed_asset and record.disposal_date and month >= record.disposal_date:
        return Decimal('0')

    total_days = record.useful_months * DAYS_PER_MONTH
    first_days = first_month_days(record.purchase_date)
    if offset == 0:
        days, used_before = first_days, 0
    else:
        days, used_before = DAYS_PER_MONTH, first_days + (offset - 1) * DAYS_PER_MONTH

    if used_before >= total_days:
        return Decimal('0')
    days = min(days, total_days - used_before)
    if days <= 0:
        return Decimal('0')

    allocation = monthly_allocation(record.usd_value, record.useful_months)
    return min(allocation / DAYS_PER_MONTH * days, allocation)


def days_depreciated(record, month: date) -> int:
    """Days of useful life used up by the end of month."""
    elapsed = _months_between(record.purchase_date, first_of_month(month))
    if elapsed < 0:
        return 0
    total_days = record.useful_months * DAYS_PER_MONTH
    days = first_month_days(record.purchase_date) + elapsed * DAYS_PER_MONTH
    return min(days, total_days)


def balance(record, month: date) -> Decimal:
    """
    Value left at the end of month.

    Disposed fixed assets have no balance. Before the purchase month the
    full value remains.
    """
    if record.is_disposed_asset:
        return Decimal('0')
    usd_value = Decimal(record.usd_value)
    if _months_between(record.purchase_date, first_of_month(month)) < 0:
        return usd_value
    written_off = daily_cost(usd_value, record.useful_months) * days_depreciated(record, month)
    return max(Decimal('0'), usd_value - written_off)


def schedule(records: Iterable[Any], start: date, months: int = 12) -> Dict[str, Any]:
    """
    Write-off per record for `months` months from start.

    Balances are taken at the end of the start month.

    Returns:
        Dict with ``months`` (labels), ``records`` (one per record with
        its monthly values, total and balance), ``month_totals``,
        ``total`` and ``balance_total``.
    """
    start = first_of_month(start)
    window = [start + relativedelta(months=i) for i in range(months)]
    labels = [month_label(m) for m in window]
    month_totals = {label: Decimal('0') for label in labels}

    rows: List[Dict[str, Any]] = []
    for record in records:
        values = {}
        for month, label in zip(window, labels):
            amount = _round(month_depreciation(record, month))
            values[label] = amount
            month_totals[label] += amount

        rows.append({
            'scheduled_id': record.scheduled_id,
            'type': record.type,
            'supplier': record.supplier,
            'description': record.description,
            'purchase_date': record.purchase_date,
            'usd_value': record.usd_value,
            'useful_months': record.useful_months,
            'monthly_cost': _round(daily_cost(record.usd_value, record.useful_months) * DAYS_PER_MONTH),
            'values': values,
            'total': sum(values.values(), Decimal('0')),
            'balance': _round(balance(record, start)),
        })

    return {
        'months': labels,
        'records': rows,
        'month_totals': month_totals,
        'total': sum(month_totals.values(), Decimal('0')),
        'balance_total': sum((row['balance'] for row in rows), Decimal('0')),
    }
