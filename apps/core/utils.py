"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Shared helpers for month handling, GUID checks and
             request parameter parsing.
-------------------------------------------------------------------------
"""
import calendar
import re
import uuid
from datetime import date, datetime
from typing import Any, Optional, Union

from apps.core.exceptions import ValidationException


GUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$',
    re.IGNORECASE,
)

MONTH_FORMATS = ('%Y-%m-%d', '%Y-%m')


def is_valid_guid(value: Any) -> bool:
    """Return True for RFC 4122 GUID strings (or UUID instances)."""
    if isinstance(value, uuid.UUID):
        return True
    if not value or not isinstance(value, str):
        return False
    return bool(GUID_PATTERN.match(value.strip()))


def first_of_month(value: Union[date, datetime]) -> date:
    """Truncate a date to the first day of its month."""
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)


def last_of_month(value: date) -> date:
    """Return the last calendar day of the month containing value."""
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def parse_month(value: Any, field: str = 'month') -> date:
    """
    Parse a month parameter into the first day of that month.

    Accepts ``YYYY-MM``, ``YYYY-MM-DD`` (and ISO datetimes) as well as
    date objects.

    Raises:
        ValidationException: If the value is missing or unparseable.
    """
    if isinstance(value, (date, datetime)):
        return first_of_month(value)
    if not value:
        raise ValidationException(f"{field} parameter is required (format: YYYY-MM-DD)")

    text = str(value).strip()[:10]
    for fmt in MONTH_FORMATS:
        try:
            return first_of_month(datetime.strptime(text, fmt))
        except ValueError:
            continue
    raise ValidationException(f"Invalid {field}: {value!r} (format: YYYY-MM-DD)")


def parse_date(value: Any, field: str = 'date') -> Optional[date]:
    """Parse an optional ISO date string. Empty values become None."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip()[:10], '%Y-%m-%d').date()
    except ValueError:
        raise ValidationException(f"Invalid {field}: {value!r} (format: YYYY-MM-DD)")


def month_label(value: date) -> str:
    """Format a month as ``MMM yyyy`` (e.g. ``Oct 2025``)."""
    return value.strftime('%b %Y')


def parse_bool(value: Any) -> bool:
    """Interpret query-string style booleans ('true', '1', 'yes')."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'y')


def yes_no(value: Any) -> str:
    """Store booleans the way the budgeting sheets show them: 'Yes' / 'No'."""
    if isinstance(value, str) and value in ('Yes', 'No'):
        return value
    return 'Yes' if parse_bool(value) else 'No'
