"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Glidepath helpers: month label parsing for uploaded sheets,
             the task hierarchy with parent totals and the month-by-task
             grid returned to the glidepath screen.
-------------------------------------------------------------------------
"""
import calendar
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from apps.core.utils import first_of_month, month_label


TASK_TYPE_TOTAL = 'Total'
TASK_TYPE_POSTING = 'Posting'

MONTH_LABEL_PATTERN = re.compile(r'^([a-z]{3,})[- ]?(\d{2,4})$', re.IGNORECASE)

MONTH_NUMBERS = {name.lower(): number for number, name in enumerate(calendar.month_abbr) if name}
MONTH_NUMBERS.update({name.lower(): number for number, name in enumerate(calendar.month_name) if name})
MONTH_NUMBERS['sept'] = 9

# (job_task_no, first of month) -> amount
Amounts = Mapping[Tuple[str, date], Decimal]


def parse_month_label(label: Any) -> Optional[date]:
    """
    Parse a column heading such as ``Oct-25``, ``Oct 25``, ``Oct-2025``,
    ``October 2025`` or ``Sept-25`` into the first of that month.

    Two digit years below 50 are taken as 20xx, the rest as 19xx.
    Returns None for anything else.
    """
    if label is None:
        return None
    match = MONTH_LABEL_PATTERN.match(str(label).strip())
    if not match:
        return None

    month = MONTH_NUMBERS.get(match.group(1).lower())
    if month is None:
        return None

    year = int(match.group(2))
    if year < 100:
        year += 2000 if year < 50 else 1900
    return date(year, month, 1)


def parse_amount(value: Any) -> Decimal:
    """Read a spreadsheet amount such as ``1,250.00`` or ``$ 300``. Blanks are 0."""
    text = re.sub(r'[^0-9.\-]', '', str(value or ''))
    if not text:
        return Decimal('0')
    try:
        return Decimal(text)
    except InvalidOperation:
        return Decimal('0')


def months_between(start: date, end: date) -> List[date]:
    """Every month from start to end inclusive."""
    current, last = first_of_month(start), first_of_month(end)
    months = []
    while current <= last:
        months.append(current)
        current += relativedelta(months=1)
    return months


def task_sort_key(task_no: str) -> Tuple:
    """Order ``1000``, ``1000.2``, ``1000.10`` numerically where possible."""
    return tuple(
        (0, int(part), '') if part.isdigit() else (1, 0, part)
        for part in task_no.split('.')
    )


def derive_tasks(task_nos: Iterable[str]) -> List[Dict[str, str]]:
    """
    Build a task list from task numbers alone.

    Every task number is a posting task and each dotted prefix of one
    (``1000`` for ``1000.10``) becomes a Total task above it.
    """
    types: Dict[str, str] = {}
    for task_no in task_nos:
        parts = task_no.split('.')
        for depth in range(1, len(parts)):
            types.setdefault('.'.join(parts[:depth]), TASK_TYPE_TOTAL)
        types[task_no] = TASK_TYPE_POSTING

    return [
        {'job_task_no': task_no, 'description': '', 'job_task_type': types[task_no]}
        for task_no in sorted(types, key=task_sort_key)
    ]


def normalize_task_lines(lines: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
    """Map Business Central Job_Task_Lines records to task dicts."""
    tasks = []
    for line in lines:
        task_no = line.get('Job_Task_No') or line.get('job_task_no')
        if not task_no:
            continue
        tasks.append({
            'job_task_no': str(task_no),
            'description': line.get('Description') or line.get('description') or '',
            'job_task_type': line.get('Job_Task_Type') or line.get('job_task_type') or TASK_TYPE_POSTING,
        })
    return tasks


def parent_total(parent_task_no: str, month: date, tasks: Sequence[Mapping[str, str]], amounts: Amounts) -> Decimal:
    """Sum of the non-Total tasks numbered ``<parent>.*`` in month."""
    prefix = f"{parent_task_no}."
    return sum(
        (
            amounts.get((task['job_task_no'], month), Decimal('0'))
            for task in tasks
            if task['job_task_no'].startswith(prefix)
            and task['job_task_type'] != TASK_TYPE_TOTAL
        ),
        Decimal('0'),
    )


def build_glidepath(months: Sequence[date], tasks: Sequence[Mapping[str, str]], amounts: Amounts) -> Dict[str, Any]:
    """
    Month-by-task grid.

    Total rows carry the sum of their posting children. Column totals
    and the grand total count posting rows only.

    Returns:
        Dict with ``months`` (labels), ``rows`` (one per task),
        ``month_totals`` and ``grand_total``.
    """
    labels = [month_label(m) for m in months]
    month_totals = {label: Decimal('0') for label in labels}
    rows = []

    for task in tasks:
        task_no = task['job_task_no']
        is_total = task['job_task_type'] == TASK_TYPE_TOTAL
        values = {}
        for month, label in zip(months, labels):
            if is_total:
                amount = parent_total(task_no, month, tasks, amounts)
            else:
                amount = amounts.get((task_no, month), Decimal('0'))
                month_totals[label] += amount
            values[label] = amount

        rows.append({
            'job_task_no': task_no,
            'description': task.get('description', ''),
            'job_task_type': task['job_task_type'],
            'is_total': is_total,
            'values': values,
            'total': sum(values.values(), Decimal('0')),
        })

    return {
        'months': labels,
        'rows': rows,
        'month_totals': month_totals,
        'grand_total': sum(month_totals.values(), Decimal('0')),
    }


def parse_glidepath_rows(rows: Sequence[Sequence[str]]) -> Tuple[List[date], List[Dict[str, Any]]]:
    """
    Read an uploaded glidepath sheet: ``Job Task No, Description, <months>``.

    Returns:
        Tuple of (months, cells) where each cell is a dict with
        job_task_no, budget_month and budget_amount. Rows without a task
        number are skipped.

    Raises:
        ValueError: A month heading cannot be parsed.
    """
    if not rows:
        return [], []

    months = []
    for heading in rows[0][2:]:
        month = parse_month_label(heading)
        if month is None:
            raise ValueError(f"Invalid month column: {heading!r}")
        months.append(month)

    cells = []
    for row in rows[1:]:
        task_no = str(row[0]).strip() if row else ''
        if not task_no:
            continue
        for month, value in zip(months, row[2:]):
            cells.append({
                'job_task_no': task_no,
                'budget_month': month,
                'budget_amount': parse_amount(value),
            })
    return months, cells
