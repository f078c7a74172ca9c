"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Payroll arithmetic: working days per work-week pattern,
             daily rates, conversion of project allocations to
             percentages and generation of Business Central journal rows.
             Everything here is pure and works on plain values.
-------------------------------------------------------------------------
"""
import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from apps.core.utils import last_of_month, month_label


TWO_PLACES = Decimal('0.01')

# Weekday numbers (Monday=0) counted as working days
WORK_WEEKS = {
    'Mon-Fri': (0, 1, 2, 3, 4),
    'Sun-Thu': (6, 0, 1, 2, 3),
}
DEFAULT_WORK_WEEK = 'Mon-Fri'

# Working days per year used for the daily rate
WORKING_DAYS_PER_YEAR = 220

DEFAULT_EXPENSE_CODES = {
    'salary': '6000',
    'social_security': '6100',
    'tax': '6200',
}

JOURNAL_COLUMNS = [
    'Journal_Batch_Name', 'Line_No', 'Gen_Posting_Type', 'Posting_Date',
    'Document_Date', 'Invoice_Date', 'Document_No', 'Vendor_Invoice_Ref',
    'External_Document_No', 'Account_Type', 'Account_No', 'Description',
    'Vendor_Name', 'Transaction_Currency', 'Currency_Code',
    'Transaction_Amount', 'Amount', 'Project_Quantity', 'Project_No',
    'Project_Task_No',
]


@dataclass(frozen=True)
class JournalComponent:
    """A salary component and where it posts."""

    field: str
    code_key: str
    label: str


JOURNAL_COMPONENTS = (
    JournalComponent('net_salary', 'salary', 'Salary'),
    JournalComponent('social_security', 'social_security', 'Social Security'),
    JournalComponent('employee_tax', 'tax', 'Employee tax'),
    JournalComponent('employer_tax', 'tax', 'Employer tax'),
    JournalComponent('housing', 'salary', 'Housing'),
    JournalComponent('communications_other', 'salary', 'Comms Allowance'),
)


def _decimal(value: Any) -> Decimal:
    if value in (None, ''):
        return Decimal('0')
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _round(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def working_days(year: int, month: int, work_days: Optional[str] = None) -> int:
    """
    Count working days in a month.

    Unknown or empty patterns count Monday to Friday.
    """
    weekdays = WORK_WEEKS.get(work_days or '', WORK_WEEKS[DEFAULT_WORK_WEEK])
    days_in_month = calendar.monthrange(year, month)[1]
    return sum(
        1 for day in range(1, days_in_month + 1)
        if date(year, month, day).weekday() in weekdays
    )


def daily_rate(net_salary: Any) -> Optional[Decimal]:
    """Net salary x 12 / 220, or None when there is no salary."""
    salary = _decimal(net_salary)
    if not salary:
        return None
    return salary * 12 / WORKING_DAYS_PER_YEAR


def to_percentages(allocations: Mapping[str, Any]) -> Dict[str, Decimal]:
    """
    Express each project's allocation as a share of the row total.

    Rows that total zero are returned unchanged.
    """
    values = {key: _decimal(value) for key, value in allocations.items()}
    total = sum(values.values(), Decimal('0'))
    if total <= 0:
        return values
    return {key: _round(value / total * 100) for key, value in values.items()}


def percentage_view(
    grouped: Mapping[str, Mapping[str, Mapping[str, Any]]],
) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Convert allocations to percentages for every resource and average
    them per entity.

    Args:
        grouped: {entity_id: {resource_id: {project_id: value}}}

    Returns:
        Dict with ``resources`` (percentages per resource),
        ``entity_averages`` (mean percentage per project per entity) and
        ``originals`` (the untouched input, so the view can be reverted).
    """
    resources: Dict[str, Dict[str, Decimal]] = {}
    entity_averages: Dict[str, Dict[str, Decimal]] = {}
    originals: Dict[str, Dict[str, Any]] = {}

    for entity_id, by_resource in grouped.items():
        samples: Dict[str, List[Decimal]] = {}
        for resource_id, allocations in by_resource.items():
            originals[resource_id] = dict(allocations)
            values = {key: _decimal(value) for key, value in allocations.items()}
            total = sum(values.values(), Decimal('0'))
            if total <= 0:
                continue
            resources[resource_id] = {}
            for project_id, value in values.items():
                # Averages use unrounded shares
                share = value / total * 100
                resources[resource_id][project_id] = _round(share)
                samples.setdefault(project_id, []).append(share)

        entity_averages[entity_id] = {
            project_id: _round(sum(shares, Decimal('0')) / len(shares))
            for project_id, shares in samples.items()
        }

    return {
        'resources': resources,
        'entity_averages': entity_averages,
        'originals': originals,
    }


def document_number(month: date) -> str:
    """Journal document number for a payroll month, e.g. ``P10/2025``."""
    return f"P{month.month}/{month.year}"


def account_type(code: str) -> str:
    if code.startswith('6'):
        return 'G/L Account'
    if code.startswith('1'):
        return 'Vendor'
    return ''


def journal_rows(
    month: date,
    resource_name: str,
    components: Mapping[str, Any],
    allocations: Mapping[str, Any],
    project_names: Mapping[str, str],
    expense_codes: Optional[Mapping[str, str]] = None,
    currency: Optional[str] = None,
) -> List[Dict[str, str]]:
    """
    Journal rows for one resource.

    For every project with an allocation above zero, one row per salary
    component above zero. The component is apportioned by the project's
    share of the resource's total allocation.

    Args:
        month: Payroll month (any day in it).
        resource_name: Used for the description and vendor name.
        components: Amounts keyed by JournalComponent.field.
        allocations: {project_id: allocation value}.
        project_names: {project_id: project name}.
        expense_codes: Overrides for DEFAULT_EXPENSE_CODES.
        currency: Transaction currency, USD when empty.
    """
    codes = dict(DEFAULT_EXPENSE_CODES)
    for key, value in (expense_codes or {}).items():
        if value:
            codes[key] = value

    posting_date = last_of_month(month).isoformat()
    doc_no = document_number(month)
    label = month_label(month)
    currency = currency or 'USD'
    shares = to_percentages({k: v for k, v in allocations.items() if _decimal(v) > 0})

    rows = []
    for project_id, share in shares.items():
        for component in JOURNAL_COMPONENTS:
            amount = _decimal(components.get(component.field))
            if amount <= 0:
                continue
            code = codes[component.code_key]
            value = f"{_round(amount * share / 100):.2f}"
            rows.append({
                'Journal_Batch_Name': '',
                'Line_No': '',
                'Gen_Posting_Type': 'Purchase' if code.startswith('6') else '',
                'Posting_Date': posting_date,
                'Document_Date': posting_date,
                'Invoice_Date': posting_date,
                'Document_No': doc_no,
                'Vendor_Invoice_Ref': doc_no,
                'External_Document_No': doc_no,
                'Account_Type': account_type(code),
                'Account_No': code,
                'Description': f"{resource_name} {component.label} for {label}",
                'Vendor_Name': resource_name,
                'Transaction_Currency': currency,
                'Currency_Code': currency,
                'Transaction_Amount': value,
                'Amount': value,
                'Project_Quantity': '1',
                'Project_No': project_names.get(project_id, 'Unknown Project'),
                'Project_Task_No': '',
            })
    return rows


def journal_table(rows: Iterable[Mapping[str, str]]) -> Tuple[List[str], List[List[str]]]:
    """Journal rows as (headers, values) for CSV output."""
    return JOURNAL_COLUMNS, [[row.get(col, '') for col in JOURNAL_COLUMNS] for row in rows]
