"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: openpyxl and csv helpers shared by the resource, position and
             payroll spreadsheet exports and imports.
-------------------------------------------------------------------------
"""
import csv
import io
from zipfile import BadZipFile
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from django.http import HttpResponse
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from apps.core.exceptions import ValidationException


XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADER_FILL = PatternFill(start_color='366092', end_color='366092', fill_type='solid')
HEADER_FONT = Font(bold=True, color='FFFFFF')


def build_workbook(title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> Workbook:
    """
    Build a single-sheet workbook with a styled header row.

    Column widths are sized to the longest value in each column.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.value = header
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal='center', vertical='center')

    widths = [len(str(h)) for h in headers]
    for row_num, row in enumerate(rows, 2):
        for col_num, value in enumerate(row, 1):
            ws.cell(row=row_num, column=col_num).value = value
            if col_num <= len(widths) and value is not None:
                widths[col_num - 1] = max(widths[col_num - 1], len(str(value)))

    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = min(max(width + 2, 10), 50)

    return wb


def workbook_response(wb: Workbook, filename: str) -> HttpResponse:
    """Wrap a workbook in an attachment response."""
    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    wb.save(response)
    return response


def open_worksheet(upload) -> Worksheet:
    """
    Load the first worksheet of an uploaded xlsx file.

    Raises:
        ValidationException: If nothing was uploaded or the file is not a workbook.
    """
    if upload is None:
        raise ValidationException("No file uploaded")
    try:
        content = upload.read() if hasattr(upload, 'read') else upload
        wb = load_workbook(io.BytesIO(content), data_only=True, read_only=True)
    except (BadZipFile, InvalidFileException, OSError, ValueError, KeyError) as exc:
        raise ValidationException("Uploaded file is not a valid Excel workbook", details=str(exc))
    return wb.worksheets[0]


def sheet_rows(ws: Worksheet) -> List[List[Any]]:
    """Return every row (header included) as a list of cell values."""
    return [list(row) for row in ws.iter_rows(values_only=True)]


def sheet_records(ws: Worksheet, required: Sequence[str] = ()) -> List[Tuple[int, Dict[str, Any]]]:
    """
    Read a worksheet into (sheet row, dict keyed by the header row) pairs.

    Blank rows are skipped but keep their place in the row count, so the
    numbers match what a user sees in Excel. Header names are stripped.

    Raises:
        ValidationException: If a required header is missing.
    """
    rows = sheet_rows(ws)
    if not rows:
        return []

    headers = [str(h).strip() if h is not None else '' for h in rows[0]]
    missing = [name for name in required if name not in headers]
    if missing:
        raise ValidationException(
            "Missing required columns",
            extra={'missing_columns': missing},
        )

    records = []
    for row_num, row in enumerate(rows[1:], 2):
        if all(value in (None, '') for value in row):
            continue
        records.append((row_num, {headers[i]: value for i, value in enumerate(row) if i < len(headers) and headers[i]}))
    return records


def csv_response(filename: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> HttpResponse:
    """Write rows to a CSV attachment with a UTF-8 BOM for Excel."""
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response.write('\ufeff')

    writer = csv.writer(response)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return response


def read_csv_upload(upload) -> List[List[str]]:
    """
    Decode an uploaded CSV file into rows of strings.

    Raises:
        ValidationException: If nothing was uploaded or it is not UTF-8 text.
    """
    if upload is None:
        raise ValidationException("No file uploaded")
    content = upload.read() if hasattr(upload, 'read') else upload
    try:
        text = content.decode('utf-8-sig') if isinstance(content, bytes) else content
    except UnicodeDecodeError:
        raise ValidationException("Uploaded file is not a UTF-8 CSV file")
    return [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
