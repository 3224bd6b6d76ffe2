"""
Report Export - Monthly progress report as an Excel workbook
============================================================
Renders the month-by-month report matrix into an openpyxl workbook: one
sheet with a row per task (per-month achieved/consumed/expected columns and
the task totals) and a summary sheet.
"""

import io
from datetime import date
from typing import Any, Dict, Optional, Tuple

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill

from progress_utils import current_period
from services.aggregation_service import REPORT_MAX_COLUMNS, AggregationEngine


XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

TASK_HEADERS = ('Task', 'Category', 'Activity', 'Unit', 'Budgeted Qty', 'Budgeted MH')

# (aggregate key, header suffix) repeated for every month column
MONTH_FIELDS = (
    ('achievedQuantity', 'Achieved'),
    ('consumedManhours', 'Consumed MH'),
    ('expectedManhours', 'Expected MH'),
)

TOTAL_FIELDS = (
    ('totalInstalledQuantity', 'Total Installed'),
    ('totalConsumedManhours', 'Total Consumed MH'),
    ('remainingQuantity', 'Remaining Qty'),
    ('progressPercent', 'Progress %'),
)

MAX_COLUMN_WIDTH = 50


def _style_header(ws, headers) -> None:
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")


def _fit_columns(ws) -> None:
    for column in ws.columns:
        values = [str(cell.value) for cell in column if cell.value is not None]
        width = max((len(value) for value in values), default=0)
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, MAX_COLUMN_WIDTH)


def build_progress_workbook(report: Dict[str, Any]) -> openpyxl.Workbook:
    """Workbook for a report built by ``AggregationEngine.build_monthly_report``"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Progress Report"

    headers = list(TASK_HEADERS)
    for column in report['columns']:
        headers.extend(f"{column['label']} {suffix}" for _, suffix in MONTH_FIELDS)
    headers.extend(label for _, label in TOTAL_FIELDS)
    _style_header(ws, headers)

    for row_index, row in enumerate(report['rows'], 2):
        task = row['task']
        values = [
            task['taskName'],
            task['categoryName'],
            task['activityCode'],
            task['unit'],
            task['budgetedQuantity'],
            task['totalBudgetedManhours'],
        ]
        for cell in row['cells']:
            # months without a record stay blank
            values.extend(cell[key] if cell is not None else None for key, _ in MONTH_FIELDS)
        values.extend(row['totals'][key] for key, _ in TOTAL_FIELDS)
        for col, value in enumerate(values, 1):
            ws.cell(row=row_index, column=col, value=value)

    ws.freeze_panes = "B2"
    _fit_columns(ws)

    summary = report['summary']
    summary_ws = wb.create_sheet("Summary")
    _style_header(summary_ws, ('Metric', 'Value'))
    summary_rows = (
        ('Project', str(report['projectId'])),
        ('Start Period', report['startPeriod']),
        ('End Period', report['endPeriod']),
        ('Total Tasks', summary['totalTasks']),
        ('Total Budgeted MH', summary['totalBudgetedManhours']),
        ('Total Consumed MH', summary['totalConsumedManhours']),
        ('Overall Progress %', summary['overallProgressPercent']),
    )
    for row_index, (label, value) in enumerate(summary_rows, 2):
        summary_ws.cell(row=row_index, column=1, value=label)
        summary_ws.cell(row=row_index, column=2, value=value)
    _fit_columns(summary_ws)
    return wb


def _default_range(engine: AggregationEngine, project_id: Any,
                   today: Optional[date]) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Recorded periods of the project, capped to the widest report; this month when nothing is recorded"""
    recorded = engine.recorded_range(project_id)
    if recorded is None:
        period = current_period(today)
        return period, period

    first, last = recorded
    earliest = last[0] * 12 + last[1] - REPORT_MAX_COLUMNS
    if first[0] * 12 + first[1] - 1 < earliest:
        year, month_index = divmod(earliest, 12)
        first = (year, month_index + 1)
    return first, last


def export_progress_report(engine: AggregationEngine, project_id: Any, start: Any = None,
                           end: Any = None, today: Optional[date] = None) -> Tuple[bytes, Dict[str, Any]]:
    """
    Build the monthly report and serialize it as .xlsx.

    Without ``start``/``end`` the report covers the recorded periods of the
    project.

    Returns:
        (workbook bytes, report dict)
    """
    if start is None or end is None:
        default_start, default_end = _default_range(engine, project_id, today)
        start = start or default_start
        end = end or default_end

    report = engine.build_monthly_report(project_id, start, end)
    output = io.BytesIO()
    build_progress_workbook(report).save(output)
    return output.getvalue(), report
