"""Layer 7 - Excel export.

Writes the unbilled summary and invoice drafts to fresh workbooks.
Excel formulas are NOT relied upon: every value is computed in Python and
rounded to cents only when written.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

import openpyxl
from openpyxl.styles import Alignment, Border, Font, Side
from openpyxl.utils import get_column_letter

from billing_tool.engine.draft import compute_totals, effective_values, selected_entries
from billing_tool.formatting import round_amount
from billing_tool.models import ClientRef, ClientSummary, DraftState, TimeEntry

logger = logging.getLogger(__name__)

TITLE_ROW = 1
HEADER_ROW = 3
DATA_START_ROW = 4

SUMMARY_HEADERS = ["Client", "Case", "Case Title", "Entries", "Hours", "Amount", "Oldest Entry"]
DRAFT_HEADERS = ["Date", "Case", "Description", "Hours", "Rate", "Amount", "Adjusted"]
MANUAL_HEADERS = ["Description", "Quantity", "Unit Price", "Amount"]

# Formatting constants
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin'),
)

HEADER_FONT = Font(name='Calibri', size=11, bold=True)
DATA_FONT = Font(name='Calibri', size=11)
TITLE_FONT = Font(name='Calibri', size=12, bold=True)
CENTER_ALIGN = Alignment(horizontal='center', vertical='center')
NUMBER_FORMAT = '#,##0.00'
HOURS_FORMAT = '0.0'
DATE_FORMAT = 'yyyy-mm-dd'


def _money(value: Decimal) -> float:
    return float(round_amount(value))


def _write_title(ws, title: str, last_col: int) -> None:
    ws.merge_cells(start_row=TITLE_ROW, start_column=1, end_row=TITLE_ROW, end_column=last_col)
    cell = ws.cell(row=TITLE_ROW, column=1)
    cell.value = title
    cell.font = TITLE_FONT
    cell.alignment = CENTER_ALIGN


def _write_headers(ws, row: int, headers: list[str]) -> None:
    for col, label in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col)
        cell.value = label
        cell.font = HEADER_FONT
        cell.alignment = CENTER_ALIGN
        cell.border = THIN_BORDER


def _write_row(ws, row: int, values: list, bold: bool = False, formats: Optional[dict[int, str]] = None) -> None:
    formats = formats or {}
    for col, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col)
        cell.value = value
        cell.font = HEADER_FONT if bold else DATA_FONT
        cell.border = THIN_BORDER
        if col in formats:
            cell.number_format = formats[col]


def _set_widths(ws, widths: list[int]) -> None:
    for col, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col)].width = width


def generate_summary_report(
    summaries: Iterable[ClientSummary],
    output_path: str | Path,
) -> Path:
    """Write one row per case group, a subtotal row per client and a grand total."""
    output_path = Path(output_path)
    summaries = list(summaries)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Unbilled"

    _write_title(ws, 'Unbilled Time Summary', len(SUMMARY_HEADERS))
    _write_headers(ws, HEADER_ROW, SUMMARY_HEADERS)
    formats = {5: HOURS_FORMAT, 6: NUMBER_FORMAT, 7: DATE_FORMAT}

    row = DATA_START_ROW
    for summary in summaries:
        for group in summary.case_groups:
            _write_row(ws, row, [
                summary.client.name,
                group.case_number,
                group.case_title,
                group.entry_count,
                float(group.total_hours),
                _money(group.total_amount),
                None,
            ], formats=formats)
            row += 1

        oldest = summary.oldest_entry_date
        _write_row(ws, row, [
            f"Total {summary.client.name}",
            None,
            None,
            summary.entry_count,
            float(summary.total_hours),
            _money(summary.total_amount),
            datetime(oldest.year, oldest.month, oldest.day) if oldest else None,
        ], bold=True, formats=formats)
        row += 1

    grand_hours = sum((s.total_hours for s in summaries), Decimal("0"))
    grand_amount = sum((s.total_amount for s in summaries), Decimal("0"))
    _write_row(ws, row, [
        'Grand Total',
        None,
        None,
        sum(s.entry_count for s in summaries),
        float(grand_hours),
        _money(grand_amount),
        None,
    ], bold=True, formats=formats)

    _set_widths(ws, [30, 16, 40, 10, 10, 16, 14])
    wb.save(str(output_path))
    logger.info("Summary report saved to %s (%d client(s))", output_path, len(summaries))
    return output_path


def generate_draft_report(
    entries: Iterable[TimeEntry],
    state: DraftState,
    client: ClientRef,
    output_path: str | Path,
) -> Path:
    """Write an invoice draft: time lines, subtotal, discount, manual lines, grand total."""
    output_path = Path(output_path)
    entries = list(entries)
    totals = compute_totals(entries, state)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Draft"

    _write_title(ws, f'Invoice Draft - {client.name}', len(DRAFT_HEADERS))
    _write_headers(ws, HEADER_ROW, DRAFT_HEADERS)
    formats = {1: DATE_FORMAT, 4: HOURS_FORMAT, 5: NUMBER_FORMAT, 6: NUMBER_FORMAT}

    row = DATA_START_ROW
    for entry in selected_entries(entries, state):
        adjustment = state.adjustment_for(entry.id)
        values = effective_values(entry, adjustment)
        _write_row(ws, row, [
            datetime(entry.date.year, entry.date.month, entry.date.day),
            entry.case.number if entry.case else '-',
            entry.description,
            float(values.hours),
            _money(entry.rate),
            _money(values.amount),
            'yes' if adjustment is not None and not adjustment.is_empty else '',
        ], formats=formats)
        row += 1

    _write_row(ws, row, ['Subtotal', None, None, float(totals.total_hours), None,
                         _money(totals.total_time_amount), None], bold=True, formats=formats)
    row += 1
    if totals.has_discount:
        _write_row(ws, row, ['Discount', None, None, None, None,
                             -_money(totals.discount), None], formats=formats)
        row += 1
    _write_row(ws, row, ['Total', None, None, float(totals.total_hours), None,
                         _money(totals.final_total), None], bold=True, formats=formats)
    row += 2

    if state.manual_items:
        _write_headers(ws, row, MANUAL_HEADERS)
        row += 1
        manual_formats = {2: NUMBER_FORMAT, 3: NUMBER_FORMAT, 4: NUMBER_FORMAT}
        for item in state.manual_items:
            _write_row(ws, row, [
                item.description,
                float(item.quantity),
                _money(item.unit_price),
                _money(item.amount),
            ], formats=manual_formats)
            row += 1
        _write_row(ws, row, ['Manual lines', None, None, _money(totals.manual_items_total)],
                   bold=True, formats=manual_formats)
        row += 2

    _write_row(ws, row, ['Grand Total', None, None, None, None,
                         _money(totals.grand_total), None], bold=True, formats=formats)

    _set_widths(ws, [14, 16, 40, 10, 12, 16, 10])
    wb.save(str(output_path))
    logger.info("Draft report saved to %s", output_path)
    return output_path
