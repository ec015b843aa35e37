"""Invoice preview line items as an Excel workbook (same columns as the preview table)."""
import io
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, Side

from invoicing.schemas import InvoiceTotals, LineItem

EXCEL_HEADERS = [
    "Date", "Job #", "Worker", "Position", "Shift", "Service", "Description",
    "Qty", "Rate", "Tax Code", "Amount", "Vehicle", "Break (min)", "Travel (min)",
]


def _write_headers(ws, row_idx: int) -> None:
    thin = Side(style="thin")
    header_font = Font(bold=True)
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for col, h in enumerate(EXCEL_HEADERS, start=1):
        cell = ws.cell(row=row_idx, column=col, value=h)
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = Border(top=thin, bottom=thin, left=thin, right=thin)


def _number(value):
    return float(value) if value is not None else None


def _write_item_row(ws, row_idx: int, item: LineItem) -> None:
    values = [
        item.service_date,
        item.job_number,
        item.worker_name,
        item.position,
        item.shift_times,
        item.service,
        item.description,
        _number(item.quantity),
        _number(item.price),
        item.tax_code_id,
        _number(item.total),
        item.vehicle_type,
        _number(item.break_minutes),
        _number(item.travel_minutes),
    ]
    for col, value in enumerate(values, start=1):
        ws.cell(row=row_idx, column=col, value=value)


def _write_totals(ws, row_idx: int, totals: InvoiceTotals) -> None:
    label_col = EXCEL_HEADERS.index("Tax Code") + 1
    amount_col = EXCEL_HEADERS.index("Amount") + 1
    rows = [
        ("Subtotal", totals.subtotal),
        ("Discount", -totals.discount_amount),
        ("Taxes", totals.taxes),
        ("Total", totals.total_amount),
    ]
    for offset, (label, amount) in enumerate(rows):
        ws.cell(row=row_idx + offset, column=label_col, value=label).font = Font(bold=True)
        ws.cell(row=row_idx + offset, column=amount_col, value=float(amount))


def _apply_default_width(ws) -> None:
    for col in range(1, len(EXCEL_HEADERS) + 1):
        ws.column_dimensions[ws.cell(row=1, column=col).column_letter].width = 14
    ws.column_dimensions["G"].width = 32


def build_line_items_excel(
    items: List[LineItem],
    totals: Optional[InvoiceTotals] = None,
    sheet_name: str = "Invoice Preview",
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]  # Excel sheet name length limit

    _write_headers(ws, 1)
    for row_idx, item in enumerate(items, start=2):
        _write_item_row(ws, row_idx, item)
    if totals is not None:
        _write_totals(ws, len(items) + 3, totals)
    _apply_default_width(ws)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()
