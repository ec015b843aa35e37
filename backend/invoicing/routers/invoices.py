"""Invoice generation API: line-item preview, rate coverage check, Excel export. Stateless; callers supply the fetched snapshots."""
import io
from datetime import date

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from invoicing.rules.day_policy import load_policy
from invoicing.schemas import (
    CoverageReport,
    CoverageRequest,
    InvoicePreviewRequest,
    InvoicePreviewResponse,
)
from invoicing.services.coverage_auditor import audit_coverage
from invoicing.services.invoice_totals import compute_invoice_totals
from invoicing.services.line_item_export import build_line_items_excel
from invoicing.services.line_items import generate_line_items
from invoicing.services.rate_card import build_rate_card
from invoicing.utils.http_headers import build_content_disposition

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _build_preview(body: InvoicePreviewRequest) -> InvoicePreviewResponse:
    try:
        policy = load_policy()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    rate_card = build_rate_card(body.rates)
    items = generate_line_items(body.jobs, rate_card, body.services, policy)
    report = audit_coverage(body.jobs, rate_card, policy)
    totals = compute_invoice_totals(items, body.tax_codes, body.discount)
    return InvoicePreviewResponse(
        items=items,
        gaps=report.gaps,
        missing_positions=report.missing_positions,
        can_generate=report.can_generate,
        totals=totals,
    )


@router.post("/preview", response_model=InvoicePreviewResponse)
async def preview_invoice(body: InvoicePreviewRequest) -> InvoicePreviewResponse:
    """
    Line items for the selected jobs priced with the customer's rates, plus the
    missing-rate report. can_generate is false while any gap remains.
    """
    if not body.jobs:
        raise HTTPException(status_code=400, detail="Select at least one job")
    return _build_preview(body)


@router.post("/coverage", response_model=CoverageReport)
async def check_rate_coverage(body: CoverageRequest) -> CoverageReport:
    """Missing (position, rate type) pairs that block invoice generation"""
    try:
        policy = load_policy()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return audit_coverage(body.jobs, body.rates, policy)


@router.post("/preview/export")
async def export_invoice_preview(body: InvoicePreviewRequest):
    """Preview line items and totals as .xlsx"""
    if not body.jobs:
        raise HTTPException(status_code=400, detail="Select at least one job")
    preview = _build_preview(body)
    content = build_line_items_excel(preview.items, preview.totals)
    job_numbers = sorted({job.job_number for job in body.jobs})
    suffix = job_numbers[0] if len(job_numbers) == 1 else date.today().isoformat()
    filename = f"invoice_preview_{suffix}.xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": build_content_disposition(filename)},
    )
