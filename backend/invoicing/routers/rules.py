"""Rules API: active day-type policy for invoice hours (from config/invoice_rules.yaml)"""
from typing import Any, Dict
from fastapi import APIRouter

from invoicing.rules.day_policy import get_invoice_policy

router = APIRouter(prefix="/api/rules", tags=["rules"])


@router.get("/invoice-policy", response_model=Dict[str, Any])
async def read_invoice_policy() -> Dict[str, Any]:
    """Overtime window, weekday caps, mobilization positions, labels and holidays in effect."""
    return get_invoice_policy()
