"""
Invoice totals over line items.
- subtotal = sum(price * quantity)
- discount: percent of subtotal, or a fixed amount (never more than the subtotal)
- taxes = sum(item subtotal * tax rate(tax code) / 100), before discount
- total = subtotal - discount + taxes
All amounts rounded to cents (ROUND_HALF_UP).
"""
from decimal import Decimal
from typing import Dict, Iterable, Optional

from invoicing.schemas import Discount, InvoiceTotals, LineItem, TaxCode
from invoicing.services.line_items import round_money

ZERO = Decimal("0")


def compute_invoice_totals(
    items: Iterable[LineItem],
    tax_codes: Iterable[TaxCode] = (),
    discount: Optional[Discount] = None,
) -> InvoiceTotals:
    rates: Dict[str, Decimal] = {tc.id: tc.rate for tc in tax_codes}
    subtotal = ZERO
    taxes = ZERO
    for item in items:
        item_subtotal = item.price * item.quantity
        subtotal += item_subtotal
        taxes += item_subtotal * rates.get(item.tax_code_id, ZERO) / Decimal(100)

    discount_amount = ZERO
    if discount is not None:
        if discount.type == "percent":
            discount_amount = subtotal * discount.value / Decimal(100)
        else:
            discount_amount = discount.value
        discount_amount = min(discount_amount, subtotal)

    subtotal = round_money(subtotal)
    discount_amount = round_money(discount_amount)
    taxes = round_money(taxes)
    return InvoiceTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxes=taxes,
        total_amount=subtotal - discount_amount + taxes,
    )
