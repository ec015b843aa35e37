"""
Rate resolution: (day type, bucket, position) -> priced, taxed service.

Fallback chain, first usable tuple (non-empty name AND non-zero price) wins:
- the exact tuple, e.g. saturday_overtime;
- double_time falls back to overtime, overtime to regular (same day type);
- regular is weekday_regular on weekdays; saturday/sunday_holiday regular does not
  exist and regular always ends at the position's base service.
Unresolved -> None: no line item, and the coverage auditor reports a gap.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from invoicing.schemas import ServiceCatalogItem
from invoicing.services.rate_card import BASE, MOBILIZATION, RATE_KEYS, RateCard, RateTuple, rate_type_name
from invoicing.services.shift_classifier import DOUBLE_TIME, OVERTIME, REGULAR

logger = logging.getLogger(__name__)

# Next bucket to try when a bucket has no usable tuple
FALLBACK_BUCKET = {DOUBLE_TIME: OVERTIME, OVERTIME: REGULAR}


@dataclass(frozen=True)
class ResolvedRate:
    rate_type: str
    source: str
    service_name: str
    service_category: str
    price: Decimal
    tax_code_id: str

    @property
    def service_display(self) -> str:
        return f"{self.service_category}:{self.service_name}" if self.service_category else self.service_name

    @property
    def is_fallback(self) -> bool:
        return self.source != self.rate_type


def fallback_chain(day_type: str, bucket: str) -> Tuple[str, ...]:
    """Rate keys tried for a bucket, most specific first; always ends at the base service."""
    keys = []
    current: Optional[str] = bucket
    while current is not None:
        key = RATE_KEYS.get((day_type, current))
        if key is not None:
            keys.append(key)
        if current == REGULAR:
            break
        current = FALLBACK_BUCKET.get(current)
    keys.append(BASE)
    return tuple(keys)


def lookup_tax_code(name: str, category: str, services: Iterable[ServiceCatalogItem]) -> str:
    """Tax code of the catalog service matching "category:name" or the bare name."""
    display = f"{category}:{name}" if category else name
    for s in services:
        s_display = f"{s.category}:{s.name}" if s.category else s.name
        if s_display == display or s.name == name:
            return s.tax_code_id or ""
    return ""


def _resolved(rate_type: str, source: str, t: RateTuple, services: Iterable[ServiceCatalogItem]) -> ResolvedRate:
    return ResolvedRate(
        rate_type=rate_type,
        source=source,
        service_name=t.name,
        service_category=t.category,
        price=t.price,
        tax_code_id=t.tax_code_id or lookup_tax_code(t.name, t.category, services),
    )


def resolve_rate(
    day_type: str,
    bucket: str,
    position: Optional[str],
    rate_card: RateCard,
    services: Iterable[ServiceCatalogItem] = (),
) -> Optional[ResolvedRate]:
    row = rate_card.row_for(position)
    if row is None:
        return None
    rate_type = rate_type_name(day_type, bucket)
    for key in fallback_chain(day_type, bucket):
        t = row.get(key)
        if t is None or not t.usable:
            continue
        if key != rate_type:
            logger.debug("%s %s: %s not priced, using %s", row.position, rate_type, rate_type, key)
        return _resolved(rate_type, key, t, services)
    return None


def resolve_mobilization(
    position: Optional[str],
    rate_card: RateCard,
    services: Iterable[ServiceCatalogItem] = (),
) -> Optional[ResolvedRate]:
    """Mobilization is priced only from the position's own mobilization tuple."""
    row = rate_card.row_for(position)
    if row is None or row.mobilization is None or not row.mobilization.usable:
        return None
    return _resolved(MOBILIZATION, MOBILIZATION, row.mobilization, services)
