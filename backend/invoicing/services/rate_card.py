"""
Customer rate card, re-modeled from the flat row (five *_service_* columns per
rate type) into typed tuples keyed by (day type, bucket).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from invoicing.rules.positions import normalize_position
from invoicing.schemas import CustomerRate
from invoicing.services.shift_classifier import (
    DOUBLE_TIME,
    OVERTIME,
    REGULAR,
    SATURDAY,
    SUNDAY_HOLIDAY,
    WEEKDAY,
    ZERO,
    to_decimal,
)

BASE = "base"
MOBILIZATION = "mobilization"

# (day type, bucket) -> rate type; saturday/sunday regular never exists
RATE_KEYS: Dict[Tuple[str, str], str] = {
    (WEEKDAY, REGULAR): "weekday_regular",
    (WEEKDAY, OVERTIME): "weekday_overtime",
    (WEEKDAY, DOUBLE_TIME): "weekday_double_time",
    (SATURDAY, OVERTIME): "saturday_overtime",
    (SATURDAY, DOUBLE_TIME): "saturday_double_time",
    (SUNDAY_HOLIDAY, DOUBLE_TIME): "sunday_holiday_double_time",
}
RATE_TYPES = tuple(RATE_KEYS.values()) + (MOBILIZATION,)


def rate_type_name(day_type: str, bucket: str) -> str:
    """Name a (day type, bucket) requirement, e.g. saturday_overtime."""
    return RATE_KEYS.get((day_type, bucket), f"{day_type}_{bucket}")


def parse_price(value) -> Decimal:
    """Price as number or text; blank or malformed prices count as 0 (unpriced)."""
    d = to_decimal(value)
    return d if d is not None else ZERO


@dataclass(frozen=True)
class RateTuple:
    name: str
    category: str = ""
    price: Decimal = ZERO
    tax_code_id: str = ""
    service_id: Optional[str] = None

    @property
    def usable(self) -> bool:
        """A tuple prices a bucket only with a service name and a non-zero price."""
        return bool(self.name) and self.price != 0

    @property
    def service_display(self) -> str:
        return f"{self.category}:{self.name}" if self.category else self.name


def _tuple_from_row(row: CustomerRate, prefix: str) -> Optional[RateTuple]:
    """Read the {prefix}service_* columns; None when the row carries nothing for it."""
    name = (getattr(row, f"{prefix}service_name") or "").strip()
    service_id = getattr(row, f"{prefix}service_id")
    raw_price = getattr(row, f"{prefix}service_price")
    if not name and not service_id and raw_price in (None, ""):
        return None
    return RateTuple(
        name=name,
        category=(getattr(row, f"{prefix}service_category") or "").strip(),
        price=parse_price(raw_price),
        tax_code_id=(getattr(row, f"{prefix}service_tax_code_id") or "").strip(),
        service_id=service_id,
    )


@dataclass(frozen=True)
class RateCardRow:
    """One position of one customer: base service plus up to seven rate tuples."""
    position: str
    base: Optional[RateTuple] = None
    weekday_regular: Optional[RateTuple] = None
    weekday_overtime: Optional[RateTuple] = None
    weekday_double_time: Optional[RateTuple] = None
    saturday_overtime: Optional[RateTuple] = None
    saturday_double_time: Optional[RateTuple] = None
    sunday_holiday_double_time: Optional[RateTuple] = None
    mobilization: Optional[RateTuple] = None

    def get(self, rate_key: str) -> Optional[RateTuple]:
        if rate_key != BASE and rate_key not in RATE_TYPES:
            return None
        return getattr(self, rate_key)

    def tuple_for(self, day_type: str, bucket: str) -> Optional[RateTuple]:
        key = RATE_KEYS.get((day_type, bucket))
        return getattr(self, key) if key else None

    @classmethod
    def from_customer_rate(cls, row: CustomerRate) -> "RateCardRow":
        tuples = {key: _tuple_from_row(row, f"{key}_") for key in RATE_TYPES}
        return cls(position=normalize_position(row.position), base=_tuple_from_row(row, ""), **tuples)


@dataclass(frozen=True)
class RateCard:
    rows: Mapping[str, RateCardRow] = field(default_factory=dict)

    def row_for(self, position: Optional[str]) -> Optional[RateCardRow]:
        return self.rows.get(normalize_position(position))

    def __len__(self) -> int:
        return len(self.rows)


def build_rate_card(rates: Iterable[CustomerRate]) -> RateCard:
    """Rows keyed by normalized position; the first row of a position wins."""
    rows: Dict[str, RateCardRow] = {}
    for rate in rates:
        row = RateCardRow.from_customer_rate(rate)
        if not row.position or row.position in rows:
            continue
        rows[row.position] = row
    return RateCard(rows=rows)


def as_rate_card(rates: Union[RateCard, Iterable[CustomerRate]]) -> RateCard:
    if isinstance(rates, RateCard):
        return rates
    return build_rate_card(rates)
