"""
Invoice line items from completed jobs.

Per job, per worker shift (timesheet entry preferred over schedule, one per
worker): classify the hours, price each non-empty bucket through the rate
fallback chain, then add at most one mobilization item once an hour item
exists. Unpriced buckets are skipped (the coverage audit reports them).
Output is sorted by service date (stable), inputs are never modified.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Union

from invoicing.rules.day_policy import DayTypePolicy, load_policy
from invoicing.rules.positions import normalize_position, position_label
from invoicing.schemas import CustomerRate, JobDetail, LineItem, ServiceCatalogItem
from invoicing.services.mobilization import qualifies_for_mobilization, vehicle_type_label
from invoicing.services.rate_card import MOBILIZATION, RateCard, as_rate_card
from invoicing.services.rate_resolver import ResolvedRate, resolve_mobilization, resolve_rate
from invoicing.services.shift_classifier import DOUBLE_TIME, OVERTIME
from invoicing.services.worker_shifts import WorkerShift, classify_worker_shift, collect_worker_shifts, local_zone

logger = logging.getLogger(__name__)

DESCRIPTION_SUFFIX = {OVERTIME: " (OT)", DOUBLE_TIME: " (DT)"}
MOBILIZATION_LABEL = "Mobilization"


def round_money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_clock(dt: datetime) -> str:
    """12-hour clock: 8:00 AM, 12:30 PM"""
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {meridiem}"


def shift_times_label(shift: WorkerShift) -> str:
    if shift.shift_start is None or shift.shift_end is None:
        return ""
    return f"{format_clock(shift.shift_start)} - {format_clock(shift.shift_end)}"


class _ItemBuilder:
    """Collects items for one generation run; ids follow creation order."""

    def __init__(self, policy: DayTypePolicy):
        self.policy = policy
        self.items: List[LineItem] = []

    def _next_id(self) -> str:
        return f"item-{len(self.items) + 1}"

    def add_hours(self, shift: WorkerShift, bucket: str, hours: Decimal, rate: ResolvedRate) -> None:
        self.items.append(
            LineItem(
                id=self._next_id(),
                job_id=shift.job_id,
                job_number=shift.job_number,
                worker_id=shift.worker_id,
                rate_type=rate.rate_type,
                title=rate.service_name,
                description=f"{rate.service_name}-{shift.job_number}{DESCRIPTION_SUFFIX.get(bucket, '')}",
                service=rate.service_display,
                service_date=shift.service_date,
                price=rate.price,
                quantity=hours,
                tax_code_id=rate.tax_code_id,
                total=round_money(rate.price * hours),
                worker_name=shift.worker_name,
                position=position_label(shift.position, self.policy.position_labels),
                position_key=normalize_position(shift.position),
                shift_times=shift_times_label(shift),
                break_minutes=shift.break_minutes,
                travel_minutes=shift.travel_minutes,
            )
        )

    def add_mobilization(self, shift: WorkerShift, rate: ResolvedRate, vehicle_type: str) -> None:
        self.items.append(
            LineItem(
                id=self._next_id(),
                job_id=shift.job_id,
                job_number=shift.job_number,
                worker_id=shift.worker_id,
                rate_type=MOBILIZATION,
                title=rate.service_name,
                description=f"{MOBILIZATION_LABEL}-{shift.job_number}",
                service=rate.service_display,
                service_date=shift.service_date,
                price=rate.price,
                quantity=Decimal("1"),
                tax_code_id=rate.tax_code_id,
                total=round_money(rate.price),
                worker_name=shift.worker_name,
                position=MOBILIZATION_LABEL,
                position_key=normalize_position(shift.position),
                vehicle_type=vehicle_type,
            )
        )


def _job_items(
    builder: _ItemBuilder,
    job: JobDetail,
    rate_card: RateCard,
    services: tuple,
    tz,
) -> None:
    policy = builder.policy
    for shift in collect_worker_shifts(job, tz):
        if rate_card.row_for(shift.position) is None:
            logger.warning("job %s: no rate row for position %s, worker %s skipped", job.job_number, shift.position, shift.worker_id)
            continue
        classification = classify_worker_shift(shift, policy)
        billed = False
        for bucket, hours in classification.buckets:
            rate = resolve_rate(classification.day_type, bucket, shift.position, rate_card, services)
            if rate is None:
                logger.warning(
                    "job %s worker %s: no price for %s %s_%s, item skipped",
                    job.job_number, shift.worker_id, shift.position, classification.day_type, bucket,
                )
                continue
            builder.add_hours(shift, bucket, hours, rate)
            billed = True

        if not billed:
            continue
        if not qualifies_for_mobilization(shift.worker_id, shift.position, job.vehicles, job.timesheets, policy):
            continue
        mobilization = resolve_mobilization(shift.position, rate_card, services)
        if mobilization is None:
            logger.warning("job %s worker %s: mobilization not priced for %s", job.job_number, shift.worker_id, shift.position)
            continue
        builder.add_mobilization(shift, mobilization, vehicle_type_label(shift.worker_id, job.vehicles))


def _service_date_key(item: LineItem) -> date:
    try:
        return date.fromisoformat(item.service_date)
    except ValueError:
        return date.min


def generate_line_items(
    jobs: Iterable[JobDetail],
    rates: Union[RateCard, Iterable[CustomerRate]],
    services: Iterable[ServiceCatalogItem] = (),
    policy: Optional[DayTypePolicy] = None,
) -> List[LineItem]:
    """Priced line items for all jobs, oldest service date first."""
    policy = policy or load_policy()
    rate_card = as_rate_card(rates)
    services = tuple(services)
    tz = local_zone()

    builder = _ItemBuilder(policy)
    for job in jobs:
        _job_items(builder, job, rate_card, services, tz)
    return sorted(builder.items, key=_service_date_key)
