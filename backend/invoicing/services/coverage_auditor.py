"""
Coverage audit: which (position, rate type) pairs a set of jobs needs that the
customer's rate card cannot price. Uses the same worker shifts, classifier and
resolver as the line-item generator, so a pair is reported here exactly when
the generator would have to skip it.
"""
import logging
from typing import Dict, Iterable, List, Optional, Union

from invoicing.rules.day_policy import DayTypePolicy, load_policy
from invoicing.rules.positions import normalize_position
from invoicing.schemas import CoverageGap, CoverageReport, CustomerRate, JobDetail
from invoicing.services.mobilization import qualifies_for_mobilization
from invoicing.services.rate_card import MOBILIZATION, RATE_TYPES, RateCard, as_rate_card, rate_type_name
from invoicing.services.rate_resolver import resolve_mobilization, resolve_rate
from invoicing.services.worker_shifts import classify_worker_shift, collect_worker_shifts, local_zone

logger = logging.getLogger(__name__)


def _gap_sort_key(gap: CoverageGap):
    order = RATE_TYPES.index(gap.rate_type) if gap.rate_type in RATE_TYPES else len(RATE_TYPES)
    return (gap.position, order, gap.rate_type)


def find_coverage_gaps(
    jobs: Iterable[JobDetail],
    rates: Union[RateCard, Iterable[CustomerRate]],
    policy: Optional[DayTypePolicy] = None,
) -> List[CoverageGap]:
    """Deduplicated gaps, sorted by position then rate type."""
    policy = policy or load_policy()
    rate_card = as_rate_card(rates)
    tz = local_zone()
    gaps: Dict[CoverageGap, None] = {}

    for job in jobs:
        for shift in collect_worker_shifts(job, tz):
            position = normalize_position(shift.position)
            if rate_card.row_for(position) is None:
                logger.warning("job %s: no rate row for position %s", job.job_number, position)
            classification = classify_worker_shift(shift, policy)
            for bucket, _hours in classification.buckets:
                if resolve_rate(classification.day_type, bucket, position, rate_card) is None:
                    gaps.setdefault(CoverageGap(position=position, rate_type=rate_type_name(classification.day_type, bucket)))
            if qualifies_for_mobilization(shift.worker_id, position, job.vehicles, job.timesheets, policy):
                if resolve_mobilization(position, rate_card) is None:
                    gaps.setdefault(CoverageGap(position=position, rate_type=MOBILIZATION))

    return sorted(gaps, key=_gap_sort_key)


def audit_coverage(
    jobs: Iterable[JobDetail],
    rates: Union[RateCard, Iterable[CustomerRate]],
    policy: Optional[DayTypePolicy] = None,
) -> CoverageReport:
    """Gaps plus the positions they affect; invoice generation is allowed only with no gaps."""
    gaps = find_coverage_gaps(jobs, rates, policy)
    missing_positions = sorted({g.position for g in gaps})
    return CoverageReport(gaps=gaps, missing_positions=missing_positions, can_generate=not gaps)
