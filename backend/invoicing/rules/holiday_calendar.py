import logging
from datetime import date, datetime
from typing import FrozenSet, Iterable, Set

logger = logging.getLogger(__name__)


def parse_holiday_dates(raw_dates: Iterable) -> FrozenSet[date]:
    """ISO strings (or dates) from the policy file; unparseable entries are skipped."""
    holidays: Set[date] = set()
    for raw in raw_dates or []:
        if isinstance(raw, datetime):
            holidays.add(raw.date())
            continue
        if isinstance(raw, date):
            holidays.add(raw)
            continue
        try:
            holidays.add(datetime.strptime(str(raw).strip(), "%Y-%m-%d").date())
        except ValueError:
            logger.warning("statutory_holidays: skipping invalid date %r", raw)
            continue
    return frozenset(holidays)

