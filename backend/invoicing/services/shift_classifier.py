"""
Shift classification: day type of a job date and the split of worked hours into
regular / overtime / double-time buckets.

Rules (policy values from config/invoice_rules.yaml):
- Sunday or statutory holiday -> sunday_holiday; every worked hour is double time.
- Saturday -> split by TIME OF DAY: hours inside the overtime window (06:00-17:00
  on the shift's calendar day) are overtime, the rest double time. Breaks come
  off double time first, then overtime.
- Weekday -> split by TOTAL HOURS: first 8 regular, next 4 overtime, rest double time.

Hours are Decimal rounded to 0.01 (ROUND_HALF_UP); invalid or missing inputs
degrade (shift times -> unavailable, worked minutes -> duration or 8h default)
instead of raising.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from invoicing.rules.day_policy import DayTypePolicy

logger = logging.getLogger(__name__)

WEEKDAY = "weekday"
SATURDAY = "saturday"
SUNDAY_HOLIDAY = "sunday_holiday"
DAY_TYPES = (WEEKDAY, SATURDAY, SUNDAY_HOLIDAY)

REGULAR = "regular"
OVERTIME = "overtime"
DOUBLE_TIME = "double_time"
BUCKETS = (REGULAR, OVERTIME, DOUBLE_TIME)

HUNDREDTH = Decimal("0.01")
ZERO = Decimal("0")
_MICROSECONDS_PER_HOUR = Decimal(3_600_000_000)


def round_hours(value: Decimal) -> Decimal:
    return value.quantize(HUNDREDTH, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Number or numeric text to Decimal; None for missing or malformed values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            d = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    if not d.is_finite():
        return None
    return d


def minutes_to_hours(minutes: Decimal) -> Decimal:
    return round_hours(minutes / Decimal(60))


def _timedelta_hours(td: timedelta) -> Decimal:
    return Decimal(td // timedelta(microseconds=1)) / _MICROSECONDS_PER_HOUR


# ---------- Parsing (no timezone conversion of the job date) ----------


def parse_job_date(value: Any) -> Optional[date]:
    """
    Date part of the job start as written ("2025-03-08T07:00:00Z" -> 2025-03-08).
    The job date is never shifted across timezones.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    head = text.split("T")[0].split(" ")[0]
    try:
        return date.fromisoformat(head)
    except ValueError:
        logger.warning("job start_time %r has no readable date", value)
        return None


def parse_timestamp(value: Any, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    ISO timestamp -> datetime; None when unreadable. Aware values move into tz,
    or into the host's local zone when tz is not given. Naive values are kept.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("unreadable shift timestamp %r", value)
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(tz)
    return dt


# ---------- Day type ----------


def classify_day(job_date: Optional[date], policy: DayTypePolicy) -> str:
    if job_date is None:
        return WEEKDAY
    if job_date in policy.statutory_holidays or job_date.weekday() == 6:
        return SUNDAY_HOLIDAY
    if job_date.weekday() == 5:
        return SATURDAY
    return WEEKDAY


@dataclass(frozen=True)
class ShiftClassification:
    day_type: str
    # (bucket, hours) in BUCKETS order, only buckets with hours > 0
    buckets: Tuple[Tuple[str, Decimal], ...]
    worked_hours: Decimal
    used_fallback: bool = False

    def hours(self, bucket: str) -> Decimal:
        for name, h in self.buckets:
            if name == bucket:
                return h
        return ZERO

    @property
    def total_hours(self) -> Decimal:
        return sum((h for _, h in self.buckets), ZERO)


def _shift_window(start: Optional[datetime], end: Optional[datetime]) -> Optional[Tuple[datetime, datetime]]:
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        logger.warning("shift start/end mix naive and aware timestamps: %s / %s", start, end)
        return None
    if end <= start:
        logger.warning("shift end %s is not after start %s", end, start)
        return None
    return start, end


def worked_hours_for(
    worked_minutes: Optional[Decimal],
    shift: Optional[Tuple[datetime, datetime]],
    break_minutes: Optional[Decimal],
    policy: DayTypePolicy,
) -> Decimal:
    """Timesheet minutes if given, else shift duration minus breaks, else the default shift length."""
    if worked_minutes is not None:
        return max(minutes_to_hours(worked_minutes), ZERO)
    if shift is not None:
        duration = _timedelta_hours(shift[1] - shift[0])
        breaks = (break_minutes or ZERO) / Decimal(60)
        return max(round_hours(duration - breaks), ZERO)
    return round_hours(policy.default_shift_hours)


def _split_weekday(total: Decimal, policy: DayTypePolicy) -> Tuple[Decimal, Decimal, Decimal]:
    regular = min(total, policy.regular_cap_hours)
    overtime = min(max(total - policy.regular_cap_hours, ZERO), policy.overtime_cap_hours)
    double_time = max(total - policy.regular_cap_hours - policy.overtime_cap_hours, ZERO)
    return regular, overtime, double_time


def _split_saturday(
    start: datetime,
    end: datetime,
    worked: Decimal,
    policy: DayTypePolicy,
) -> Tuple[Decimal, Decimal]:
    """(overtime, double_time) by time of day; breaks off double time first, then overtime."""
    window_start = datetime.combine(start.date(), policy.saturday_overtime_start, tzinfo=start.tzinfo)
    window_end = datetime.combine(start.date(), policy.saturday_overtime_end, tzinfo=start.tzinfo)
    overlap_start = max(start, window_start)
    overlap_end = min(end, window_end)

    raw_overtime = ZERO
    if overlap_start < overlap_end:
        raw_overtime = _timedelta_hours(overlap_end - overlap_start)
    shift_hours = _timedelta_hours(end - start)
    raw_double_time = shift_hours - raw_overtime

    break_hours = max(shift_hours - worked, ZERO)
    if break_hours <= raw_double_time:
        overtime = raw_overtime
        double_time = raw_double_time - break_hours
    else:
        overtime = max(raw_overtime - (break_hours - raw_double_time), ZERO)
        double_time = ZERO

    # Round the sum once so the two buckets add up to the billable hours exactly
    overtime_r = round_hours(overtime)
    double_time_r = max(round_hours(overtime + double_time) - overtime_r, ZERO)
    return overtime_r, double_time_r


def classify_shift(
    job_date: Optional[date],
    shift_start: Optional[datetime],
    shift_end: Optional[datetime],
    worked_minutes: Optional[Decimal],
    policy: DayTypePolicy,
    break_minutes: Optional[Decimal] = None,
) -> ShiftClassification:
    """
    Day type of job_date plus the ordered (bucket, hours) split of the shift.
    worked_minutes may already exclude breaks (timesheet total); when absent the
    shift duration minus break_minutes is used, and the policy default when the
    shift times are unusable too.
    """
    day_type = classify_day(job_date, policy)
    shift = _shift_window(shift_start, shift_end)
    worked = worked_hours_for(worked_minutes, shift, break_minutes, policy)
    used_fallback = False

    if day_type == SUNDAY_HOLIDAY:
        split = (ZERO, ZERO, worked)
    elif day_type == SATURDAY:
        if shift is not None:
            overtime, double_time = _split_saturday(shift[0], shift[1], worked, policy)
        else:
            # Shift times unknown: overtime up to the window length, remainder double time
            cap = policy.saturday_fallback_overtime_cap_hours
            overtime = min(worked, cap)
            double_time = max(worked - cap, ZERO)
            used_fallback = True
            logger.warning(
                "saturday shift on %s has no usable start/end; fallback split overtime=%s double_time=%s",
                job_date, overtime, double_time,
            )
        split = (ZERO, overtime, double_time)
    else:
        split = _split_weekday(worked, policy)

    buckets = tuple((name, round_hours(hours)) for name, hours in zip(BUCKETS, split) if hours > 0)
    return ShiftClassification(
        day_type=day_type,
        buckets=buckets,
        worked_hours=worked,
        used_fallback=used_fallback,
    )
