"""
Shift classifier unit tests.
Covers: day type, weekday total-hours split, Saturday time-of-day split with
break deduction, Sunday all double time, degraded inputs.
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from invoicing.rules.day_policy import policy_from_dict
from invoicing.services.shift_classifier import (
    DOUBLE_TIME,
    OVERTIME,
    REGULAR,
    SATURDAY,
    SUNDAY_HOLIDAY,
    WEEKDAY,
    classify_day,
    classify_shift,
    parse_job_date,
    parse_timestamp,
    to_decimal,
)

POLICY = policy_from_dict({})

MONDAY = date(2025, 3, 10)
SATURDAY_DATE = date(2025, 3, 8)
SUNDAY_DATE = date(2025, 3, 9)


def _at(d: date, hour: int, minute: int = 0) -> datetime:
    return datetime(d.year, d.month, d.day, hour, minute)


# ---------- Day type ----------


def test_classify_day_by_weekday():
    assert classify_day(MONDAY, POLICY) == WEEKDAY
    assert classify_day(date(2025, 3, 14), POLICY) == WEEKDAY  # Friday
    assert classify_day(SATURDAY_DATE, POLICY) == SATURDAY
    assert classify_day(SUNDAY_DATE, POLICY) == SUNDAY_HOLIDAY


def test_classify_day_statutory_holiday():
    """Configured holidays bill like Sundays"""
    policy = policy_from_dict({"statutory_holidays": ["2025-07-01"]})
    assert classify_day(date(2025, 7, 1), policy) == SUNDAY_HOLIDAY
    assert classify_day(date(2025, 7, 2), policy) == WEEKDAY


def test_classify_day_without_date_is_weekday():
    assert classify_day(None, POLICY) == WEEKDAY


def test_parse_job_date_keeps_written_date():
    """Date part as written, no timezone shift"""
    assert parse_job_date("2025-03-08T23:30:00-08:00") == date(2025, 3, 8)
    assert parse_job_date("2025-03-08 06:00:00") == date(2025, 3, 8)
    assert parse_job_date("2025-03-08") == date(2025, 3, 8)
    assert parse_job_date("not a date") is None
    assert parse_job_date(None) is None


def test_parse_timestamp():
    assert parse_timestamp("2025-03-10T08:00:00") == datetime(2025, 3, 10, 8, 0)
    aware = parse_timestamp("2025-03-10T16:00:00Z")
    assert aware == datetime(2025, 3, 10, 16, 0, tzinfo=timezone.utc)
    assert parse_timestamp("garbage") is None
    assert parse_timestamp("") is None


def test_parse_timestamp_moves_aware_into_zone():
    tz = timezone(timedelta(hours=-8))
    dt = parse_timestamp("2025-03-10T16:00:00Z", tz)
    assert dt.hour == 8
    # naive values are left alone
    assert parse_timestamp("2025-03-10T16:00:00", tz).hour == 16


def test_to_decimal():
    assert to_decimal("45.50") == Decimal("45.50")
    assert to_decimal(" 12 ") == Decimal("12")
    assert to_decimal("abc") is None
    assert to_decimal("") is None
    assert to_decimal(None) is None
    assert to_decimal("NaN") is None


# ---------- Weekday: split by total hours ----------


def test_weekday_ten_hours_regular_and_overtime():
    """08:00-18:00 no breaks -> 8h regular + 2h overtime"""
    c = classify_shift(MONDAY, _at(MONDAY, 8), _at(MONDAY, 18), None, POLICY)
    assert c.day_type == WEEKDAY
    assert c.buckets == ((REGULAR, Decimal("8.00")), (OVERTIME, Decimal("2.00")))


def test_weekday_thirteen_worked_hours_three_buckets():
    """08:00-22:00 with 1h break (780 worked minutes) -> 8 / 4 / 1"""
    c = classify_shift(MONDAY, _at(MONDAY, 8), _at(MONDAY, 22), Decimal("780"), POLICY, break_minutes=Decimal("60"))
    assert c.hours(REGULAR) == Decimal("8")
    assert c.hours(OVERTIME) == Decimal("4")
    assert c.hours(DOUBLE_TIME) == Decimal("1")


def test_weekday_breaks_from_break_minutes_when_no_total():
    """No timesheet total: duration minus break minutes"""
    c = classify_shift(MONDAY, _at(MONDAY, 8), _at(MONDAY, 22), None, POLICY, break_minutes=Decimal("60"))
    assert c.worked_hours == Decimal("13.00")
    assert c.hours(DOUBLE_TIME) == Decimal("1")


def test_weekday_short_shift_regular_only():
    c = classify_shift(MONDAY, None, None, Decimal("300"), POLICY)
    assert c.buckets == ((REGULAR, Decimal("5.00")),)


@pytest.mark.parametrize("minutes", [0, 1, 59, 480, 481, 600, 719, 720, 721, 1000, 1439])
def test_weekday_buckets_sum_to_worked_hours(minutes):
    """regular + overtime + double_time == minutes/60 (2 dp); regular <= 8, overtime <= 4"""
    c = classify_shift(MONDAY, None, None, Decimal(minutes), POLICY)
    expected = (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"))
    assert c.total_hours == expected
    assert c.hours(REGULAR) <= Decimal("8")
    assert c.hours(OVERTIME) <= Decimal("4")
    assert all(h > 0 for _, h in c.buckets)


def test_weekday_default_eight_hours_when_nothing_known():
    c = classify_shift(MONDAY, None, None, None, POLICY)
    assert c.buckets == ((REGULAR, Decimal("8.00")),)


def test_weekday_invalid_times_degrade_to_default():
    """End before start: times unusable, 8h default"""
    c = classify_shift(MONDAY, _at(MONDAY, 18), _at(MONDAY, 8), None, POLICY)
    assert c.worked_hours == Decimal("8.00")


def test_negative_worked_minutes_clamped():
    c = classify_shift(MONDAY, None, None, Decimal("-30"), POLICY)
    assert c.buckets == ()
    assert c.worked_hours == Decimal("0")


# ---------- Saturday: split by time of day ----------


def test_saturday_spanning_both_windows():
    """05:00-19:00 no breaks -> overtime 11h (06-17), double time 3h"""
    c = classify_shift(SATURDAY_DATE, _at(SATURDAY_DATE, 5), _at(SATURDAY_DATE, 19), None, POLICY)
    assert c.day_type == SATURDAY
    assert c.buckets == ((OVERTIME, Decimal("11.00")), (DOUBLE_TIME, Decimal("3.00")))
    assert c.hours(REGULAR) == Decimal("0")


def test_saturday_inside_window_overtime_only():
    c = classify_shift(SATURDAY_DATE, _at(SATURDAY_DATE, 7), _at(SATURDAY_DATE, 15), None, POLICY)
    assert c.buckets == ((OVERTIME, Decimal("8.00")),)


def test_saturday_evening_double_time_only():
    c = classify_shift(SATURDAY_DATE, _at(SATURDAY_DATE, 18), _at(SATURDAY_DATE, 23), None, POLICY)
    assert c.buckets == ((DOUBLE_TIME, Decimal("5.00")),)


def test_saturday_overnight_after_midnight_is_double_time():
    """22:00 -> 04:00 next day: all outside the Saturday window"""
    end = _at(SATURDAY_DATE + timedelta(days=1), 4)
    c = classify_shift(SATURDAY_DATE, _at(SATURDAY_DATE, 22), end, None, POLICY)
    assert c.buckets == ((DOUBLE_TIME, Decimal("6.00")),)


def test_saturday_break_taken_from_double_time_first():
    """05:00-19:00 with 2h break: double time 3 -> 1, overtime stays 11"""
    c = classify_shift(
        SATURDAY_DATE, _at(SATURDAY_DATE, 5), _at(SATURDAY_DATE, 19), Decimal("720"), POLICY, break_minutes=Decimal("120")
    )
    assert c.hours(OVERTIME) == Decimal("11.00")
    assert c.hours(DOUBLE_TIME) == Decimal("1.00")


def test_saturday_break_larger_than_double_time_spills_into_overtime():
    """15:00-19:00 (2h OT + 2h DT) with 3h break -> DT 0, OT 1"""
    c = classify_shift(
        SATURDAY_DATE, _at(SATURDAY_DATE, 15), _at(SATURDAY_DATE, 19), Decimal("60"), POLICY
    )
    assert c.buckets == ((OVERTIME, Decimal("1.00")),)


@pytest.mark.parametrize(
    "start_h,start_m,end_h,end_m,break_min",
    [
        (5, 0, 19, 0, 0),
        (5, 10, 18, 25, 30),
        (4, 45, 16, 59, 47),
        (13, 7, 21, 53, 95),
        (6, 0, 17, 0, 60),
        (16, 20, 23, 40, 200),
    ],
)
def test_saturday_buckets_equal_shift_minus_breaks(start_h, start_m, end_h, end_m, break_min):
    """overtime + double_time == shift hours - break hours"""
    start = _at(SATURDAY_DATE, start_h, start_m)
    end = _at(SATURDAY_DATE, end_h, end_m)
    c = classify_shift(SATURDAY_DATE, start, end, None, POLICY, break_minutes=Decimal(break_min))
    shift_minutes = Decimal(int((end - start).total_seconds() // 60))
    expected = ((shift_minutes - Decimal(break_min)) / Decimal(60)).quantize(Decimal("0.01"))
    assert c.hours(OVERTIME) + c.hours(DOUBLE_TIME) == expected
    assert c.hours(OVERTIME) >= 0 and c.hours(DOUBLE_TIME) >= 0


def test_saturday_window_follows_timestamp_offset():
    """Aware timestamps: window 06:00-17:00 in the timestamps' own offset"""
    tz = timezone(timedelta(hours=-7))
    start = datetime(2025, 3, 8, 5, 0, tzinfo=tz)
    end = datetime(2025, 3, 8, 19, 0, tzinfo=tz)
    c = classify_shift(SATURDAY_DATE, start, end, None, POLICY)
    assert c.hours(OVERTIME) == Decimal("11.00")
    assert c.hours(DOUBLE_TIME) == Decimal("3.00")


def test_saturday_without_times_uses_fallback_split():
    """No shift times: overtime up to 11h, remainder double time"""
    c = classify_shift(SATURDAY_DATE, None, None, Decimal("480"), POLICY)
    assert c.used_fallback is True
    assert c.buckets == ((OVERTIME, Decimal("8.00")),)

    c = classify_shift(SATURDAY_DATE, None, None, Decimal("780"), POLICY)
    assert c.hours(OVERTIME) == Decimal("11.00")
    assert c.hours(DOUBLE_TIME) == Decimal("2.00")


def test_saturday_custom_window():
    policy = policy_from_dict({"saturday": {"overtime_window": {"start": "07:00", "end": "15:00"}}})
    c = classify_shift(SATURDAY_DATE, _at(SATURDAY_DATE, 6), _at(SATURDAY_DATE, 16), None, policy)
    assert c.hours(OVERTIME) == Decimal("8.00")
    assert c.hours(DOUBLE_TIME) == Decimal("2.00")


# ---------- Sunday / holiday ----------


@pytest.mark.parametrize("minutes", [60, 360, 600, 845])
def test_sunday_all_double_time(minutes):
    c = classify_shift(SUNDAY_DATE, None, None, Decimal(minutes), POLICY)
    assert c.day_type == SUNDAY_HOLIDAY
    assert c.hours(REGULAR) == Decimal("0")
    assert c.hours(OVERTIME) == Decimal("0")
    assert c.hours(DOUBLE_TIME) == c.worked_hours
    assert len(c.buckets) == 1


def test_sunday_six_hour_shift():
    c = classify_shift(SUNDAY_DATE, _at(SUNDAY_DATE, 8), _at(SUNDAY_DATE, 14), None, POLICY)
    assert c.buckets == ((DOUBLE_TIME, Decimal("6.00")),)
