"""
Worker shifts of a job: the one list both the coverage auditor and the line-item
generator work from, so the two always agree on who is billed and for what.

- Timesheet entries first. A complete entry (shift start and end) wins over an
  earlier incomplete one of the same worker. An incomplete entry borrows the
  worker's scheduled times but keeps its own minutes.
- Then accepted assignments of workers without any entry (scheduled times).
- A worker is attributed once per job: never again from the schedule.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from invoicing.config import settings
from invoicing.rules.day_policy import DayTypePolicy
from invoicing.schemas import JobDetail, JobWorker, TimesheetEntry
from invoicing.services.shift_classifier import (
    ShiftClassification,
    classify_shift,
    parse_job_date,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

SOURCE_TIMESHEET = "timesheet"
SOURCE_SCHEDULE = "schedule"
ACCEPTED = "accepted"


@dataclass(frozen=True)
class WorkerShift:
    job_id: str
    job_number: str
    job_date: Optional[date]
    worker_id: str
    position: str
    worker_name: str
    shift_start: Optional[datetime]
    shift_end: Optional[datetime]
    worked_minutes: Optional[Decimal]
    break_minutes: Optional[Decimal]
    travel_minutes: Optional[Decimal]
    source: str

    @property
    def service_date(self) -> str:
        return self.job_date.isoformat() if self.job_date else ""


def local_zone() -> Optional[tzinfo]:
    return ZoneInfo(settings.local_timezone) if settings.local_timezone else None


def _full_name(first: Optional[str], last: Optional[str]) -> str:
    return " ".join(p.strip() for p in (first, last) if p and p.strip())


def _first_present(*values: Optional[Decimal]) -> Optional[Decimal]:
    """First non-zero value; 0 means the field was not filled in."""
    for v in values:
        if v:
            return v
    return None


def _travel_minutes(entry: TimesheetEntry) -> Optional[Decimal]:
    if entry.total_travel_minutes:
        return entry.total_travel_minutes
    legs = [m for m in (entry.travel_to_minutes, entry.travel_from_minutes, entry.travel_during_minutes) if m is not None]
    return sum(legs, Decimal("0")) if legs else None


def is_complete(entry: TimesheetEntry) -> bool:
    return bool(entry.shift_start and entry.shift_end)


def _pick_entries(job: JobDetail) -> Dict[str, TimesheetEntry]:
    """One entry per worker, in timesheet order; a later complete entry replaces an incomplete one."""
    chosen: Dict[str, TimesheetEntry] = {}
    for timesheet in job.timesheets:
        for entry in timesheet.entries:
            if not entry.worker_id or not entry.position:
                continue
            current = chosen.get(entry.worker_id)
            if current is None or (not is_complete(current) and is_complete(entry)):
                chosen[entry.worker_id] = entry
    return chosen


def _from_entry(job: JobDetail, job_date, entry: TimesheetEntry, worker: Optional[JobWorker], tz) -> WorkerShift:
    if is_complete(entry):
        start_raw, end_raw = entry.shift_start, entry.shift_end
    elif worker is not None:
        logger.debug("job %s worker %s: timesheet entry without shift times, using schedule", job.job_number, entry.worker_id)
        start_raw, end_raw = worker.start_time, worker.end_time
    else:
        logger.warning("job %s worker %s: no shift times in timesheet or schedule", job.job_number, entry.worker_id)
        start_raw, end_raw = None, None
    name = _full_name(entry.first_name, entry.last_name)
    if not name and worker is not None:
        name = _full_name(worker.first_name, worker.last_name)
    return WorkerShift(
        job_id=job.id,
        job_number=job.job_number,
        job_date=job_date,
        worker_id=entry.worker_id,
        position=entry.position,
        worker_name=name,
        shift_start=parse_timestamp(start_raw, tz),
        shift_end=parse_timestamp(end_raw, tz),
        worked_minutes=_first_present(entry.total_work_minutes, entry.shift_total_minutes),
        break_minutes=_first_present(entry.break_minutes, entry.break_total_minutes),
        travel_minutes=_travel_minutes(entry),
        source=SOURCE_TIMESHEET,
    )


def _from_assignment(job: JobDetail, job_date, worker: JobWorker, tz) -> WorkerShift:
    return WorkerShift(
        job_id=job.id,
        job_number=job.job_number,
        job_date=job_date,
        worker_id=worker.user_id,
        position=worker.position,
        worker_name=_full_name(worker.first_name, worker.last_name),
        shift_start=parse_timestamp(worker.start_time, tz),
        shift_end=parse_timestamp(worker.end_time, tz),
        worked_minutes=None,
        break_minutes=None,
        travel_minutes=None,
        source=SOURCE_SCHEDULE,
    )


def collect_worker_shifts(job: JobDetail, tz: Optional[tzinfo] = None) -> List[WorkerShift]:
    job_date = parse_job_date(job.start_time)
    workers = {}
    for w in job.workers:
        workers.setdefault(w.user_id, w)

    shifts: List[WorkerShift] = []
    attributed = set()
    for worker_id, entry in _pick_entries(job).items():
        shifts.append(_from_entry(job, job_date, entry, workers.get(worker_id), tz))
        attributed.add(worker_id)

    for worker in job.workers:
        if (worker.status or "").strip().lower() != ACCEPTED or not worker.position:
            continue
        if worker.user_id in attributed:
            continue
        shifts.append(_from_assignment(job, job_date, worker, tz))
        attributed.add(worker.user_id)
    return shifts


def classify_worker_shift(shift: WorkerShift, policy: DayTypePolicy) -> ShiftClassification:
    return classify_shift(
        shift.job_date,
        shift.shift_start,
        shift.shift_end,
        shift.worked_minutes,
        policy,
        break_minutes=shift.break_minutes,
    )
