"""Mobilization: one flat charge per eligible worker per job (vehicle operator or mob flag)."""
from typing import Iterable, Optional

from invoicing.rules.day_policy import DayTypePolicy
from invoicing.rules.positions import normalize_position
from invoicing.schemas import JobVehicle, Timesheet


def operates_vehicle(worker_id: str, vehicles: Iterable[JobVehicle]) -> bool:
    return any(v.operator_id and v.operator_id == worker_id for v in vehicles)


def has_mob_flag(worker_id: str, timesheets: Iterable[Timesheet]) -> bool:
    for timesheet in timesheets:
        for entry in timesheet.entries:
            if entry.worker_id == worker_id and entry.mob is True:
                return True
    return False


def qualifies_for_mobilization(
    worker_id: str,
    position: Optional[str],
    vehicles: Iterable[JobVehicle],
    timesheets: Iterable[Timesheet],
    policy: DayTypePolicy,
) -> bool:
    """Eligible positions only (LCT/HWY/FIELD_SUPERVISOR by default); operator of a job vehicle or mob=true."""
    if normalize_position(position) not in policy.mobilization_positions:
        return False
    return operates_vehicle(worker_id, vehicles) or has_mob_flag(worker_id, timesheets)


def vehicle_type_label(worker_id: str, vehicles: Iterable[JobVehicle]) -> str:
    """Type of the vehicle the worker operates: "highway_truck" -> "Highway Truck"."""
    for v in vehicles:
        if v.operator_id and v.operator_id == worker_id:
            raw = (v.type or "").strip()
            return " ".join(word.capitalize() for word in raw.split("_") if word)
    return ""
