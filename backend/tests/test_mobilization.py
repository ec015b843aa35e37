"""
Mobilization qualification: eligible position AND (operates a job vehicle OR
mob flag on a timesheet entry).
"""
from invoicing.rules.day_policy import policy_from_dict
from invoicing.schemas import JobVehicle, Timesheet
from invoicing.services.mobilization import (
    has_mob_flag,
    operates_vehicle,
    qualifies_for_mobilization,
    vehicle_type_label,
)

POLICY = policy_from_dict({})

VEHICLES = [
    JobVehicle(id="v1", operator_id="u1", type="highway_truck"),
    JobVehicle(id="v2", operator_id=None, type="pickup"),
]
TIMESHEETS = [
    Timesheet(entries=[
        {"worker_id": "u2", "position": "HWY", "mob": True},
        {"worker_id": "u3", "position": "TCP", "mob": True},
        {"worker_id": "u4", "position": "LCT", "mob": False},
    ])
]


def test_operates_vehicle():
    assert operates_vehicle("u1", VEHICLES)
    assert not operates_vehicle("u2", VEHICLES)


def test_has_mob_flag():
    assert has_mob_flag("u2", TIMESHEETS)
    assert not has_mob_flag("u4", TIMESHEETS)
    assert not has_mob_flag("u9", TIMESHEETS)


def test_vehicle_operator_in_eligible_position_qualifies():
    assert qualifies_for_mobilization("u1", "LCT", VEHICLES, TIMESHEETS, POLICY)
    assert qualifies_for_mobilization("u1", "Field Supervisor", VEHICLES, TIMESHEETS, POLICY)


def test_mob_flag_in_eligible_position_qualifies():
    assert qualifies_for_mobilization("u2", "HWY", VEHICLES, TIMESHEETS, POLICY)


def test_ineligible_position_never_qualifies():
    """TCP with mob=true: no mobilization"""
    assert not qualifies_for_mobilization("u3", "TCP", VEHICLES, TIMESHEETS, POLICY)
    assert not qualifies_for_mobilization("u1", "TCP", VEHICLES, TIMESHEETS, POLICY)


def test_eligible_position_without_vehicle_or_flag():
    assert not qualifies_for_mobilization("u4", "LCT", VEHICLES, TIMESHEETS, POLICY)


def test_configured_positions():
    policy = policy_from_dict({"mobilization_positions": ["TCP"]})
    assert qualifies_for_mobilization("u3", "TCP", VEHICLES, TIMESHEETS, policy)
    assert not qualifies_for_mobilization("u2", "HWY", VEHICLES, TIMESHEETS, policy)


def test_vehicle_type_label():
    assert vehicle_type_label("u1", VEHICLES) == "Highway Truck"
    assert vehicle_type_label("u2", VEHICLES) == ""
