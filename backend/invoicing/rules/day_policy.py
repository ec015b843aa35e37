"""
Day-type policy: weekday caps, Saturday overtime window, fallback hours,
mobilization positions and position labels. Loaded from
config/invoice_rules.yaml; built-in defaults (same as the YAML) apply when the
file is absent so the engine never depends on the file being deployed.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml

from invoicing.config import settings
from invoicing.rules.holiday_calendar import parse_holiday_dates
from invoicing.rules.positions import normalize_position


def _default_rules() -> dict:
    """Built-in defaults (same as the YAML), used when no file is present"""
    return {
        "weekday": {"regular_cap_hours": 8, "overtime_cap_hours": 4},
        "saturday": {
            "overtime_window": {"start": "06:00", "end": "17:00"},
            "fallback_overtime_cap_hours": 11,
        },
        "default_shift_hours": 8,
        "mobilization_positions": ["LCT", "HWY", "FIELD_SUPERVISOR"],
        "position_labels": {
            "TCP": "TCP",
            "LCT": "LCT",
            "HWY": "HWY",
            "LCT_TCP": "LCT/TCP",
            "FIELD_SUPERVISOR": "Field Supervisor",
            "MANAGER": "Manager",
        },
        "statutory_holidays": [],
    }


@dataclass(frozen=True)
class DayTypePolicy:
    regular_cap_hours: Decimal = Decimal("8")
    overtime_cap_hours: Decimal = Decimal("4")
    saturday_overtime_start: time = time(6, 0)
    saturday_overtime_end: time = time(17, 0)
    saturday_fallback_overtime_cap_hours: Decimal = Decimal("11")
    default_shift_hours: Decimal = Decimal("8")
    mobilization_positions: FrozenSet[str] = frozenset({"LCT", "HWY", "FIELD_SUPERVISOR"})
    position_labels: Mapping[str, str] = field(default_factory=dict)
    statutory_holidays: FrozenSet[date] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekday": {
                "regular_cap_hours": str(self.regular_cap_hours),
                "overtime_cap_hours": str(self.overtime_cap_hours),
            },
            "saturday": {
                "overtime_window": {
                    "start": self.saturday_overtime_start.strftime("%H:%M"),
                    "end": self.saturday_overtime_end.strftime("%H:%M"),
                },
                "fallback_overtime_cap_hours": str(self.saturday_fallback_overtime_cap_hours),
            },
            "default_shift_hours": str(self.default_shift_hours),
            "mobilization_positions": sorted(self.mobilization_positions),
            "position_labels": dict(self.position_labels),
            "statutory_holidays": [d.isoformat() for d in sorted(self.statutory_holidays)],
        }


def _hours(value: Any, key: str) -> Decimal:
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"invoice policy: {key} must be a number, got {value!r}")
    if d < 0:
        raise ValueError(f"invoice policy: {key} must not be negative")
    return d


def _clock(value: Any, key: str) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # YAML 1.1 reads unquoted 06:00 as sexagesimal minutes
        return time(value // 60, value % 60)
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").time()
    except ValueError:
        raise ValueError(f"invoice policy: {key} must be HH:MM, got {value!r}")


def policy_from_dict(data: Mapping[str, Any]) -> DayTypePolicy:
    """Parse a rules mapping (YAML shape); missing keys take the built-in defaults."""
    defaults = _default_rules()
    weekday = {**defaults["weekday"], **(data.get("weekday") or {})}
    saturday = {**defaults["saturday"], **(data.get("saturday") or {})}
    window = {**defaults["saturday"]["overtime_window"], **(saturday.get("overtime_window") or {})}

    start = _clock(window["start"], "saturday.overtime_window.start")
    end = _clock(window["end"], "saturday.overtime_window.end")
    if end <= start:
        raise ValueError("invoice policy: saturday overtime window must end after it starts")

    labels = data.get("position_labels")
    if labels is None:
        labels = defaults["position_labels"]
    positions = data.get("mobilization_positions")
    if positions is None:
        positions = defaults["mobilization_positions"]

    return DayTypePolicy(
        regular_cap_hours=_hours(weekday["regular_cap_hours"], "weekday.regular_cap_hours"),
        overtime_cap_hours=_hours(weekday["overtime_cap_hours"], "weekday.overtime_cap_hours"),
        saturday_overtime_start=start,
        saturday_overtime_end=end,
        saturday_fallback_overtime_cap_hours=_hours(
            saturday["fallback_overtime_cap_hours"], "saturday.fallback_overtime_cap_hours"
        ),
        default_shift_hours=_hours(
            data.get("default_shift_hours", defaults["default_shift_hours"]), "default_shift_hours"
        ),
        mobilization_positions=frozenset(normalize_position(p) for p in positions if p),
        position_labels={normalize_position(k): str(v) for k, v in labels.items()},
        statutory_holidays=parse_holiday_dates(data.get("statutory_holidays") or []),
    )


def load_policy(path: Optional[Path] = None) -> DayTypePolicy:
    path = path or settings.resolved_policy_file()
    if not path.exists():
        return policy_from_dict(_default_rules())
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"invoice policy: cannot parse {path}: {e}")
    return policy_from_dict(data)


def get_invoice_policy() -> Dict[str, Any]:
    """Active policy as plain data (for the admin view)"""
    return load_policy().to_dict()
