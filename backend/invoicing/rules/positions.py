"""
Position normalization: the single place that turns free-form position strings
("Field Supervisor", "field_supervisor", " lct ") into the key used to match
rate card rows, mobilization eligibility and display labels.
"""
import re
from typing import Mapping, Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_position(position: Optional[str]) -> str:
    """Uppercase, whitespace runs to underscore: "field supervisor" -> "FIELD_SUPERVISOR"."""
    if not position:
        return ""
    return _WHITESPACE.sub("_", str(position).strip()).upper()


def position_label(position: Optional[str], labels: Mapping[str, str]) -> str:
    """Display label for a position; unknown positions are shown as given."""
    key = normalize_position(position)
    if key in labels:
        return labels[key]
    return (position or "").strip()
