# app/modules/availability/timefmt.py
"""
Clock-time labels ("9:00 AM") <-> structured values.

Labels are for display only. Anything that sorts or compares times works on
`datetime.time` or minutes since midnight, parsed once at the boundary.
"""
from __future__ import annotations

import re
from datetime import time

_CLOCK_12H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp])\.?\s*[Mm]\.?\s*$")
_CLOCK_24H = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def format_clock(value: time) -> str:
    """09:00 -> "9:00 AM", 12:30 -> "12:30 PM", 00:15 -> "12:15 AM"."""
    hour12 = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour12}:{value.minute:02d} {period}"


def parse_clock(label: str) -> time:
    """
    Parse "h:mm AM/PM" or 24h "HH:MM[:SS]" into a time.
    Raises ValueError on anything else.
    """
    m = _CLOCK_12H.match(label)
    if m:
        hour, minute, period = int(m.group(1)), int(m.group(2)), m.group(3).upper()
        if not 1 <= hour <= 12 or minute > 59:
            raise ValueError(f"invalid clock time: {label!r}")
        if period == "A":
            hour = 0 if hour == 12 else hour
        else:
            hour = hour if hour == 12 else hour + 12
        return time(hour, minute)

    m = _CLOCK_24H.match(label)
    if m:
        hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
        if hour > 23 or minute > 59 or second > 59:
            raise ValueError(f"invalid clock time: {label!r}")
        return time(hour, minute, second)

    raise ValueError(f"invalid clock time: {label!r}")


def minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute
