# app/utils/time_of_day.py
from __future__ import annotations

import re
from typing import Tuple

from app.services.errors import InvalidTime

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def validate_time_of_day(hour: int, minute: int) -> None:
    # bool is an int subclass; True:False is not a time
    for label, value in (("hour", hour), ("minute", minute)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidTime(f"{label} must be an integer, got {value!r}")
    if not 0 <= hour <= 23:
        raise InvalidTime(f"hour must be within 0-23, got {hour}")
    if not 0 <= minute <= 59:
        raise InvalidTime(f"minute must be within 0-59, got {minute}")


def format_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def parse_hhmm(hhmm: str) -> Tuple[int, int]:
    """
    Parse a 24-hour "HH:MM" string into (hour, minute).
    A single-digit hour ("9:05") is tolerated; the result is range-checked.
    """
    m = _TIME_RE.match((hhmm or "").strip())
    if not m:
        raise InvalidTime(f"time must look like HH:MM, got {hhmm!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    validate_time_of_day(hour, minute)
    return hour, minute
