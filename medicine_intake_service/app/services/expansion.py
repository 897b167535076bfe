# app/services/expansion.py
from datetime import date, timedelta
from typing import FrozenSet, Iterable, List, Optional

from app.core.settings import MAX_SCHEDULE_DAYS
from app.schemas.models import MedicineDefinition, SlotKey, TimeOfDay
from app.services.errors import InvalidRange, InvalidTimes
from app.utils.time_of_day import validate_time_of_day


def count_days(start: date, end: date) -> int:
    """Number of calendar days in [start, end], both ends included."""
    return (end - start).days + 1


def unique_times(times: Iterable[TimeOfDay]) -> List[TimeOfDay]:
    """Validate every time and drop repeats, keeping first-seen order."""
    seen = set()
    out: List[TimeOfDay] = []
    for t in times:
        validate_time_of_day(t.hour, t.minute)
        if t in seen:
            continue
        seen.add(t)
        out.append(t)
    return out


def expand(definition: MedicineDefinition, max_days: Optional[int] = None) -> FrozenSet[SlotKey]:
    """
    Turn a medicine definition into the set of (date, "HH:MM") slots it implies.

    Every day from start_date through end_date is included, and every distinct
    time is emitted once per day, so the result has days * unique_times entries.
    Raises InvalidRange / InvalidTimes / InvalidTime before producing anything.
    """
    start, end = definition.start_date, definition.end_date
    if end < start:
        raise InvalidRange(f"end_date {end.isoformat()} is before start_date {start.isoformat()}")

    limit = max_days if max_days is not None else MAX_SCHEDULE_DAYS
    days = count_days(start, end)
    if days > limit:
        raise InvalidRange(f"date range spans {days} days; at most {limit} are allowed")

    if not definition.times:
        raise InvalidTimes("at least one daily time is required")
    labels = [t.hhmm for t in unique_times(definition.times)]

    return frozenset(
        (start + timedelta(days=offset), hhmm)
        for offset in range(days)
        for hhmm in labels
    )
