from datetime import date, timedelta

import pytest

from app.schemas.models import MedicineDefinition
from app.services.errors import InvalidRange, InvalidTime, InvalidTimes
from app.services.expansion import count_days, expand


def _definition(start, end, times):
    return MedicineDefinition(name="Test", start_date=start, end_date=end, times=times)


def test_aspirin_scenario(aspirin):
    slots = expand(aspirin)
    assert slots == {
        (date(2024, 1, 1), "09:00"), (date(2024, 1, 1), "21:00"),
        (date(2024, 1, 2), "09:00"), (date(2024, 1, 2), "21:00"),
        (date(2024, 1, 3), "09:00"), (date(2024, 1, 3), "21:00"),
    }


def test_single_day_yields_one_slot_per_time():
    d = date(2024, 5, 10)
    slots = expand(_definition(d, d, ["08:00", "12:30", "18:00"]))
    assert len(slots) == 3
    assert {day for day, _ in slots} == {d}


@pytest.mark.parametrize("days,times", [(1, ["09:00"]), (31, ["06:00", "14:00"]), (366, ["00:00", "12:00", "23:59"])])
def test_size_is_days_times_unique_times(days, times):
    start = date(2024, 1, 1)
    end = start + timedelta(days=days - 1)
    assert len(expand(_definition(start, end, times))) == count_days(start, end) * len(times)


def test_duplicate_times_are_collapsed():
    d = date(2024, 2, 28)
    slots = expand(_definition(d, d + timedelta(days=1), ["09:00", {"hour": 9, "minute": 0}, "9:00"]))
    assert slots == {(date(2024, 2, 28), "09:00"), (date(2024, 2, 29), "09:00")}


def test_expand_is_idempotent(aspirin):
    assert expand(aspirin) == expand(aspirin)


def test_end_before_start_rejected():
    with pytest.raises(InvalidRange):
        expand(_definition(date(2024, 1, 2), date(2024, 1, 1), ["09:00"]))


def test_range_longer_than_limit_rejected():
    with pytest.raises(InvalidRange):
        expand(_definition(date(2024, 1, 1), date(2024, 1, 10), ["09:00"]), max_days=5)


def test_empty_times_rejected():
    with pytest.raises(InvalidTimes):
        expand(_definition(date(2024, 1, 1), date(2024, 1, 1), []))


def test_out_of_range_time_rejected():
    with pytest.raises(InvalidTime):
        expand(_definition(date(2024, 1, 1), date(2024, 1, 1), [{"hour": 24, "minute": 0}]))
