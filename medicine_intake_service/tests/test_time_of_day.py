import pytest
from pydantic import ValidationError

from app.schemas.models import TimeOfDay
from app.services.errors import InvalidTime
from app.utils.time_of_day import format_time, parse_hhmm, validate_time_of_day


@pytest.mark.parametrize("hour,minute", [(0, 0), (23, 59), (9, 5)])
def test_valid_times_pass(hour, minute):
    validate_time_of_day(hour, minute)


@pytest.mark.parametrize("hour,minute", [(24, 0), (-1, 0), (12, 60), (12, -1), (True, 0), ("9", 0)])
def test_out_of_range_or_non_int_rejected(hour, minute):
    with pytest.raises(InvalidTime):
        validate_time_of_day(hour, minute)


def test_format_is_zero_padded():
    assert format_time(9, 5) == "09:05"
    assert format_time(0, 0) == "00:00"
    assert TimeOfDay(hour=21, minute=30).hhmm == "21:30"


def test_parse_hhmm():
    assert parse_hhmm("07:45") == (7, 45)
    assert parse_hhmm("7:45") == (7, 45)
    with pytest.raises(InvalidTime):
        parse_hhmm("25:00")
    with pytest.raises(InvalidTime):
        parse_hhmm("noon")


def test_time_of_day_accepts_string_and_is_hashable():
    a = TimeOfDay.model_validate("08:15")
    b = TimeOfDay(hour=8, minute=15)
    assert a == b
    assert len({a, b}) == 1


def test_time_of_day_rejects_garbage_string():
    with pytest.raises(ValidationError):
        TimeOfDay.model_validate("8h15")
