from datetime import date

import pytest

from app.schemas.models import IntakeOut
from app.services.expansion import expand
from app.services.reconcile import reconcile

D1, D2, D3 = date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)


def test_create_from_nothing(aspirin):
    target = expand(aspirin)
    plan = reconcile([], target)
    assert plan.to_create == target
    assert plan.to_delete == frozenset()
    assert plan.to_keep == frozenset()


@pytest.mark.parametrize("policy", ["preserve", "reset"])
def test_delete_to_nothing(aspirin, policy):
    current = expand(aspirin)
    plan = reconcile(current, frozenset(), policy)
    assert plan.to_delete == current
    assert plan.to_create == frozenset()


def test_unchanged_set_is_a_no_op_when_preserving(aspirin):
    s = expand(aspirin)
    plan = reconcile(s, s)
    assert plan.to_create == frozenset()
    assert plan.to_delete == frozenset()
    assert plan.to_keep == s


def test_reset_recreates_everything(aspirin):
    s = expand(aspirin)
    plan = reconcile(s, s, "reset")
    assert plan.to_delete == s
    assert plan.to_create == s
    assert plan.to_keep == frozenset()


def test_shrinking_range_deletes_dropped_day():
    current = {(D1, "09:00"), (D2, "09:00"), (D3, "09:00")}
    target = {(D1, "09:00"), (D2, "09:00"), (D2, "21:00")}
    plan = reconcile(current, target)
    assert plan.to_delete == {(D3, "09:00")}
    assert plan.to_create == {(D2, "21:00")}
    assert plan.to_keep == {(D1, "09:00"), (D2, "09:00")}
    assert plan.summary().model_dump() == {"created": 1, "deleted": 1, "kept": 2}


def test_accepts_persisted_records():
    record = IntakeOut(id="intake_x", medicine_id="med_x", owner_id="u1", date=D1, time="09:00", taken=True)
    plan = reconcile([record], {(D1, "09:00")})
    assert plan.to_keep == {(D1, "09:00")}


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        reconcile([], [], "merge")
