from datetime import date, datetime, timezone

import pytest

from app.agent.graph import schedule_graph
from app.schemas.models import MedicineOut
from app.services.errors import InvalidRange


def _run(store, op, medicine, policy="preserve"):
    state = {"op": op, "medicine": medicine, "policy": policy, "audit": []}
    return schedule_graph.invoke(state, config={"configurable": {"store": store}})


def _medicine(**overrides):
    fields = dict(
        id="med_g", owner_id="u1", name="Metformin",
        start_date=date(2024, 3, 1), end_date=date(2024, 3, 2),
        times=["08:00", "20:00"], created_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return MedicineOut(**fields)


def test_create_run_records_each_step(store):
    final = _run(store, "create", _medicine())

    assert [a["event"] for a in final["audit"]] == ["expand.done", "load.skip", "reconcile.done", "apply.done"]
    assert final["result"] == {"created": 4, "deleted": 0, "kept": 0}
    assert len(store.list_slots("med_g")) == 4


def test_delete_run_empties_the_medicine(store):
    _run(store, "create", _medicine())
    final = _run(store, "delete", _medicine())

    assert final["audit"][0]["event"] == "expand.skip"
    assert final["result"]["deleted"] == 4
    assert store.list_slots("med_g") == []
    assert store.list_medicines("u1") == []


def test_invalid_definition_stops_before_apply(store):
    bad = _medicine(start_date=date(2024, 3, 5))
    with pytest.raises(InvalidRange):
        _run(store, "create", bad)
    assert store.list_medicines("u1") == []


def test_apply_rediffs_when_slots_changed_since_load(store):
    from app.agent.nodes import apply_node
    from app.services.expansion import expand
    from app.services.reconcile import reconcile

    _run(store, "create", _medicine())
    shorter = _medicine(end_date=date(2024, 3, 1))
    target = expand(shorter)
    # diff computed against an empty, outdated view of the stored slots
    stale = {"op": "update", "medicine": shorter, "policy": "preserve", "target": target,
             "current": [], "plan": reconcile([], target), "audit": []}

    out = apply_node(stale, {"configurable": {"store": store}})

    assert out["audit"][-1]["replanned"] is True
    assert out["result"] == {"created": 0, "deleted": 2, "kept": 2}
    assert {s.key for s in store.list_slots("med_g")} == target
