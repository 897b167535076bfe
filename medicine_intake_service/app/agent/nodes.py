# app/agent/nodes.py
import logging
from typing import Any, Dict

from langchain_core.runnables import RunnableConfig

from app.agent.state import MutationState
from app.services.expansion import expand
from app.services.intake_store import IntakeStore
from app.services.reconcile import reconcile

logger = logging.getLogger(__name__)

def _audit(state: MutationState, event: str, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
    audit = list(state.get("audit") or [])
    audit.append({"event": event, **(extra or {})})
    return {"audit": audit}

def _store(config: RunnableConfig) -> IntakeStore:
    store = (config.get("configurable") or {}).get("store")
    if store is None:
        raise RuntimeError("schedule_graph needs configurable.store")
    return store

def expand_node(state: MutationState) -> Dict[str, Any]:
    if state["op"] == "delete":
        # nothing is implied any more; reconciliation then removes every slot
        return {"target": frozenset(), **_audit(state, "expand.skip", {"reason": "delete"})}

    # raises InvalidRange / InvalidTimes / InvalidTime before anything is written
    target = expand(state["medicine"])
    return {"target": target, **_audit(state, "expand.done", {"slots": len(target)})}

def load_node(state: MutationState, config: RunnableConfig) -> Dict[str, Any]:
    if state["op"] == "create":
        return {"current": [], **_audit(state, "load.skip", {"reason": "new medicine"})}

    current = _store(config).list_slots(state["medicine"].id)
    return {"current": current, **_audit(state, "load.done", {"slots": len(current)})}

def reconcile_node(state: MutationState) -> Dict[str, Any]:
    plan = reconcile(state.get("current") or [], state.get("target") or frozenset(), state.get("policy") or "preserve")
    return {"plan": plan, **_audit(state, "reconcile.done", plan.summary().model_dump())}

def apply_node(state: MutationState, config: RunnableConfig) -> Dict[str, Any]:
    """
    Write the medicine row and the slot diff in a single transaction:
    deletions first, then creations, so unchanged keys never collide.
    """
    store = _store(config)
    op = state["op"]
    medicine = state["medicine"]
    plan = state["plan"]
    replanned = False

    with store.transaction():
        if op != "create":
            # BEGIN IMMEDIATE holds the write lock; diff again if another writer got in first
            fresh = store.list_slots(medicine.id)
            if {s.key for s in fresh} != {s.key for s in state.get("current") or []}:
                plan = reconcile(fresh, state.get("target") or frozenset(), state.get("policy") or "preserve")
                replanned = True

        if op == "create":
            store.insert_medicine(medicine)
        elif op == "update":
            store.replace_medicine(medicine)

        deleted = store.delete_slots(medicine.id, plan.to_delete)
        created = store.create_slots(medicine.id, medicine.owner_id, plan.to_create)

        if op == "delete":
            store.delete_medicine(medicine.id)

    result = {"created": created, "deleted": deleted, "kept": len(plan.to_keep)}
    if replanned:
        logger.warning("medicine %s changed under %s; re-diffed against stored slots", medicine.id, op)
    logger.info("medicine %s %s: %s", medicine.id, op, result)
    return {"plan": plan, "result": result, **_audit(state, "apply.done", {**result, "replanned": replanned})}
