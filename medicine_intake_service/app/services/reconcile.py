# app/services/reconcile.py
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Union

from app.schemas.models import IntakeOut, ReconcilePolicy, ReconcileSummary, SlotKey

POLICIES = ("preserve", "reset")


@dataclass(frozen=True)
class ReconcilePlan:
    to_create: FrozenSet[SlotKey] = field(default_factory=frozenset)
    to_delete: FrozenSet[SlotKey] = field(default_factory=frozenset)
    to_keep: FrozenSet[SlotKey] = field(default_factory=frozenset)

    def summary(self) -> ReconcileSummary:
        return ReconcileSummary(
            created=len(self.to_create),
            deleted=len(self.to_delete),
            kept=len(self.to_keep),
        )


def check_policy(policy: str) -> ReconcilePolicy:
    p = (policy or "").lower().strip()
    if p not in POLICIES:
        raise ValueError(f"Unknown reconcile policy {policy!r}; expected one of {POLICIES}")
    return p  # type: ignore[return-value]


def _slot_key(slot: Union[SlotKey, IntakeOut]) -> SlotKey:
    if isinstance(slot, tuple):
        return slot
    return (slot.date, slot.time)


def reconcile(
    current_slots: Iterable[Union[SlotKey, IntakeOut]],
    target_slots: Iterable[SlotKey],
    policy: str = "preserve",
) -> ReconcilePlan:
    """
    Diff persisted slots against the freshly expanded target set.

    preserve: only slots whose (date, time) left the schedule are deleted, and
              slots present on both sides keep their taken state.
    reset:    every persisted slot is deleted and the whole target recreated,
              so any edit clears taken history.

    Pure function; the caller applies to_delete then to_create in one transaction.
    """
    policy = check_policy(policy)
    current = frozenset(_slot_key(s) for s in current_slots)
    target = frozenset(target_slots)

    if policy == "reset":
        return ReconcilePlan(to_create=target, to_delete=current, to_keep=frozenset())

    return ReconcilePlan(
        to_create=target - current,
        to_delete=current - target,
        to_keep=current & target,
    )
