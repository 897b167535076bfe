from typing import Any, Dict, FrozenSet, List, TypedDict

from app.schemas.models import IntakeOut, MedicineOut, MutationOp, ReconcilePolicy, SlotKey
from app.services.reconcile import ReconcilePlan

class MutationState(TypedDict, total=False):
    # what is being done (medicine.id doubles as the lock key)
    op: MutationOp
    medicine: MedicineOut       # definition after the mutation (before it, for delete)
    policy: ReconcilePolicy

    # pipeline values
    target: FrozenSet[SlotKey]  # slots the definition implies
    current: List[IntakeOut]    # slots persisted before the mutation
    plan: ReconcilePlan

    # outputs
    result: Dict[str, int]      # created / deleted / kept counts
    audit: List[Dict[str, Any]]
