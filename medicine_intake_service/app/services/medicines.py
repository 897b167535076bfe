# app/services/medicines.py
import logging
import threading
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from weakref import WeakValueDictionary

from app.agent.graph import schedule_graph
from app.core.settings import RECONCILE_POLICY
from app.schemas.models import (
    AdherenceSummary, IntakeOut, MedicineDefinition, MedicineOut, ReconcileSummary,
)
from app.services.errors import InvalidRange
from app.services.intake_store import IntakeStore
from app.services.reconcile import check_policy

logger = logging.getLogger(__name__)

def _medicine_id() -> str:
    return "med_" + uuid.uuid4().hex

def _definition_fields(payload: MedicineDefinition) -> Dict[str, Any]:
    fields = payload.model_dump(exclude={"times"})
    # times form a set; keep first-seen order
    fields["times"] = list(dict.fromkeys(payload.times))
    return fields


class _MedicineLock:
    # plain threading.Lock objects cannot be weakly referenced
    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class MedicineService:
    """
    Unit-of-work layer: ownership checks, per-medicine serialization and the
    expand -> reconcile -> apply workflow for every medicine mutation.
    """

    def __init__(self, store: IntakeStore, policy: str = "preserve"):
        self.store = store
        self.policy = check_policy(policy)
        # entries vanish once no mutation holds or waits on them
        self._locks: "WeakValueDictionary[str, _MedicineLock]" = WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, medicine_id: str) -> _MedicineLock:
        with self._locks_guard:
            lock = self._locks.get(medicine_id)
            if lock is None:
                lock = self._locks[medicine_id] = _MedicineLock()
            return lock

    def _run(self, op: str, medicine: MedicineOut) -> Dict[str, Any]:
        state = {"op": op, "medicine": medicine, "policy": self.policy, "audit": []}
        return schedule_graph.invoke(state, config={"configurable": {"store": self.store}})

    # ---------------------------
    # medicines
    # ---------------------------
    def create_medicine(self, owner_id: str, payload: MedicineDefinition) -> MedicineOut:
        medicine = MedicineOut(
            id=_medicine_id(),
            owner_id=owner_id,
            created_at=datetime.now(timezone.utc),
            **_definition_fields(payload),
        )
        final = self._run("create", medicine)
        return medicine.model_copy(update={"intakes": ReconcileSummary(**final["result"])})

    def update_medicine(self, owner_id: str, medicine_id: str, payload: MedicineDefinition) -> MedicineOut:
        self.store.get_medicine(owner_id, medicine_id)
        with self._lock_for(medicine_id):
            existing = self.store.get_medicine(owner_id, medicine_id)
            medicine = MedicineOut(
                id=existing.id,
                owner_id=existing.owner_id,
                created_at=existing.created_at,
                **_definition_fields(payload),
            )
            final = self._run("update", medicine)
        return medicine.model_copy(update={"intakes": ReconcileSummary(**final["result"])})

    def delete_medicine(self, owner_id: str, medicine_id: str) -> ReconcileSummary:
        self.store.get_medicine(owner_id, medicine_id)
        with self._lock_for(medicine_id):
            # re-read under the lock; a concurrent delete may have won
            existing = self.store.get_medicine(owner_id, medicine_id)
            final = self._run("delete", existing)
        return ReconcileSummary(**final["result"])

    def get_medicine(self, owner_id: str, medicine_id: str) -> MedicineOut:
        return self.store.get_medicine(owner_id, medicine_id)

    def list_medicines(self, owner_id: str) -> List[MedicineOut]:
        return self.store.list_medicines(owner_id)

    # ---------------------------
    # intakes
    # ---------------------------
    def list_intakes(
        self,
        owner_id: str,
        start_date: date,
        end_date: date,
        medicine_id: Optional[str] = None,
    ) -> List[IntakeOut]:
        if end_date < start_date:
            raise InvalidRange(f"end_date {end_date.isoformat()} is before start_date {start_date.isoformat()}")
        return self.store.list_slots_in_range(owner_id, start_date, end_date, medicine_id)

    def set_taken(self, owner_id: str, intake_id: str, taken: bool, now: datetime) -> IntakeOut:
        return self.store.set_taken(intake_id, owner_id, taken, now)

    def adherence_summary(
        self,
        owner_id: str,
        start_date: date,
        end_date: date,
        today: Optional[date] = None,
    ) -> AdherenceSummary:
        today = today or date.today()
        intakes = self.list_intakes(owner_id, start_date, end_date)

        total = len(intakes)
        taken = sum(1 for i in intakes if i.taken)
        missed = sum(1 for i in intakes if not i.taken and i.date < today)
        rate = (taken / total) if total else 0.0

        return AdherenceSummary(
            start_date=start_date,
            end_date=end_date,
            total=total,
            taken=taken,
            pending=total - taken - missed,
            missed=missed,
            adherence_rate=round(rate, 3),
        )


_service: Optional[MedicineService] = None
_service_guard = threading.Lock()

def get_service() -> MedicineService:
    """FastAPI dependency; the store is opened on first use."""
    global _service
    with _service_guard:
        if _service is None:
            _service = MedicineService(IntakeStore.open(), policy=RECONCILE_POLICY)
            logger.info("Medicine service ready (policy=%s)", _service.policy)
        return _service
