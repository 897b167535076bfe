# app/services/intake_store.py
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from app.db.db_config import get_sqlite_connection, init_schema
from app.schemas.models import IntakeOut, MedicineOut, SlotKey, TimeOfDay
from app.services.errors import NotFound, StoreFailure

logger = logging.getLogger(__name__)

_INTAKE_COLUMNS = """
    i.id, i.medicine_id, i.owner_id, m.name AS medicine_name,
    i.date, i.time, i.taken, i.taken_at
"""

def _intake_id() -> str:
    return "intake_" + uuid.uuid4().hex

def _intake_from_row(row: sqlite3.Row) -> IntakeOut:
    return IntakeOut(
        id=row["id"],
        medicine_id=row["medicine_id"],
        owner_id=row["owner_id"],
        medicine_name=row["medicine_name"] or "",
        date=date.fromisoformat(row["date"]),
        time=row["time"],
        taken=bool(row["taken"]),
        taken_at=datetime.fromisoformat(row["taken_at"]) if row["taken_at"] else None,
    )


class IntakeStore:
    """
    SQLite persistence for medicines, their daily times and intake slots.

    One connection is shared by every request, so all access goes through a
    re-entrant lock. Writes that must land together run inside transaction();
    nested transaction() blocks join the outer one.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self._lock = threading.RLock()
        self._depth = 0

    @classmethod
    def open(cls, path: Optional[str] = None) -> "IntakeStore":
        conn = get_sqlite_connection(path)
        store = cls(conn)
        store.init_schema()
        return store

    def init_schema(self) -> None:
        with self._lock:
            try:
                init_schema(self._conn)
            except sqlite3.Error as e:
                logger.exception("Could not create intake schema")
                raise StoreFailure(f"schema setup failed: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ---------------------------
    # plumbing
    # ---------------------------
    def _rollback(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed")

    @contextmanager
    def transaction(self) -> Iterator["IntakeStore"]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                logger.exception("Could not open transaction")
                raise StoreFailure(f"could not open transaction: {e}") from e

            self._depth = 1
            try:
                yield self
                self._conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                logger.exception("Store transaction rolled back")
                raise StoreFailure(str(e)) from e
            except BaseException:
                self._rollback()
                raise
            finally:
                self._depth = 0

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.exception("Store read failed")
                raise StoreFailure(str(e)) from e

    # ---------------------------
    # medicines
    # ---------------------------
    def _times_for(self, medicine_ids: List[str]) -> Dict[str, List[TimeOfDay]]:
        out: Dict[str, List[TimeOfDay]] = {mid: [] for mid in medicine_ids}
        if not medicine_ids:
            return out
        marks = ",".join("?" for _ in medicine_ids)
        rows = self._query(
            f"SELECT medicine_id, hour, minute FROM medicine_times "
            f"WHERE medicine_id IN ({marks}) ORDER BY medicine_id, position",
            medicine_ids,
        )
        for r in rows:
            out[r["medicine_id"]].append(TimeOfDay(hour=r["hour"], minute=r["minute"]))
        return out

    def _write_times(self, medicine: MedicineOut) -> None:
        self._conn.execute("DELETE FROM medicine_times WHERE medicine_id = ?", (medicine.id,))
        self._conn.executemany(
            "INSERT INTO medicine_times (medicine_id, position, hour, minute) VALUES (?, ?, ?, ?)",
            [(medicine.id, pos, t.hour, t.minute) for pos, t in enumerate(medicine.times)],
        )

    def insert_medicine(self, medicine: MedicineOut) -> None:
        with self.transaction():
            self._conn.execute(
                "INSERT INTO medicines (id, owner_id, name, start_date, end_date, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    medicine.id,
                    medicine.owner_id,
                    medicine.name,
                    medicine.start_date.isoformat(),
                    medicine.end_date.isoformat(),
                    medicine.created_at.isoformat(),
                ),
            )
            self._write_times(medicine)

    def replace_medicine(self, medicine: MedicineOut) -> None:
        with self.transaction():
            cur = self._conn.execute(
                "UPDATE medicines SET name = ?, start_date = ?, end_date = ? "
                "WHERE id = ? AND owner_id = ?",
                (
                    medicine.name,
                    medicine.start_date.isoformat(),
                    medicine.end_date.isoformat(),
                    medicine.id,
                    medicine.owner_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFound("Medicine not found")
            self._write_times(medicine)

    def delete_medicine(self, medicine_id: str) -> None:
        with self.transaction():
            self._conn.execute("DELETE FROM medicine_times WHERE medicine_id = ?", (medicine_id,))
            self._conn.execute("DELETE FROM medicines WHERE id = ?", (medicine_id,))

    def get_medicine(self, owner_id: str, medicine_id: str) -> MedicineOut:
        rows = self._query(
            "SELECT * FROM medicines WHERE id = ? AND owner_id = ?",
            (medicine_id, owner_id),
        )
        if not rows:
            # same answer whether it is missing or someone else's
            raise NotFound("Medicine not found")
        times = self._times_for([medicine_id])
        return self._medicine_from_row(rows[0], times[medicine_id])

    def list_medicines(self, owner_id: str) -> List[MedicineOut]:
        rows = self._query(
            "SELECT * FROM medicines WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC",
            (owner_id,),
        )
        times = self._times_for([r["id"] for r in rows])
        return [self._medicine_from_row(r, times[r["id"]]) for r in rows]

    @staticmethod
    def _medicine_from_row(row: sqlite3.Row, times: List[TimeOfDay]) -> MedicineOut:
        return MedicineOut(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]),
            times=times,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ---------------------------
    # intake slots
    # ---------------------------
    def list_slots(self, medicine_id: str) -> List[IntakeOut]:
        rows = self._query(
            f"SELECT {_INTAKE_COLUMNS} FROM intakes i JOIN medicines m ON m.id = i.medicine_id "
            "WHERE i.medicine_id = ? ORDER BY i.date, i.time",
            (medicine_id,),
        )
        return [_intake_from_row(r) for r in rows]

    def delete_slots(self, medicine_id: str, keys: Iterable[SlotKey]) -> int:
        params = [(medicine_id, d.isoformat(), t) for d, t in keys]
        if not params:
            return 0
        with self.transaction():
            self._conn.executemany(
                "DELETE FROM intakes WHERE medicine_id = ? AND date = ? AND time = ?",
                params,
            )
        return len(params)

    def create_slots(self, medicine_id: str, owner_id: str, keys: Iterable[SlotKey]) -> int:
        params = [
            (_intake_id(), medicine_id, owner_id, d.isoformat(), t)
            for d, t in sorted(keys)
        ]
        if not params:
            return 0
        with self.transaction():
            self._conn.executemany(
                "INSERT INTO intakes (id, medicine_id, owner_id, date, time, taken, taken_at) "
                "VALUES (?, ?, ?, ?, ?, 0, NULL)",
                params,
            )
        return len(params)

    def list_slots_in_range(
        self,
        owner_id: str,
        start_date: date,
        end_date: date,
        medicine_id: Optional[str] = None,
    ) -> List[IntakeOut]:
        sql = (
            f"SELECT {_INTAKE_COLUMNS} FROM intakes i JOIN medicines m ON m.id = i.medicine_id "
            "WHERE i.owner_id = ? AND i.date >= ? AND i.date <= ?"
        )
        params: List[Any] = [owner_id, start_date.isoformat(), end_date.isoformat()]
        if medicine_id:
            sql += " AND i.medicine_id = ?"
            params.append(medicine_id)
        sql += " ORDER BY i.date, i.time, m.name"
        return [_intake_from_row(r) for r in self._query(sql, params)]

    def set_taken(self, slot_id: str, owner_id: str, taken: bool, now: datetime) -> IntakeOut:
        taken_at = now.isoformat() if taken else None
        with self.transaction():
            cur = self._conn.execute(
                "UPDATE intakes SET taken = ?, taken_at = ? WHERE id = ? AND owner_id = ?",
                (1 if taken else 0, taken_at, slot_id, owner_id),
            )
            if cur.rowcount == 0:
                raise NotFound("Intake not found")
            rows = self._conn.execute(
                f"SELECT {_INTAKE_COLUMNS} FROM intakes i JOIN medicines m ON m.id = i.medicine_id "
                "WHERE i.id = ?",
                (slot_id,),
            ).fetchall()
        return _intake_from_row(rows[0])
