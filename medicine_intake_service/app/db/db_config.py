# app/db/db_config.py

import sqlite3
from pathlib import Path
from typing import Optional

from app.core.settings import MEDICINE_DB_PATH


# Base project directory (medicine_intake_service/)
BASE_DIR = Path(__file__).resolve().parents[2]

# Database directory (medicine_intake_service/app/db/)
DB_DIR = BASE_DIR / "app" / "db"

# Database file path
DB_PATH = Path(MEDICINE_DB_PATH) if MEDICINE_DB_PATH and MEDICINE_DB_PATH != ":memory:" else DB_DIR / "medicines.db"


SCHEMA = """
CREATE TABLE IF NOT EXISTS medicines (
    id          TEXT PRIMARY KEY,
    owner_id    TEXT NOT NULL,
    name        TEXT NOT NULL,
    start_date  TEXT NOT NULL,
    end_date    TEXT NOT NULL,
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_medicines_owner ON medicines(owner_id);

CREATE TABLE IF NOT EXISTS medicine_times (
    medicine_id TEXT NOT NULL REFERENCES medicines(id),
    position    INTEGER NOT NULL,
    hour        INTEGER NOT NULL,
    minute      INTEGER NOT NULL,
    PRIMARY KEY (medicine_id, position)
);

-- no ON DELETE CASCADE: slots are removed explicitly before their medicine
CREATE TABLE IF NOT EXISTS intakes (
    id          TEXT PRIMARY KEY,
    medicine_id TEXT NOT NULL REFERENCES medicines(id),
    owner_id    TEXT NOT NULL,
    date        TEXT NOT NULL,
    time        TEXT NOT NULL,
    taken       INTEGER NOT NULL DEFAULT 0,
    taken_at    TEXT,
    UNIQUE (medicine_id, date, time)
);
CREATE INDEX IF NOT EXISTS ix_intakes_owner_date ON intakes(owner_id, date, time);
"""


def get_sqlite_connection(path: Optional[str] = None) -> sqlite3.Connection:
    """
    Create and configure SQLite connection with recommended PRAGMA settings.
    Pass ":memory:" for a throwaway database.
    """
    if path is None:
        path = ":memory:" if MEDICINE_DB_PATH == ":memory:" else str(DB_PATH)
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    # isolation_level=None: transactions are opened explicitly by the store
    conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row

    # Performance & concurrency settings
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")
    conn.execute("PRAGMA foreign_keys=ON;")

    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)
