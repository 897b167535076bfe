import os
from app.core.env import load_env

load_env()

MEDICINE_DB_PATH = os.getenv("MEDICINE_DB_PATH", "")  # empty -> app/db/medicines.db

RECONCILE_POLICY = os.getenv("RECONCILE_POLICY", "preserve").lower().strip()
MAX_SCHEDULE_DAYS = int(os.getenv("MAX_SCHEDULE_DAYS", "3660"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s")
