# app/api/errors.py
import logging
from fastapi import HTTPException

from app.services.errors import (
    InvalidRange, InvalidTime, InvalidTimes, NotFound, ScheduleError, StoreFailure,
)

logger = logging.getLogger(__name__)

def to_http(exc: ScheduleError, failure_detail: str) -> HTTPException:
    """Map an engine error onto the status code the API promises for it."""
    if isinstance(exc, (InvalidRange, InvalidTimes, InvalidTime)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFound):
        logger.debug("not found: %s", exc)
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, StoreFailure):
        return HTTPException(status_code=500, detail=failure_detail)
    logger.error("Unmapped schedule error: %r", exc)
    return HTTPException(status_code=500, detail=failure_detail)
