# app/api/routes_intakes.py
from datetime import date, datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends

from app.api.errors import to_http
from app.schemas.models import AdherenceSummary, IntakeOut, IntakeToggleRequest
from app.services.errors import ScheduleError
from app.services.medicines import MedicineService, get_service
from app.services.security import current_owner

router = APIRouter(prefix="/intakes", tags=["intakes"])

def _now() -> datetime:
    return datetime.now(timezone.utc)

@router.get("", response_model=List[IntakeOut])
def list_intakes(
    start_date: date,
    end_date: date,
    medicine_id: Optional[str] = None,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.list_intakes(owner_id, start_date, end_date, medicine_id)
    except ScheduleError as e:
        raise to_http(e, "Failed to fetch intakes")

@router.get("/summary", response_model=AdherenceSummary)
def summary(
    start_date: date,
    end_date: date,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.adherence_summary(owner_id, start_date, end_date)
    except ScheduleError as e:
        raise to_http(e, "Failed to summarise intakes")

@router.patch("/{intake_id}", response_model=IntakeOut)
def update_intake(
    intake_id: str,
    req: IntakeToggleRequest,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.set_taken(owner_id, intake_id, req.taken, _now())
    except ScheduleError as e:
        raise to_http(e, "Failed to update intake")
