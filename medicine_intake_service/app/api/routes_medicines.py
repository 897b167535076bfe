# app/api/routes_medicines.py
from typing import List
from fastapi import APIRouter, Depends

from app.api.errors import to_http
from app.schemas.models import DeleteResponse, MedicineCreate, MedicineOut, MedicineUpdate
from app.services.errors import ScheduleError
from app.services.medicines import MedicineService, get_service
from app.services.security import current_owner

router = APIRouter(prefix="/medicines", tags=["medicines"])

@router.get("", response_model=List[MedicineOut])
def list_medicines(
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.list_medicines(owner_id)
    except ScheduleError as e:
        raise to_http(e, "Failed to fetch medicines")

@router.post("", response_model=MedicineOut, status_code=201)
def create_medicine(
    req: MedicineCreate,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.create_medicine(owner_id, req)
    except ScheduleError as e:
        raise to_http(e, "Failed to create medicine")

@router.get("/{medicine_id}", response_model=MedicineOut)
def get_medicine(
    medicine_id: str,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.get_medicine(owner_id, medicine_id)
    except ScheduleError as e:
        raise to_http(e, "Failed to fetch medicine")

@router.put("/{medicine_id}", response_model=MedicineOut)
def update_medicine(
    medicine_id: str,
    req: MedicineUpdate,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        return service.update_medicine(owner_id, medicine_id, req)
    except ScheduleError as e:
        raise to_http(e, "Failed to update medicine")

@router.delete("/{medicine_id}", response_model=DeleteResponse)
def delete_medicine(
    medicine_id: str,
    owner_id: str = Depends(current_owner),
    service: MedicineService = Depends(get_service),
):
    try:
        summary = service.delete_medicine(owner_id, medicine_id)
    except ScheduleError as e:
        raise to_http(e, "Failed to delete medicine")
    return DeleteResponse(message="Medicine deleted successfully", deleted_intakes=summary.deleted)
