from datetime import date, datetime
from typing import Any, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, StrictBool, model_validator

from app.utils.time_of_day import format_time, parse_hhmm

ReconcilePolicy = Literal["preserve", "reset"]
MutationOp = Literal["create", "update", "delete"]

# (date, "HH:MM") identifies one intake slot within a medicine
SlotKey = Tuple[date, str]

class TimeOfDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    hour: int
    minute: int

    @model_validator(mode="before")
    @classmethod
    def _from_hhmm(cls, value: Any) -> Any:
        # accept "09:30" as well as {"hour": 9, "minute": 30}
        if isinstance(value, str):
            hour, minute = parse_hhmm(value)
            return {"hour": hour, "minute": minute}
        return value

    @property
    def hhmm(self) -> str:
        return format_time(self.hour, self.minute)

class MedicineDefinition(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    start_date: date
    end_date: date = Field(..., description="Inclusive: the medicine is due on this day too")
    times: List[TimeOfDay] = Field(default_factory=list, description="Daily intake times")

class MedicineCreate(MedicineDefinition):
    pass

class MedicineUpdate(MedicineDefinition):
    pass

class ReconcileSummary(BaseModel):
    created: int = 0
    deleted: int = 0
    kept: int = 0

class MedicineOut(MedicineDefinition):
    id: str
    owner_id: str
    created_at: datetime

    # filled in on create/update so callers can see what happened to the slots
    intakes: Optional[ReconcileSummary] = None

class IntakeOut(BaseModel):
    id: str
    medicine_id: str
    owner_id: str
    medicine_name: str = ""
    date: date
    time: str  # "HH:MM"
    taken: bool = False
    taken_at: Optional[datetime] = None

    @property
    def key(self) -> SlotKey:
        return (self.date, self.time)

class IntakeToggleRequest(BaseModel):
    taken: StrictBool

class DeleteResponse(BaseModel):
    message: str
    deleted_intakes: int

class AdherenceSummary(BaseModel):
    start_date: date
    end_date: date
    total: int
    taken: int
    pending: int
    missed: int
    adherence_rate: float
