# backend/washbook/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_serializer, model_validator


class GenerateSlotsRequest(BaseModel):
    """Request for slot generation over a date range."""
    start_date: date
    end_date: date
    slot_duration: int = Field(60, ge=15, le=240, description="Slot length in minutes")
    capacity: int = Field(1, ge=1, le=100, description="Seats per slot (wash bays)")

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be earlier than start_date")
        return self


class GenerationResponse(BaseModel):
    created: int
    total: int


class PublicSlotRead(BaseModel):
    """Public view: remaining seats, never raw occupancy."""
    id: str
    date: date
    start_time: str  # "HH:MM"
    end_time: str    # "HH:MM"
    available: int
    status: str


class ManagerSlotRead(BaseModel):
    id: str
    slot_date: date = Field(serialization_alias="date")
    start_time: time
    end_time: time
    max_capacity: int
    booked_count: int
    status: str

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")

    model_config = {"from_attributes": True}


class SlotUpdate(BaseModel):
    max_capacity: Optional[int] = Field(None, ge=1, le=100)
    status: Optional[Literal["available", "blocked"]] = None


class DeleteSlotsResponse(BaseModel):
    deleted: int
