# backend/washbook/schemas/bookings.py

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_serializer

BookingStatus = Literal["reserved", "confirmed", "in_progress", "completed", "cancelled", "no_show"]


class BookingCreate(BaseModel):
    tenant_id: str
    service_id: str
    slot_id: str
    notes: Optional[str] = Field(None, max_length=500)


class StatusUpdate(BaseModel):
    status: BookingStatus


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingRead(BaseModel):
    id: str

    tenant_id: str
    customer_id: str
    service_id: str
    time_slot_id: str

    booking_date: date
    start_time: time
    end_time: time

    total_amount: float
    status: str
    payment_status: str
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None

    service_name: Optional[str] = None
    tenant_name: Optional[str] = None
    customer_name: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")

    model_config = {"from_attributes": True}


class BookingPage(BaseModel):
    items: list[BookingRead]
    total: int
    page: int
    limit: int
    total_pages: int
