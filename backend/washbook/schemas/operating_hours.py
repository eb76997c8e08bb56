# backend/washbook/schemas/operating_hours.py

from datetime import time
from pydantic import BaseModel, Field, field_serializer, model_validator


class OperatingHourEntry(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    open_time: time
    close_time: time
    is_closed: bool = False

    @model_validator(mode="after")
    def check_window(self):
        if not self.is_closed and self.open_time >= self.close_time:
            raise ValueError("open_time must be earlier than close_time")
        return self

    model_config = {"from_attributes": True}


class OperatingHoursUpdate(BaseModel):
    hours: list[OperatingHourEntry] = Field(min_length=1, max_length=7)


class OperatingHourRead(BaseModel):
    day_of_week: int
    open_time: time
    close_time: time
    is_closed: bool

    @field_serializer("open_time", "close_time")
    def _hhmm(self, value: time) -> str:
        return value.strftime("%H:%M")

    model_config = {"from_attributes": True}
