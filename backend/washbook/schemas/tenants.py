# backend/washbook/schemas/tenants.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

TenantStatus = Literal["pending", "approved", "suspended"]


class TenantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    timezone: Optional[str] = Field(None, description="IANA name, e.g. Europe/Moscow")
    status: TenantStatus = "approved"


class TenantStatusUpdate(BaseModel):
    status: TenantStatus


class TenantRead(BaseModel):
    id: str
    name: str
    slug: str
    status: str
    timezone: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
