# backend/washbook/schemas/services.py

from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration_min: int = Field(60, ge=5, le=480)
    buffer_min: int = Field(0, ge=0, le=120)
    sort_order: int = 0


class ServiceUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration_min: Optional[int] = Field(None, ge=5, le=480)
    buffer_min: Optional[int] = Field(None, ge=0, le=120)
    sort_order: Optional[int] = None


class ServiceRead(BaseModel):
    id: str
    tenant_id: str
    name: str
    description: Optional[str] = None
    price: float
    duration_min: int
    buffer_min: int
    sort_order: int
    is_active: bool

    model_config = {"from_attributes": True}
