# backend/washbook/schemas/dashboard.py

from datetime import date
from pydantic import BaseModel


class ScheduleEntry(BaseModel):
    id: str
    start_time: str
    end_time: str
    status: str
    service_name: str | None = None
    customer_name: str | None = None


class DashboardStats(BaseModel):
    date: date
    today_count: int
    upcoming_count: int
    confirmed_count: int
    in_progress_count: int
    completed_count: int
    by_status: dict[str, int]
    today_revenue: float
    monthly_revenue: float
    total_revenue: float
    today_schedule: list[ScheduleEntry]
