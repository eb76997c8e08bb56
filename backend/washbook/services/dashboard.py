"""
Dashboard rollups for a tenant.

Read-only. "Today" and "this month" are the tenant's local calendar, not
the server's.
"""

from datetime import date, timedelta

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from ..models.generated import Bookings, Services, Users
from .bookings.lifecycle import BOOKING_STATUSES
from .clock import tenant_today
from .slots.config import format_time


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _sum_where(condition):
    return func.coalesce(func.sum(case((condition, Bookings.total_amount), else_=0)), 0)


def _month_bounds(today: date) -> tuple[date, date]:
    start = today.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month


def get_dashboard_stats(db: Session, tenant_id: str, today: date | None = None) -> dict:
    today = today or tenant_today(db, tenant_id)
    month_start, next_month = _month_bounds(today)
    paid = Bookings.payment_status == "paid"

    row = (
        db.query(
            _count_where(Bookings.booking_date == today).label("today_count"),
            _count_where(and_(
                Bookings.booking_date >= today,
                Bookings.status.in_(("reserved", "confirmed")),
            )).label("upcoming_count"),
            _sum_where(and_(Bookings.booking_date == today, paid)).label("today_revenue"),
            _sum_where(and_(
                Bookings.booking_date >= month_start,
                Bookings.booking_date < next_month,
                paid,
            )).label("monthly_revenue"),
            _sum_where(and_(Bookings.status == "completed", paid)).label("total_revenue"),
        )
        .filter(Bookings.tenant_id == tenant_id)
        .one()
    )

    by_status = dict.fromkeys(BOOKING_STATUSES, 0)
    by_status.update(
        db.query(Bookings.status, func.count(Bookings.id))
        .filter(Bookings.tenant_id == tenant_id)
        .group_by(Bookings.status)
        .all()
    )

    return {
        "date": today,
        "today_count": int(row.today_count),
        "upcoming_count": int(row.upcoming_count),
        "confirmed_count": by_status["confirmed"],
        "in_progress_count": by_status["in_progress"],
        "completed_count": by_status["completed"],
        "by_status": by_status,
        "today_revenue": float(row.today_revenue),
        "monthly_revenue": float(row.monthly_revenue),
        "total_revenue": float(row.total_revenue),
        "today_schedule": today_schedule(db, tenant_id, today),
    }


def today_schedule(db: Session, tenant_id: str, today: date) -> list[dict]:
    """Today's non-cancelled bookings, earliest first."""
    rows = (
        db.query(
            Bookings.id,
            Bookings.start_time,
            Bookings.end_time,
            Bookings.status,
            Services.name.label("service_name"),
            Users.full_name.label("customer_name"),
        )
        .outerjoin(Services, Services.id == Bookings.service_id)
        .outerjoin(Users, Users.id == Bookings.customer_id)
        .filter(
            Bookings.tenant_id == tenant_id,
            Bookings.booking_date == today,
            Bookings.status != "cancelled",
        )
        .order_by(Bookings.start_time)
        .all()
    )
    return [
        {
            "id": r.id,
            "start_time": format_time(r.start_time),
            "end_time": format_time(r.end_time),
            "status": r.status,
            "service_name": r.service_name,
            "customer_name": r.customer_name,
        }
        for r in rows
    ]
