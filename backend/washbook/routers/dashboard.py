from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_required_tenant_scope
from ..database import get_db
from ..schemas.dashboard import DashboardStats
from ..services.dashboard import get_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardStats)
def dashboard(
    tenant_id: str = Depends(get_required_tenant_scope),
    db: Session = Depends(get_db),
):
    """Counts, revenue and today's schedule of the tenant (local calendar)."""
    return get_dashboard_stats(db, tenant_id)
