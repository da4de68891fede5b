"""Dashboard router — role-dependent KPI cards."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user
from portal.dashboard.schemas import DashboardStatsOut
from portal.dashboard.service import DashboardService
from portal.database import get_db
from portal.organization.models import Profile

router = APIRouter()


@router.get("/stats", response_model=DashboardStatsOut)
async def dashboard_stats(
    request: Request,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Personal stats for staff and leaders; company stats for admins."""
    return await DashboardService.get_stats(db, profile, request.state.user_role)
