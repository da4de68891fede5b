"""Attendance router — check in, check out and today's events for the caller."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.attendance.schemas import AttendanceOut, TodayAttendanceOut
from portal.attendance.service import AttendanceService
from portal.auth.dependencies import get_current_user
from portal.common.constants import AttendanceType
from portal.database import get_db
from portal.organization.models import Profile

router = APIRouter()


# ── POST /check-in ──────────────────────────────────────────────────

@router.post("/check-in", response_model=AttendanceOut, status_code=201)
async def check_in(
    request: Request,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ip = request.client.host if request.client else None
    return await AttendanceService.record(
        db, profile.id, AttendanceType.check_in, ip_address=ip
    )


# ── POST /check-out ─────────────────────────────────────────────────

@router.post("/check-out", response_model=AttendanceOut, status_code=201)
async def check_out(
    request: Request,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ip = request.client.host if request.client else None
    return await AttendanceService.record(
        db, profile.id, AttendanceType.check_out, ip_address=ip
    )


# ── GET /today ──────────────────────────────────────────────────────

@router.get("/today", response_model=TodayAttendanceOut)
async def today(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Events recorded by the caller on the current local day."""
    return await AttendanceService.get_today(db, profile.id)
