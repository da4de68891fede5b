"""Leave router — custom types, apply, list, approve/reject.

All endpoints require authentication. Review endpoints need leader or admin.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_permission
from portal.common.constants import LeaveStatus
from portal.database import get_db
from portal.leave.schemas import (
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveReviewRequest,
    LeaveTypeCreate,
    LeaveTypeOut,
)
from portal.leave.service import LeaveService
from portal.organization.models import Profile

router = APIRouter()


# ── Leave types ─────────────────────────────────────────────────────

@router.get("/types", response_model=list[LeaveTypeOut])
async def list_leave_types(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_leave_types(db)


@router.post("/types", response_model=LeaveTypeOut, status_code=201)
async def create_leave_type(
    body: LeaveTypeCreate,
    profile: Profile = Depends(require_permission("leave:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.create_leave_type(db, body, profile.id)


# ── Requests ────────────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.apply_leave(db, profile.id, body)


@router.get("/requests", response_model=list[LeaveRequestOut])
async def list_leave_requests(
    request: Request,
    status: Optional[LeaveStatus] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Own requests for staff; all requests for leaders and admins."""
    return await LeaveService.list_requests(
        db,
        profile.id,
        request.state.user_role,
        status=status,
        month=month,
        year=year,
    )


@router.put("/requests/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave(
    request_id: uuid.UUID,
    body: Optional[LeaveReviewRequest] = None,
    profile: Profile = Depends(require_permission("leave:approve")),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request. Annual leave is deducted from the balance."""
    return await LeaveService.approve_leave(
        db, request_id, profile.id, remarks=body.remarks if body else None,
    )


@router.put("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave(
    request_id: uuid.UUID,
    body: Optional[LeaveReviewRequest] = None,
    profile: Profile = Depends(require_permission("leave:reject")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.reject_leave(
        db, request_id, profile.id, remarks=body.remarks if body else None,
    )
