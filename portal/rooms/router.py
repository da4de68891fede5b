"""Meeting room routers — room catalogue and booking workflow.

Two routers are exported and mounted by the app factory:
  - rooms_router    → /api/v1/rooms
  - bookings_router → /api/v1/bookings
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_permission, require_role
from portal.common.constants import BookingStatus, UserRole
from portal.common.rate_limit import limiter
from portal.database import get_db
from portal.organization.models import Profile
from portal.rooms.schemas import (
    BookingReviewRequest,
    RoomBookingCreate,
    RoomBookingOut,
    RoomCreate,
    RoomOut,
    RoomUpdate,
)
from portal.rooms.service import BookingService, RoomService

rooms_router = APIRouter()
bookings_router = APIRouter()


# ═════════════════════════════════════════════════════════════════════
# Rooms
# ═════════════════════════════════════════════════════════════════════

@rooms_router.get("", response_model=list[RoomOut])
async def list_rooms(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List active meeting rooms."""
    return await RoomService.list_rooms(db)


@rooms_router.post("", response_model=RoomOut, status_code=201)
async def create_room(
    body: RoomCreate,
    profile: Profile = Depends(require_permission("room:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await RoomService.create_room(db, body, profile.id)


@rooms_router.put("/{room_id}", response_model=RoomOut)
async def update_room(
    room_id: uuid.UUID,
    body: RoomUpdate,
    profile: Profile = Depends(require_permission("room:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await RoomService.update_room(db, room_id, body, profile.id)


@rooms_router.delete("/{room_id}", status_code=204)
async def delete_room(
    room_id: uuid.UUID,
    profile: Profile = Depends(require_permission("room:configure")),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a room; existing bookings are kept."""
    await RoomService.deactivate_room(db, room_id, profile.id)


# ═════════════════════════════════════════════════════════════════════
# Bookings
# ═════════════════════════════════════════════════════════════════════

@bookings_router.post("", response_model=RoomBookingOut, status_code=201)
@limiter.limit("20/minute")
async def create_booking(
    request: Request,
    body: RoomBookingCreate,
    profile: Profile = Depends(require_permission("booking:request")),
    db: AsyncSession = Depends(get_db),
):
    """Submit a booking request. Accepted requests are stored as pending."""
    return await BookingService.create_booking(db, profile.id, body)


@bookings_router.get("/mine", response_model=list[RoomBookingOut])
async def my_bookings(
    status: Optional[BookingStatus] = Query(None),
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BookingService.list_my_bookings(db, profile.id, status=status)


@bookings_router.get("/pending", response_model=list[RoomBookingOut])
async def pending_bookings(
    profile: Profile = Depends(require_role(UserRole.leader)),
    db: AsyncSession = Depends(get_db),
):
    """Bookings awaiting review, oldest start first."""
    return await BookingService.list_pending(db)


@bookings_router.get("/upcoming", response_model=list[RoomBookingOut])
async def upcoming_bookings(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BookingService.list_upcoming(db, profile.id)


@bookings_router.put("/{booking_id}/cancel", response_model=RoomBookingOut)
async def cancel_booking(
    booking_id: uuid.UUID,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await BookingService.cancel_booking(db, booking_id, profile.id)


@bookings_router.put("/{booking_id}/approve", response_model=RoomBookingOut)
async def approve_booking(
    booking_id: uuid.UUID,
    body: Optional[BookingReviewRequest] = None,
    profile: Profile = Depends(require_permission("booking:approve")),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending booking; re-checks for overlaps first."""
    remarks = body.remarks if body else None
    return await BookingService.approve_booking(db, booking_id, profile.id, remarks)


@bookings_router.put("/{booking_id}/reject", response_model=RoomBookingOut)
async def reject_booking(
    booking_id: uuid.UUID,
    body: Optional[BookingReviewRequest] = None,
    profile: Profile = Depends(require_permission("booking:reject")),
    db: AsyncSession = Depends(get_db),
):
    remarks = body.remarks if body else None
    return await BookingService.reject_booking(db, booking_id, profile.id, remarks)
