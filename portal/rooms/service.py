"""Meeting room service layer — room catalogue and the booking workflow.

Business logic:
  - Active-room listing and admin room configuration (soft delete)
  - Booking submission: structural checks, approved-bookings snapshot,
    conflict scan, insert as pending
  - Review workflow (approve / reject) with a conflict re-check on approval
  - Owner cancellation of pending or approved bookings
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.common.audit import create_audit_entry, utcnow
from portal.common.constants import (
    BOOKING_TRANSITIONS,
    UPCOMING_MEETINGS_LIMIT,
    BookingStatus,
)
from portal.common.exceptions import (
    BookingRejected,
    ForbiddenException,
    NotFoundException,
    StoreUnavailableException,
    ValidationException,
)
from portal.config import settings
from portal.rooms.conflicts import has_conflict
from portal.rooms.intervals import Interval
from portal.rooms.models import MeetingRoom, RoomBooking
from portal.rooms.schemas import (
    RoomBookingCreate,
    RoomBookingOut,
    RoomBrief,
    RoomCreate,
    RoomOut,
    RoomUpdate,
)
from portal.rooms.validation import (
    BookingDraft,
    check_request,
    conflict_rejection,
    validate_booking_request,
)

logger = logging.getLogger(__name__)


def local_timezone() -> ZoneInfo:
    """The calendar used for the same-day rule and naive form input."""
    return ZoneInfo(settings.TIMEZONE)


def _room_snapshot(room: MeetingRoom) -> dict:
    return {
        "name": room.name,
        "location": room.location,
        "capacity": room.capacity,
        "equipment": room.equipment,
        "is_active": room.is_active,
    }


# ═════════════════════════════════════════════════════════════════════
# RoomService
# ═════════════════════════════════════════════════════════════════════


class RoomService:
    """Room catalogue. Rooms are never hard-deleted; bookings keep pointing at them."""

    @staticmethod
    async def list_rooms(db: AsyncSession) -> list[RoomOut]:
        result = await db.execute(
            select(MeetingRoom)
            .where(MeetingRoom.is_active.is_(True))
            .order_by(MeetingRoom.name)
        )
        return [RoomOut.model_validate(r) for r in result.scalars().all()]

    @staticmethod
    async def get_room(
        db: AsyncSession,
        room_id: uuid.UUID,
        *,
        active_only: bool = True,
    ) -> MeetingRoom:
        query = select(MeetingRoom).where(MeetingRoom.id == room_id)
        if active_only:
            query = query.where(MeetingRoom.is_active.is_(True))
        room = (await db.execute(query)).scalars().first()
        if room is None:
            raise NotFoundException("Meeting Room", room_id)
        return room

    @staticmethod
    async def create_room(
        db: AsyncSession,
        data: RoomCreate,
        actor_id: uuid.UUID,
    ) -> RoomOut:
        room = MeetingRoom(
            name=data.name,
            location=data.location,
            capacity=data.capacity,
            equipment=data.equipment,
            is_active=True,
        )
        db.add(room)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="meeting_room",
            entity_id=room.id,
            actor_id=actor_id,
            new_values=_room_snapshot(room),
        )
        logger.info("Room %s (%s) created by %s", room.id, room.name, actor_id)
        return RoomOut.model_validate(room)

    @staticmethod
    async def update_room(
        db: AsyncSession,
        room_id: uuid.UUID,
        data: RoomUpdate,
        actor_id: uuid.UUID,
    ) -> RoomOut:
        room = await RoomService.get_room(db, room_id)
        old_values = _room_snapshot(room)

        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            if field == "capacity" and value is None:
                continue
            setattr(room, field, value)
        room.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="meeting_room",
            entity_id=room.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=_room_snapshot(room),
        )
        return RoomOut.model_validate(room)

    @staticmethod
    async def deactivate_room(
        db: AsyncSession,
        room_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        room = await RoomService.get_room(db, room_id)
        room.is_active = False
        room.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="meeting_room",
            entity_id=room.id,
            actor_id=actor_id,
            old_values={"is_active": True},
            new_values={"is_active": False},
        )
        logger.info("Room %s deactivated by %s", room.id, actor_id)


# ═════════════════════════════════════════════════════════════════════
# BookingService
# ═════════════════════════════════════════════════════════════════════


class BookingService:
    """Async booking operations: submission, listings, review, cancellation."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_approved_intervals(
        db: AsyncSession,
        room_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> list[Interval]:
        """Fetch the room's approved bookings as intervals.

        A failed read is never treated as an empty snapshot: it raises
        ``StoreUnavailableException`` so the caller writes nothing.
        """
        query = select(RoomBooking.start_time, RoomBooking.end_time).where(
            RoomBooking.room_id == room_id,
            RoomBooking.status == BookingStatus.approved,
        )
        if exclude_id is not None:
            query = query.where(RoomBooking.id != exclude_id)

        try:
            result = await db.execute(query)
            rows = result.all()
        except SQLAlchemyError as exc:
            logger.error("Approved-bookings fetch failed for room %s: %s", room_id, exc)
            raise StoreUnavailableException() from exc

        return [Interval.from_stored(start, end) for start, end in rows]

    @staticmethod
    async def _get_booking(db: AsyncSession, booking_id: uuid.UUID) -> RoomBooking:
        result = await db.execute(select(RoomBooking).where(RoomBooking.id == booking_id))
        booking = result.scalars().first()
        if booking is None:
            raise NotFoundException("Room Booking", booking_id)
        return booking

    @staticmethod
    def _transition(booking: RoomBooking, target: BookingStatus) -> BookingStatus:
        current = BookingStatus(booking.status)
        if target not in BOOKING_TRANSITIONS[current]:
            raise ValidationException(
                {"status": [f"Cannot move a {current.value} booking to {target.value}."]}
            )
        booking.status = target
        booking.updated_at = utcnow()
        return current

    @staticmethod
    async def _build_responses(
        db: AsyncSession,
        bookings: Sequence[RoomBooking],
    ) -> list[RoomBookingOut]:
        room_ids = {b.room_id for b in bookings}
        rooms: dict[uuid.UUID, MeetingRoom] = {}
        if room_ids:
            result = await db.execute(
                select(MeetingRoom).where(MeetingRoom.id.in_(room_ids))
            )
            rooms = {r.id: r for r in result.scalars().all()}

        out: list[RoomBookingOut] = []
        for booking in bookings:
            item = RoomBookingOut.model_validate(booking)
            room = rooms.get(booking.room_id)
            if room is not None:
                item.room_summary = RoomBrief.model_validate(room)
            out.append(item)
        return out

    @staticmethod
    async def _build_response(db: AsyncSession, booking: RoomBooking) -> RoomBookingOut:
        return (await BookingService._build_responses(db, [booking]))[0]

    # ─────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def insert_reservation(
        db: AsyncSession,
        *,
        room_id: uuid.UUID,
        requester_id: uuid.UUID,
        title: str,
        start: datetime,
        end: datetime,
        description: Optional[str] = None,
        status: BookingStatus = BookingStatus.pending,
    ) -> RoomBooking:
        booking = RoomBooking(
            room_id=room_id,
            user_id=requester_id,
            title=title,
            description=description,
            start_time=start,
            end_time=end,
            status=status,
        )
        db.add(booking)
        await db.flush()
        return booking

    @staticmethod
    async def create_booking(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: RoomBookingCreate,
    ) -> RoomBookingOut:
        """Validate a booking request and, if accepted, store it as pending.

        Order: structural checks, room lookup, approved snapshot, conflict
        scan, insert. Any rejection leaves the store untouched.
        """
        tz = local_timezone()
        draft = BookingDraft(
            title=data.title,
            room_id=data.room_id,
            start_time=data.start_time,
            end_time=data.end_time,
            description=data.description,
        )

        precheck = check_request(draft, tz=tz)
        if not precheck.accepted:
            logger.info(
                "Booking by %s rejected: %s", user_id, precheck.rejection.kind.value
            )
            raise BookingRejected(precheck.rejection)

        room = await RoomService.get_room(db, draft.room_id)
        existing = await BookingService.list_approved_intervals(db, room.id)

        decision = validate_booking_request(draft, existing, tz=tz)
        if not decision.accepted:
            logger.info(
                "Booking by %s for room %s rejected: %s",
                user_id, room.id, decision.rejection.kind.value,
            )
            raise BookingRejected(decision.rejection)

        candidate = decision.candidate
        booking = await BookingService.insert_reservation(
            db,
            room_id=candidate.room_id,
            requester_id=user_id,
            title=candidate.title,
            start=candidate.interval.start,
            end=candidate.interval.end,
            description=candidate.description,
            status=candidate.status,
        )

        await create_audit_entry(
            db,
            action="create",
            entity_type="room_booking",
            entity_id=booking.id,
            actor_id=user_id,
            new_values={
                "room_id": str(booking.room_id),
                "title": booking.title,
                "start_time": candidate.interval.start.isoformat(),
                "end_time": candidate.interval.end.isoformat(),
                "status": BookingStatus.pending.value,
            },
        )
        logger.info(
            "Booking %s created for room %s by %s (%s - %s)",
            booking.id, room.id, user_id,
            candidate.interval.start.isoformat(), candidate.interval.end.isoformat(),
        )
        return await BookingService._build_response(db, booking)

    # ─────────────────────────────────────────────────────────────────
    # Listings
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_my_bookings(
        db: AsyncSession,
        user_id: uuid.UUID,
        status: Optional[BookingStatus] = None,
    ) -> list[RoomBookingOut]:
        query = select(RoomBooking).where(RoomBooking.user_id == user_id)
        if status is not None:
            query = query.where(RoomBooking.status == status)
        result = await db.execute(query.order_by(RoomBooking.start_time.desc()))
        return await BookingService._build_responses(db, result.scalars().all())

    @staticmethod
    async def list_pending(db: AsyncSession) -> list[RoomBookingOut]:
        result = await db.execute(
            select(RoomBooking)
            .where(RoomBooking.status == BookingStatus.pending)
            .order_by(RoomBooking.start_time.asc())
        )
        return await BookingService._build_responses(db, result.scalars().all())

    @staticmethod
    async def list_upcoming(
        db: AsyncSession,
        user_id: uuid.UUID,
        limit: int = UPCOMING_MEETINGS_LIMIT,
    ) -> list[RoomBookingOut]:
        """The user's approved bookings that have not started yet, soonest first."""
        result = await db.execute(
            select(RoomBooking)
            .where(
                RoomBooking.user_id == user_id,
                RoomBooking.status == BookingStatus.approved,
                RoomBooking.start_time >= utcnow(),
            )
            .order_by(RoomBooking.start_time.asc())
            .limit(limit)
        )
        return await BookingService._build_responses(db, result.scalars().all())

    # ─────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel_booking(
        db: AsyncSession,
        booking_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> RoomBookingOut:
        booking = await BookingService._get_booking(db, booking_id)
        if booking.user_id != user_id:
            raise ForbiddenException(detail="You can only cancel your own bookings.")

        previous = BookingService._transition(booking, BookingStatus.cancelled)
        booking.cancelled_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="cancel",
            entity_type="room_booking",
            entity_id=booking.id,
            actor_id=user_id,
            old_values={"status": previous.value},
            new_values={"status": BookingStatus.cancelled.value},
        )
        logger.info("Booking %s cancelled by owner %s", booking.id, user_id)
        return await BookingService._build_response(db, booking)

    @staticmethod
    async def approve_booking(
        db: AsyncSession,
        booking_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        remarks: Optional[str] = None,
    ) -> RoomBookingOut:
        """Approve a pending booking unless another approval now overlaps it."""
        booking = await BookingService._get_booking(db, booking_id)
        if booking.status != BookingStatus.pending:
            raise ValidationException(
                {"status": ["Only pending bookings can be approved."]}
            )

        existing = await BookingService.list_approved_intervals(
            db, booking.room_id, exclude_id=booking.id
        )
        candidate = Interval.from_stored(booking.start_time, booking.end_time)
        if has_conflict(booking.room_id, candidate, existing):
            logger.info("Approval of booking %s blocked by an overlap", booking.id)
            raise BookingRejected(conflict_rejection())

        BookingService._transition(booking, BookingStatus.approved)
        booking.reviewed_by = reviewer_id
        booking.reviewed_at = utcnow()
        booking.reviewer_remarks = remarks
        await db.flush()

        await create_audit_entry(
            db,
            action="approve",
            entity_type="room_booking",
            entity_id=booking.id,
            actor_id=reviewer_id,
            old_values={"status": BookingStatus.pending.value},
            new_values={"status": BookingStatus.approved.value, "remarks": remarks},
        )
        logger.info("Booking %s approved by %s", booking.id, reviewer_id)
        return await BookingService._build_response(db, booking)

    @staticmethod
    async def reject_booking(
        db: AsyncSession,
        booking_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        remarks: Optional[str] = None,
    ) -> RoomBookingOut:
        booking = await BookingService._get_booking(db, booking_id)
        if booking.status != BookingStatus.pending:
            raise ValidationException(
                {"status": ["Only pending bookings can be rejected."]}
            )

        BookingService._transition(booking, BookingStatus.rejected)
        booking.reviewed_by = reviewer_id
        booking.reviewed_at = utcnow()
        booking.reviewer_remarks = remarks
        await db.flush()

        await create_audit_entry(
            db,
            action="reject",
            entity_type="room_booking",
            entity_id=booking.id,
            actor_id=reviewer_id,
            old_values={"status": BookingStatus.pending.value},
            new_values={"status": BookingStatus.rejected.value, "remarks": remarks},
        )
        logger.info("Booking %s rejected by %s", booking.id, reviewer_id)
        return await BookingService._build_response(db, booking)
