"""Booking request validation — one accept/reject decision per submission.

Checks run in a fixed order and stop at the first failure:

1. title, room, start and end are all present      → missing_field
2. start and end fall on the same local day        → cross_day_booking
3. start is strictly before end                    → invalid_time_range
4. no overlap with the room's approved bookings    → scheduling_conflict

Nothing here touches the database. ``check_request`` runs checks 1–3 so the
caller can skip fetching the approved-bookings snapshot for a request that
is already structurally invalid.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Iterable, Optional

from portal.common.constants import BookingStatus
from portal.rooms.conflicts import has_conflict
from portal.rooms.intervals import Interval, ensure_aware


class RejectionKind(str, enum.Enum):
    missing_field = "missing_field"
    cross_day_booking = "cross_day_booking"
    invalid_time_range = "invalid_time_range"
    scheduling_conflict = "scheduling_conflict"


@dataclass(frozen=True)
class BookingRejection:
    kind: RejectionKind
    field: str
    message: str


@dataclass(frozen=True)
class BookingDraft:
    """Raw form input; every field may be missing."""

    title: Optional[str] = None
    room_id: Optional[uuid.UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class CandidateBooking:
    """A validated, not yet persisted booking. Instants are UTC."""

    title: str
    room_id: uuid.UUID
    interval: Interval
    description: Optional[str] = None
    status: BookingStatus = BookingStatus.pending


@dataclass(frozen=True)
class BookingDecision:
    candidate: Optional[CandidateBooking] = None
    rejection: Optional[BookingRejection] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


_REQUIRED_FIELDS = ("title", "room_id", "start_time", "end_time")


def _reject(kind: RejectionKind, field: str, message: str) -> BookingDecision:
    return BookingDecision(rejection=BookingRejection(kind, field, message))


def conflict_rejection() -> BookingRejection:
    """The rejection reported whenever a time slot is already taken."""
    return BookingRejection(
        RejectionKind.scheduling_conflict,
        "start_time",
        "This room is already booked for the selected time. Please "
        "choose a different time or room.",
    )


def check_request(draft: BookingDraft, *, tz: tzinfo = timezone.utc) -> BookingDecision:
    """Run the structural checks (presence, same day, start < end).

    Naive instants are interpreted in *tz*, which is also the calendar used
    for the same-day rule.
    """
    for name in _REQUIRED_FIELDS:
        value = getattr(draft, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return _reject(
                RejectionKind.missing_field,
                name,
                "Please fill in all required fields.",
            )

    start = ensure_aware(draft.start_time, tz)
    end = ensure_aware(draft.end_time, tz)

    if start.astimezone(tz).date() != end.astimezone(tz).date():
        return _reject(
            RejectionKind.cross_day_booking,
            "end_time",
            "Booking must be on the same day. Please select start and end "
            "times on the same date.",
        )

    if start >= end:
        return _reject(
            RejectionKind.invalid_time_range,
            "end_time",
            "End time must be after start time.",
        )

    interval = Interval(start.astimezone(timezone.utc), end.astimezone(timezone.utc))
    return BookingDecision(
        candidate=CandidateBooking(
            title=draft.title.strip(),
            room_id=draft.room_id,
            interval=interval,
            description=(draft.description or "").strip() or None,
        )
    )


def validate_booking_request(
    draft: BookingDraft,
    existing_approved: Iterable[Interval],
    *,
    tz: tzinfo = timezone.utc,
) -> BookingDecision:
    """Run every check, ending with the conflict scan over *existing_approved*."""
    decision = check_request(draft, tz=tz)
    if not decision.accepted:
        return decision

    candidate = decision.candidate
    if has_conflict(candidate.room_id, candidate.interval, existing_approved):
        return BookingDecision(rejection=conflict_rejection())
    return decision
