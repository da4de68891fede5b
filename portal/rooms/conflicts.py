"""Booking conflict detection over a snapshot of approved reservations."""

from __future__ import annotations

import uuid
from typing import Iterable, Union

from portal.rooms.intervals import Interval, overlaps

ResourceId = Union[uuid.UUID, str]


def has_conflict(
    resource_id: ResourceId,
    candidate: Interval,
    existing_approved: Iterable[Interval],
) -> bool:
    """Return True if *candidate* overlaps any approved interval of the room.

    *existing_approved* must already be restricted to *resource_id*; the
    caller fetches it right before calling. Linear scan, no ordering needed,
    no side effects.
    """
    return any(overlaps(candidate, existing) for existing in existing_approved)
