"""Meeting room Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request → request bodies (write)
  - *Out                         → response bodies (read)
  - *Brief                       → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.common.constants import BookingStatus


def _split_equipment(value: Union[str, list[str], None]) -> Optional[list[str]]:
    """Accept ``"TV, Whiteboard"`` or a list; drop blanks; empty → None."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    cleaned = [item.strip() for item in items if item and item.strip()]
    return cleaned or None


# ═════════════════════════════════════════════════════════════════════
# Rooms
# ═════════════════════════════════════════════════════════════════════


class RoomCreate(BaseModel):
    """Payload for adding a meeting room."""

    name: str = Field(..., max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    capacity: int = Field(1, ge=1, le=1000)
    equipment: Optional[Union[str, list[str]]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Room name is required.")
        return v.strip()

    @field_validator("location")
    @classmethod
    def blank_location_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() or None if v is not None else None

    @field_validator("equipment")
    @classmethod
    def normalise_equipment(cls, v):
        return _split_equipment(v)


class RoomUpdate(BaseModel):
    """Partial room update — omitted fields are left unchanged."""

    name: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    capacity: Optional[int] = Field(None, ge=1, le=1000)
    equipment: Optional[Union[str, list[str]]] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Room name is required.")
        return v.strip() if v is not None else None

    @field_validator("location")
    @classmethod
    def blank_location_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() or None if v is not None else None

    @field_validator("equipment")
    @classmethod
    def normalise_equipment(cls, v):
        return _split_equipment(v)


class RoomOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    location: Optional[str] = None
    capacity: int
    equipment: Optional[list[str]] = None
    is_active: bool = True
    created_at: datetime


class RoomBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    location: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Bookings
# ═════════════════════════════════════════════════════════════════════


class RoomBookingCreate(BaseModel):
    """Booking form submission.

    Every field is optional here so that missing values are reported by the
    booking validator with its own message rather than by request parsing.
    Naive times are read in the portal's local timezone.
    """

    title: Optional[str] = Field(None, max_length=200)
    room_id: Optional[uuid.UUID] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("title", "room_id", "start_time", "end_time", "description", mode="before")
    @classmethod
    def blank_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BookingReviewRequest(BaseModel):
    remarks: Optional[str] = Field(None, max_length=1000)


class RoomBookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    room_id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    reviewer_remarks: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime

    # Filled by the service, never read from the ORM row
    room_summary: Optional[RoomBrief] = None
