"""Attendance response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from portal.common.constants import AttendanceType


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    type: AttendanceType
    recorded_at: datetime


class TodayAttendanceOut(BaseModel):
    """The caller's events for the current local day, oldest first."""

    checked_in: bool
    last_event: Optional[AttendanceType] = None
    entries: list[AttendanceOut]
