"""Leave Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal.common.constants import LeaveKind, LeaveStatus
from portal.organization.schemas import ProfileBrief


# ═════════════════════════════════════════════════════════════════════
# Leave types
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Leave type name is required.")
        return v


class LeaveTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Leave requests
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Leave application. ``custom`` requests must reference a leave type."""

    leave_kind: LeaveKind = LeaveKind.annual
    leave_type_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_request(self) -> "LeaveRequestCreate":
        if self.start_date > self.end_date:
            raise ValueError("Start date must be on or before end date.")
        if self.leave_kind == LeaveKind.custom and self.leave_type_id is None:
            raise ValueError("A custom leave request needs a leave type.")
        if self.leave_kind != LeaveKind.custom and self.leave_type_id is not None:
            raise ValueError("Only custom leave requests can reference a leave type.")
        return self


class LeaveReviewRequest(BaseModel):
    remarks: Optional[str] = Field(None, max_length=1000)


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    leave_kind: LeaveKind
    leave_type_id: Optional[uuid.UUID] = None
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    status: LeaveStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    reviewer_remarks: Optional[str] = None
    created_at: datetime

    # Filled by the service
    leave_type_name: Optional[str] = None
    requester_summary: Optional[ProfileBrief] = None
