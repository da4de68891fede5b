"""Organization Pydantic v2 schemas — profiles, user approval, roles, teams, shifts.

Naming conventions:
  - *Create / *Update / *Request → request bodies (write)
  - *Out                         → response bodies (read)
  - *Brief                       → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal.common.constants import UserRole


# ═════════════════════════════════════════════════════════════════════
# Shared / embedded
# ═════════════════════════════════════════════════════════════════════


class ProfileBrief(BaseModel):
    """Minimal user info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TeamBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class ShiftBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    start_time: time
    end_time: time


# ═════════════════════════════════════════════════════════════════════
# Profile
# ═════════════════════════════════════════════════════════════════════


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None
    annual_leave_balance: int
    is_approved: bool
    role: UserRole = UserRole.staff
    team: Optional[TeamBrief] = None
    shift: Optional[ShiftBrief] = None
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Self-service profile edit."""

    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("First and last name are required.")
        return v

    @field_validator("phone")
    @classmethod
    def phone_digits(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.isdigit():
            raise ValueError("Phone number must contain digits only.")
        if len(v) > 10:
            raise ValueError("Phone number must be at most 10 digits.")
        return v


# ═════════════════════════════════════════════════════════════════════
# User approval
# ═════════════════════════════════════════════════════════════════════


class UserListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.staff
    is_approved: bool
    approval_rejected: bool = False
    rejection_reason: Optional[str] = None
    approval_date: Optional[datetime] = None
    created_at: datetime


class UserListOut(BaseModel):
    pending: list[UserListItem]
    approved: list[UserListItem]


class UserRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Roles
# ═════════════════════════════════════════════════════════════════════


class RoleChange(BaseModel):
    user_id: uuid.UUID
    role: UserRole

    @field_validator("role")
    @classmethod
    def assignable_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.admin:
            raise ValueError("Only leader or staff roles can be assigned.")
        return v


class RoleUpdateResult(BaseModel):
    updated: int


# ═════════════════════════════════════════════════════════════════════
# Teams
# ═════════════════════════════════════════════════════════════════════


class TeamCreate(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    leader_id: Optional[uuid.UUID] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Team name is required.")
        return v


class TeamOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    leader_id: Optional[uuid.UUID] = None
    leader: Optional[ProfileBrief] = None
    member_count: int = 0
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Shifts
# ═════════════════════════════════════════════════════════════════════


class ShiftCreate(BaseModel):
    name: str = Field(..., max_length=50)
    start_time: time
    end_time: time

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Shift name is required.")
        return v

    @model_validator(mode="after")
    def start_before_end(self) -> "ShiftCreate":
        if self.start_time >= self.end_time:
            raise ValueError("Shift start time must be before end time.")
        return self


class ShiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    start_time: time
    end_time: time
