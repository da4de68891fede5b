"""Organization ORM models: Profile, Team, Shift.

A Profile mirrors one identity-provider account; its ``id`` equals the
token subject. Teams and shifts are plain reference data maintained by admins.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.common.audit import utcnow
from portal.config import settings
from portal.database import Base

if TYPE_CHECKING:
    from portal.auth.models import RoleAssignment


# ═════════════════════════════════════════════════════════════════════
# Team
# ═════════════════════════════════════════════════════════════════════


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    leader_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey(
            "profiles.id", ondelete="SET NULL", use_alter=True, name="fk_team_leader",
        ),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    leader: Mapped[Optional[Profile]] = relationship(foreign_keys=[leader_id])
    members: Mapped[list[Profile]] = relationship(
        back_populates="team", foreign_keys="Profile.team_id",
    )

    def __repr__(self) -> str:
        return f"<Team {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Shift
# ═════════════════════════════════════════════════════════════════════


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(50), unique=True, nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Shift {self.name!r} {self.start_time}-{self.end_time}>"


# ═════════════════════════════════════════════════════════════════════
# Profile
# ═════════════════════════════════════════════════════════════════════


class Profile(Base):
    """Portal user. Created on first sign-in, approved by an admin."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(sa.String(100))
    last_name: Mapped[Optional[str]] = mapped_column(sa.String(100))
    phone: Mapped[Optional[str]] = mapped_column(sa.String(10))
    date_of_birth: Mapped[Optional[date]] = mapped_column(sa.Date)
    avatar_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    cv_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    team_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="SET NULL"),
    )
    shift_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("shifts.id", ondelete="SET NULL"),
    )
    annual_leave_balance: Mapped[int] = mapped_column(
        sa.Integer,
        default=lambda: settings.DEFAULT_ANNUAL_LEAVE_BALANCE,
        server_default=sa.text(str(settings.DEFAULT_ANNUAL_LEAVE_BALANCE)),
    )

    # Account approval
    is_approved: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.text("FALSE"),
    )
    approval_rejected: Mapped[bool] = mapped_column(
        sa.Boolean, default=False, server_default=sa.text("FALSE"),
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    approval_date: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )

    last_online: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    team: Mapped[Optional[Team]] = relationship(
        back_populates="members", foreign_keys=[team_id],
    )
    shift: Mapped[Optional[Shift]] = relationship()
    role_assignment: Mapped[Optional[RoleAssignment]] = relationship(
        back_populates="profile",
        uselist=False,
        foreign_keys="RoleAssignment.user_id",
    )

    def __repr__(self) -> str:
        return f"<Profile {self.email!r}>"
