"""Attendance ORM model: one row per check-in or check-out event."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import INET, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portal.common.audit import utcnow
from portal.common.constants import AttendanceType
from portal.database import Base

if TYPE_CHECKING:
    from portal.organization.models import Profile


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        sa.Index("ix_attendance_user_recorded", "user_id", "recorded_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[AttendanceType] = mapped_column(
        sa.Enum(AttendanceType, name="attendance_type", native_enum=False, length=20),
        nullable=False,
    )
    recorded_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sa.func.now(),
    )
    ip_address: Mapped[Optional[str]] = mapped_column(INET)

    # Relationships
    user: Mapped[Profile] = relationship()

    def __repr__(self) -> str:
        return f"<Attendance {self.type.value} {self.user_id} @ {self.recorded_at}>"
