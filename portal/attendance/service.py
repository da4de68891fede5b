"""Attendance service — check-in / check-out events on the local calendar.

A user alternates between the two event types within a local day: a second
check-in needs a check-out in between, and a check-out needs an open
check-in. Day boundaries come from ``settings.TIMEZONE`` and are converted
to UTC before querying.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.attendance.models import Attendance
from portal.attendance.schemas import AttendanceOut, TodayAttendanceOut
from portal.common.audit import create_audit_entry, utcnow
from portal.common.constants import AttendanceType
from portal.common.exceptions import ValidationException
from portal.config import settings

logger = logging.getLogger(__name__)


def local_day_bounds(
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of the local calendar day containing *now*."""
    tz = tz or ZoneInfo(settings.TIMEZONE)
    local_now = (now or utcnow()).astimezone(tz)
    start = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    end = datetime.combine(local_now.date() + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


class AttendanceService:

    @staticmethod
    async def _today_entries(db: AsyncSession, user_id: uuid.UUID) -> list[Attendance]:
        start, end = local_day_bounds()
        result = await db.execute(
            select(Attendance)
            .where(
                Attendance.user_id == user_id,
                Attendance.recorded_at >= start,
                Attendance.recorded_at < end,
            )
            .order_by(Attendance.recorded_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def record(
        db: AsyncSession,
        user_id: uuid.UUID,
        kind: AttendanceType,
        *,
        ip_address: Optional[str] = None,
    ) -> AttendanceOut:
        entries = await AttendanceService._today_entries(db, user_id)
        last = entries[-1].type if entries else None

        if kind == AttendanceType.check_in and last == AttendanceType.check_in:
            raise ValidationException(
                {"type": ["Already checked in today without checking out."]}
            )
        if kind == AttendanceType.check_out and last != AttendanceType.check_in:
            raise ValidationException({"type": ["You have not checked in today."]})

        entry = Attendance(user_id=user_id, type=kind, recorded_at=utcnow(), ip_address=ip_address)
        db.add(entry)
        await db.flush()

        await create_audit_entry(
            db,
            action=kind.value,
            entity_type="attendance",
            entity_id=entry.id,
            actor_id=user_id,
            new_values={"type": kind.value, "recorded_at": entry.recorded_at.isoformat()},
            ip_address=ip_address,
        )
        logger.info("Attendance %s recorded for %s", kind.value, user_id)
        return AttendanceOut.model_validate(entry)

    @staticmethod
    async def get_today(db: AsyncSession, user_id: uuid.UUID) -> TodayAttendanceOut:
        entries = await AttendanceService._today_entries(db, user_id)
        return TodayAttendanceOut(
            checked_in=any(e.type == AttendanceType.check_in for e in entries),
            last_event=entries[-1].type if entries else None,
            entries=[AttendanceOut.model_validate(e) for e in entries],
        )

    @staticmethod
    async def checked_in_today(db: AsyncSession, user_id: uuid.UUID) -> bool:
        """True when the user has any check-in on the current local day."""
        start, end = local_day_bounds()
        result = await db.execute(
            select(Attendance.id)
            .where(
                Attendance.user_id == user_id,
                Attendance.type == AttendanceType.check_in,
                Attendance.recorded_at >= start,
                Attendance.recorded_at < end,
            )
            .limit(1)
        )
        return result.first() is not None
