"""Attendance tests — local day bounds, check-in/check-out alternation, API."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.attendance.models import Attendance
from portal.attendance.service import AttendanceService, local_day_bounds
from portal.common.audit import AuditTrail
from portal.common.constants import AttendanceType
from portal.common.exceptions import ValidationException
from tests.conftest import auth_headers

SAIGON = ZoneInfo("Asia/Ho_Chi_Minh")


async def _seed_event(
    db: AsyncSession,
    user_id: uuid.UUID,
    kind: AttendanceType,
    recorded_at: datetime,
) -> Attendance:
    entry = Attendance(id=uuid.uuid4(), user_id=user_id, type=kind, recorded_at=recorded_at)
    db.add(entry)
    await db.commit()
    return entry


def _yesterday() -> datetime:
    start, _ = local_day_bounds()
    return start - timedelta(minutes=1)


# ═════════════════════════════════════════════════════════════════════
# Day bounds
# ═════════════════════════════════════════════════════════════════════


class TestLocalDayBounds:

    def test_bounds_follow_local_calendar(self):
        # 18:30 UTC is already 01:30 the next morning in Saigon
        now = datetime(2030, 3, 10, 18, 30, tzinfo=timezone.utc)
        start, end = local_day_bounds(now, SAIGON)
        assert start == datetime(2030, 3, 10, 17, 0, tzinfo=timezone.utc)
        assert end == datetime(2030, 3, 11, 17, 0, tzinfo=timezone.utc)

    def test_utc_zone_is_midnight_to_midnight(self):
        now = datetime(2030, 3, 10, 12, 0, tzinfo=timezone.utc)
        start, end = local_day_bounds(now, ZoneInfo("UTC"))
        assert start == datetime(2030, 3, 10, tzinfo=timezone.utc)
        assert end - start == timedelta(days=1)


# ═════════════════════════════════════════════════════════════════════
# Recording events
# ═════════════════════════════════════════════════════════════════════


class TestRecord:

    async def test_check_in_is_audited(self, db, staff_user):
        out = await AttendanceService.record(db, staff_user.id, AttendanceType.check_in)
        await db.commit()
        assert out.type == AttendanceType.check_in
        assert out.user_id == staff_user.id

        entry = (
            await db.execute(select(AuditTrail).where(AuditTrail.entity_id == out.id))
        ).scalar_one()
        assert entry.action == "check_in"
        assert entry.entity_type == "attendance"

    async def test_double_check_in_rejected(self, db, staff_user):
        await AttendanceService.record(db, staff_user.id, AttendanceType.check_in)
        with pytest.raises(ValidationException):
            await AttendanceService.record(db, staff_user.id, AttendanceType.check_in)

    async def test_check_out_needs_check_in(self, db, staff_user):
        with pytest.raises(ValidationException) as exc_info:
            await AttendanceService.record(db, staff_user.id, AttendanceType.check_out)
        assert exc_info.value.errors == {"type": ["You have not checked in today."]}

    async def test_in_out_in_sequence(self, db, staff_user):
        for kind in (AttendanceType.check_in, AttendanceType.check_out, AttendanceType.check_in):
            await AttendanceService.record(db, staff_user.id, kind)
        today = await AttendanceService.get_today(db, staff_user.id)
        assert [e.type for e in today.entries] == [
            AttendanceType.check_in,
            AttendanceType.check_out,
            AttendanceType.check_in,
        ]
        assert today.last_event == AttendanceType.check_in

    async def test_yesterday_open_check_in_does_not_block(self, db, staff_user):
        await _seed_event(db, staff_user.id, AttendanceType.check_in, _yesterday())
        out = await AttendanceService.record(db, staff_user.id, AttendanceType.check_in)
        assert out.type == AttendanceType.check_in


class TestCheckedInToday:

    async def test_today_check_in(self, db, staff_user):
        await _seed_event(db, staff_user.id, AttendanceType.check_in, datetime.now(timezone.utc))
        assert await AttendanceService.checked_in_today(db, staff_user.id) is True

    async def test_yesterday_does_not_count(self, db, staff_user):
        await _seed_event(db, staff_user.id, AttendanceType.check_in, _yesterday())
        assert await AttendanceService.checked_in_today(db, staff_user.id) is False

    async def test_other_users_do_not_count(self, db, staff_user, leader_user):
        await _seed_event(db, leader_user.id, AttendanceType.check_in, datetime.now(timezone.utc))
        assert await AttendanceService.checked_in_today(db, staff_user.id) is False


# ═════════════════════════════════════════════════════════════════════
# API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestAttendanceAPI:

    async def test_check_in_then_out(self, client, staff_user):
        headers = auth_headers(staff_user)
        resp = await client.post("/api/v1/attendance/check-in", headers=headers)
        assert resp.status_code == 201
        assert resp.json()["type"] == "check_in"

        resp = await client.post("/api/v1/attendance/check-out", headers=headers)
        assert resp.status_code == 201
        assert resp.json()["type"] == "check_out"

        resp = await client.get("/api/v1/attendance/today", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["checked_in"] is True
        assert body["last_event"] == "check_out"
        assert len(body["entries"]) == 2

    async def test_check_out_without_check_in_is_422(self, client, staff_user):
        resp = await client.post(
            "/api/v1/attendance/check-out", headers=auth_headers(staff_user)
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")

    async def test_requires_auth(self, client):
        resp = await client.post("/api/v1/attendance/check-in")
        assert resp.status_code == 401
