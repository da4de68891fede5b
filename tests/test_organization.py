"""Organization test suite — own profile, account approval, role assignment,
teams and shifts.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import uuid
from datetime import time

import pytest
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.models import RoleAssignment
from portal.common.audit import AuditTrail
from portal.common.constants import UserRole
from portal.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from portal.organization.models import Profile, Shift, Team
from portal.organization.schemas import (
    ProfileUpdate,
    RoleChange,
    ShiftCreate,
    TeamCreate,
)
from portal.organization.service import (
    DEFAULT_REJECTION_REASON,
    ProfileService,
    ShiftService,
    TeamService,
    UserAdminService,
)
from tests.conftest import TestSessionFactory, auth_headers, seed_profile


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


async def _seed_team(db: AsyncSession, name: str = "Design") -> Team:
    team = Team(id=uuid.uuid4(), name=name)
    db.add(team)
    await db.commit()
    return team


async def _role_in_store(profile_id: uuid.UUID) -> UserRole | None:
    async with TestSessionFactory() as session:
        result = await session.execute(
            select(RoleAssignment.role).where(RoleAssignment.user_id == profile_id)
        )
        return result.scalar()


# ═════════════════════════════════════════════════════════════════════
# Own profile
# ═════════════════════════════════════════════════════════════════════


class TestProfile:

    async def test_get_profile_defaults_to_staff(self, db, staff_user):
        out = await ProfileService.get_profile(db, staff_user.id)
        assert out.email == "staff@portal.test"
        assert out.role == UserRole.staff
        assert out.annual_leave_balance == 12
        assert out.team is None

    async def test_get_profile_with_team(self, db):
        team = await _seed_team(db)
        member = await seed_profile(db, role=UserRole.leader)
        member.team_id = team.id
        await db.commit()

        out = await ProfileService.get_profile(db, member.id)
        assert out.role == UserRole.leader
        assert out.team.name == "Design"

    async def test_unknown_profile_is_404(self, db):
        with pytest.raises(NotFoundException):
            await ProfileService.get_profile(db, uuid.uuid4())

    async def test_update_profile(self, db, staff_user):
        out = await ProfileService.update_profile(
            db,
            staff_user,
            ProfileUpdate(first_name=" Sam ", last_name="Nguyen", phone="0901234567"),
        )
        assert out.first_name == "Sam"
        assert out.last_name == "Nguyen"
        assert out.phone == "0901234567"

    def test_blank_phone_becomes_none(self):
        assert ProfileUpdate(first_name="A", last_name="B", phone="  ").phone is None

    @pytest.mark.parametrize("phone", ["09012345678", "090-123", "abc"])
    def test_invalid_phone(self, phone):
        with pytest.raises(ValidationError):
            ProfileUpdate(first_name="A", last_name="B", phone=phone)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(first_name="  ", last_name="B")


# ═════════════════════════════════════════════════════════════════════
# Account approval
# ═════════════════════════════════════════════════════════════════════


class TestUserApproval:

    async def test_list_splits_pending_and_approved(self, db, admin_user):
        pending = await seed_profile(db, is_approved=False, email="new@portal.test")
        rejected = await seed_profile(db, is_approved=False, email="no@portal.test")
        rejected.approval_rejected = True
        await db.commit()

        out = await UserAdminService.list_users(db)
        assert [u.id for u in out.pending] == [pending.id]
        approved = {u.id: u for u in out.approved}
        assert admin_user.id in approved
        assert approved[admin_user.id].role == UserRole.admin

    async def test_approve_user(self, db, admin_user):
        pending = await seed_profile(db, is_approved=False)
        out = await UserAdminService.approve_user(db, pending.id, admin_user.id)
        assert out.is_approved is True
        assert out.approval_date is not None

    async def test_reject_uses_default_reason(self, db, admin_user):
        pending = await seed_profile(db, is_approved=False)
        out = await UserAdminService.reject_user(db, pending.id, admin_user.id, reason="  ")
        assert out.approval_rejected is True
        assert out.rejection_reason == DEFAULT_REJECTION_REASON

    async def test_reject_with_reason(self, db, admin_user):
        pending = await seed_profile(db, is_approved=False)
        out = await UserAdminService.reject_user(
            db, pending.id, admin_user.id, reason="Unknown applicant"
        )
        assert out.rejection_reason == "Unknown applicant"

    async def test_approve_after_reject_clears_rejection(self, db, admin_user):
        pending = await seed_profile(db, is_approved=False)
        await UserAdminService.reject_user(db, pending.id, admin_user.id)
        out = await UserAdminService.approve_user(db, pending.id, admin_user.id)
        assert out.approval_rejected is False
        assert out.rejection_reason is None

    async def test_unknown_user_is_404(self, db, admin_user):
        with pytest.raises(NotFoundException):
            await UserAdminService.approve_user(db, uuid.uuid4(), admin_user.id)


# ═════════════════════════════════════════════════════════════════════
# Role assignment
# ═════════════════════════════════════════════════════════════════════


class TestRoles:

    async def test_assignable_users_exclude_admins(self, db, staff_user, leader_user, admin_user):
        await seed_profile(db, is_approved=False)
        out = await UserAdminService.list_assignable_users(db)
        assert {u.id for u in out} == {staff_user.id, leader_user.id}

    async def test_promote_staff_without_role_row(self, db, staff_user, admin_user):
        result = await UserAdminService.update_roles(
            db, [RoleChange(user_id=staff_user.id, role=UserRole.leader)], admin_user.id
        )
        await db.commit()
        assert result.updated == 1
        assert await _role_in_store(staff_user.id) == UserRole.leader

    async def test_unchanged_entries_are_skipped(self, db, staff_user, leader_user, admin_user):
        result = await UserAdminService.update_roles(
            db,
            [
                RoleChange(user_id=staff_user.id, role=UserRole.staff),
                RoleChange(user_id=leader_user.id, role=UserRole.staff),
            ],
            admin_user.id,
        )
        await db.commit()
        assert result.updated == 1
        assert await _role_in_store(leader_user.id) == UserRole.staff

    async def test_admin_role_is_immutable(self, db, admin_user):
        other_admin = await seed_profile(db, role=UserRole.admin)
        with pytest.raises(ValidationException):
            await UserAdminService.update_roles(
                db, [RoleChange(user_id=other_admin.id, role=UserRole.staff)], admin_user.id
            )

    def test_admin_cannot_be_assigned(self):
        with pytest.raises(ValidationError):
            RoleChange(user_id=uuid.uuid4(), role=UserRole.admin)

    async def test_role_change_is_audited(self, db, staff_user, admin_user):
        await UserAdminService.update_roles(
            db, [RoleChange(user_id=staff_user.id, role=UserRole.leader)], admin_user.id
        )
        await db.commit()
        result = await db.execute(
            select(AuditTrail).where(AuditTrail.action == "role_change")
        )
        entry = result.scalars().one()
        assert entry.entity_id == staff_user.id
        assert entry.actor_id == admin_user.id


# ═════════════════════════════════════════════════════════════════════
# Teams
# ═════════════════════════════════════════════════════════════════════


class TestTeams:

    async def test_create_team_with_leader(self, db, leader_user, admin_user):
        out = await TeamService.create_team(
            db, TeamCreate(name="Sales", leader_id=leader_user.id), admin_user.id
        )
        assert out.name == "Sales"
        assert out.leader.id == leader_user.id
        assert out.member_count == 0

    async def test_duplicate_name_case_insensitive(self, db, admin_user):
        await _seed_team(db, "Sales")
        with pytest.raises(ConflictError):
            await TeamService.create_team(db, TeamCreate(name="sales"), admin_user.id)

    async def test_unknown_leader_is_404(self, db, admin_user):
        with pytest.raises(NotFoundException):
            await TeamService.create_team(
                db, TeamCreate(name="Sales", leader_id=uuid.uuid4()), admin_user.id
            )

    async def test_list_counts_members(self, db, staff_user, leader_user):
        design = await _seed_team(db, "Design")
        await _seed_team(db, "Audit")
        staff_user.team_id = design.id
        leader_user.team_id = design.id
        await db.commit()

        out = await TeamService.list_teams(db)
        assert [(t.name, t.member_count) for t in out] == [("Audit", 0), ("Design", 2)]

    async def test_update_keeps_own_name(self, db, admin_user):
        team = await _seed_team(db, "Design")
        out = await TeamService.update_team(
            db, team.id, TeamCreate(name="Design", description="UI and UX"), admin_user.id
        )
        assert out.description == "UI and UX"

    async def test_delete_detaches_members(self, db, staff_user, admin_user):
        team = await _seed_team(db, "Design")
        staff_user.team_id = team.id
        await db.commit()

        await TeamService.delete_team(db, team.id, admin_user.id)
        await db.commit()

        async with TestSessionFactory() as session:
            member = (
                await session.execute(select(Profile).where(Profile.id == staff_user.id))
            ).scalars().one()
            assert member.team_id is None
            assert (
                await session.execute(select(Team).where(Team.id == team.id))
            ).scalars().first() is None


# ═════════════════════════════════════════════════════════════════════
# Shifts
# ═════════════════════════════════════════════════════════════════════


class TestShifts:

    async def test_defaults_seeded_on_empty_table(self, db):
        out = await ShiftService.list_shifts(db)
        assert [(s.name, s.start_time, s.end_time) for s in out] == [
            ("AM", time(8), time(12)),
            ("PM", time(13), time(17)),
        ]

    async def test_no_reseed_when_present(self, db, admin_user):
        await ShiftService.create_shift(
            db, ShiftCreate(name="Night", start_time=time(18), end_time=time(22)), admin_user.id
        )
        out = await ShiftService.list_shifts(db)
        assert [s.name for s in out] == ["Night"]

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            ShiftCreate(name="Bad", start_time=time(12), end_time=time(8))

    async def test_duplicate_name_conflicts(self, db, admin_user):
        await ShiftService.create_shift(
            db, ShiftCreate(name="AM", start_time=time(8), end_time=time(12)), admin_user.id
        )
        with pytest.raises(ConflictError):
            await ShiftService.create_shift(
                db, ShiftCreate(name="am", start_time=time(7), end_time=time(11)), admin_user.id
            )

    async def test_update_shift(self, db, admin_user):
        shift = await ShiftService.create_shift(
            db, ShiftCreate(name="AM", start_time=time(8), end_time=time(12)), admin_user.id
        )
        out = await ShiftService.update_shift(
            db, shift.id, ShiftCreate(name="AM", start_time=time(7, 30), end_time=time(11, 30)),
            admin_user.id,
        )
        assert out.start_time == time(7, 30)

    async def test_delete_detaches_profiles(self, db, staff_user, admin_user):
        shift = Shift(id=uuid.uuid4(), name="AM", start_time=time(8), end_time=time(12))
        db.add(shift)
        await db.commit()
        staff_user.shift_id = shift.id
        await db.commit()

        await ShiftService.delete_shift(db, shift.id, admin_user.id)
        await db.commit()

        async with TestSessionFactory() as session:
            member = (
                await session.execute(select(Profile).where(Profile.id == staff_user.id))
            ).scalars().one()
            assert member.shift_id is None


# ═════════════════════════════════════════════════════════════════════
# API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestOrganizationAPI:

    async def test_get_and_update_me(self, client, staff_user):
        headers = auth_headers(staff_user)
        resp = await client.get("/api/v1/profile/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "staff"

        resp = await client.put(
            "/api/v1/profile/me",
            json={"first_name": "Sam", "last_name": "Tran", "phone": "0901234567"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["last_name"] == "Tran"

    async def test_long_phone_is_422(self, client, staff_user):
        resp = await client.put(
            "/api/v1/profile/me",
            json={"first_name": "Sam", "last_name": "Tran", "phone": "09012345678"},
            headers=auth_headers(staff_user),
        )
        assert resp.status_code == 422
        assert "phone" in resp.json()["errors"]

    async def test_users_admin_only(self, client, leader_user):
        resp = await client.get("/api/v1/users", headers=auth_headers(leader_user))
        assert resp.status_code == 403

    async def test_approve_and_reject_via_api(self, client, db, admin_user):
        first = await seed_profile(db, is_approved=False)
        second = await seed_profile(db, is_approved=False)
        headers = auth_headers(admin_user)

        resp = await client.put(f"/api/v1/users/{first.id}/approve", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["is_approved"] is True

        resp = await client.put(f"/api/v1/users/{second.id}/reject", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["rejection_reason"] == DEFAULT_REJECTION_REASON

    async def test_bulk_role_update(self, client, staff_user, leader_user, admin_user):
        resp = await client.put(
            "/api/v1/roles",
            json=[
                {"user_id": str(staff_user.id), "role": "leader"},
                {"user_id": str(leader_user.id), "role": "leader"},
            ],
            headers=auth_headers(admin_user),
        )
        assert resp.status_code == 200
        assert resp.json() == {"updated": 1}

    async def test_team_crud(self, client, staff_user, admin_user):
        headers = auth_headers(admin_user)
        resp = await client.post("/api/v1/teams", json={"name": "Ops"}, headers=headers)
        assert resp.status_code == 201
        team_id = resp.json()["id"]

        resp = await client.get("/api/v1/teams", headers=auth_headers(staff_user))
        assert [t["name"] for t in resp.json()] == ["Ops"]

        resp = await client.delete(f"/api/v1/teams/{team_id}", headers=headers)
        assert resp.status_code == 204

    async def test_staff_cannot_create_shift(self, client, staff_user):
        resp = await client.post(
            "/api/v1/shifts",
            json={"name": "Night", "start_time": "18:00", "end_time": "22:00"},
            headers=auth_headers(staff_user),
        )
        assert resp.status_code == 403
