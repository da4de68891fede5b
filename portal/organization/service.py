"""Organization service layer — profiles, account approval, roles, teams, shifts."""

from __future__ import annotations

import logging
import uuid
from datetime import time

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.auth.dependencies import role_of
from portal.auth.models import RoleAssignment
from portal.common.audit import create_audit_entry, utcnow
from portal.common.constants import DEFAULT_SHIFTS, UserRole
from portal.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from portal.organization.models import Profile, Shift, Team
from portal.organization.schemas import (
    ProfileBrief,
    ProfileOut,
    ProfileUpdate,
    RoleChange,
    RoleUpdateResult,
    ShiftCreate,
    ShiftOut,
    TeamCreate,
    TeamOut,
    UserListItem,
    UserListOut,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Your account registration was rejected by the administrator."


def _user_item(profile: Profile) -> UserListItem:
    item = UserListItem.model_validate(profile)
    item.role = role_of(profile)
    return item


# ═════════════════════════════════════════════════════════════════════
# ProfileService
# ═════════════════════════════════════════════════════════════════════


class ProfileService:

    @staticmethod
    async def get_profile(db: AsyncSession, profile_id: uuid.UUID) -> ProfileOut:
        result = await db.execute(
            select(Profile)
            .where(Profile.id == profile_id)
            .options(
                selectinload(Profile.team),
                selectinload(Profile.shift),
                selectinload(Profile.role_assignment),
            )
            .execution_options(populate_existing=True)
        )
        profile = result.scalars().first()
        if profile is None:
            raise NotFoundException("User", profile_id)
        out = ProfileOut.model_validate(profile)
        out.role = role_of(profile)
        return out

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        profile: Profile,
        data: ProfileUpdate,
    ) -> ProfileOut:
        old_values = {
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "phone": profile.phone,
            "date_of_birth": profile.date_of_birth.isoformat() if profile.date_of_birth else None,
        }
        profile.first_name = data.first_name
        profile.last_name = data.last_name
        profile.phone = data.phone
        profile.date_of_birth = data.date_of_birth
        profile.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=profile.id,
            old_values=old_values,
            new_values={
                "first_name": data.first_name,
                "last_name": data.last_name,
                "phone": data.phone,
                "date_of_birth": data.date_of_birth.isoformat() if data.date_of_birth else None,
            },
        )
        return await ProfileService.get_profile(db, profile.id)


# ═════════════════════════════════════════════════════════════════════
# UserAdminService: account approval and role assignment
# ═════════════════════════════════════════════════════════════════════


class UserAdminService:

    @staticmethod
    async def _get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
        result = await db.execute(
            select(Profile)
            .where(Profile.id == user_id)
            .options(selectinload(Profile.role_assignment))
            .execution_options(populate_existing=True)
        )
        profile = result.scalars().first()
        if profile is None:
            raise NotFoundException("User", user_id)
        return profile

    @staticmethod
    async def list_users(db: AsyncSession) -> UserListOut:
        """Pending (neither approved nor rejected) and approved accounts."""
        result = await db.execute(
            select(Profile)
            .options(selectinload(Profile.role_assignment))
            .order_by(Profile.created_at.desc())
            .execution_options(populate_existing=True)
        )
        profiles = result.scalars().all()
        return UserListOut(
            pending=[
                _user_item(p) for p in profiles
                if not p.is_approved and not p.approval_rejected
            ],
            approved=[_user_item(p) for p in profiles if p.is_approved],
        )

    @staticmethod
    async def approve_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> UserListItem:
        profile = await UserAdminService._get_profile(db, user_id)
        profile.is_approved = True
        profile.approval_rejected = False
        profile.rejection_reason = None
        profile.approval_date = utcnow()
        profile.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="approve",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=actor_id,
            new_values={"is_approved": True},
        )
        logger.info("Account %s approved by %s", profile.id, actor_id)
        return _user_item(profile)

    @staticmethod
    async def reject_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        actor_id: uuid.UUID,
        reason: str | None = None,
    ) -> UserListItem:
        profile = await UserAdminService._get_profile(db, user_id)
        profile.is_approved = False
        profile.approval_rejected = True
        profile.rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        profile.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="reject",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=actor_id,
            new_values={
                "approval_rejected": True,
                "rejection_reason": profile.rejection_reason,
            },
        )
        logger.info("Account %s rejected by %s", profile.id, actor_id)
        return _user_item(profile)

    @staticmethod
    async def list_assignable_users(db: AsyncSession) -> list[UserListItem]:
        """Approved users whose role can be changed (everyone but admins)."""
        result = await db.execute(
            select(Profile)
            .where(Profile.is_approved.is_(True))
            .options(selectinload(Profile.role_assignment))
            .order_by(Profile.email)
            .execution_options(populate_existing=True)
        )
        return [
            _user_item(p) for p in result.scalars().all()
            if role_of(p) != UserRole.admin
        ]

    @staticmethod
    async def update_roles(
        db: AsyncSession,
        changes: list[RoleChange],
        actor_id: uuid.UUID,
    ) -> RoleUpdateResult:
        """Apply a batch of role changes; unchanged entries are skipped."""
        updated = 0
        for change in changes:
            profile = await UserAdminService._get_profile(db, change.user_id)
            current = role_of(profile)
            if current == UserRole.admin:
                raise ValidationException(
                    {"role": [f"Admin account {profile.email} cannot be changed."]}
                )
            if current == change.role:
                continue

            if profile.role_assignment is None:
                profile.role_assignment = RoleAssignment(
                    user_id=profile.id,
                    role=change.role,
                    assigned_by=actor_id,
                    assigned_at=utcnow(),
                )
            else:
                profile.role_assignment.role = change.role
                profile.role_assignment.assigned_by = actor_id
                profile.role_assignment.assigned_at = utcnow()
            await db.flush()

            await create_audit_entry(
                db,
                action="role_change",
                entity_type="profile",
                entity_id=profile.id,
                actor_id=actor_id,
                old_values={"role": current.value},
                new_values={"role": change.role.value},
            )
            logger.info(
                "Role of %s changed %s -> %s by %s",
                profile.id, current.value, change.role.value, actor_id,
            )
            updated += 1
        return RoleUpdateResult(updated=updated)


# ═════════════════════════════════════════════════════════════════════
# TeamService
# ═════════════════════════════════════════════════════════════════════


class TeamService:

    @staticmethod
    async def _get_team(db: AsyncSession, team_id: uuid.UUID) -> Team:
        team = (await db.execute(select(Team).where(Team.id == team_id))).scalars().first()
        if team is None:
            raise NotFoundException("Team", team_id)
        return team

    @staticmethod
    async def _ensure_unique_name(
        db: AsyncSession,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        query = select(Team.id).where(func.lower(Team.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Team.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def _build_response(db: AsyncSession, team: Team) -> TeamOut:
        count = (
            await db.execute(
                select(func.count(Profile.id)).where(Profile.team_id == team.id)
            )
        ).scalar_one()
        leader = None
        if team.leader_id is not None:
            row = (
                await db.execute(select(Profile).where(Profile.id == team.leader_id))
            ).scalars().first()
            leader = ProfileBrief.model_validate(row) if row else None
        return TeamOut(
            id=team.id,
            name=team.name,
            description=team.description,
            leader_id=team.leader_id,
            leader=leader,
            member_count=count,
            created_at=team.created_at,
        )

    @staticmethod
    async def list_teams(db: AsyncSession) -> list[TeamOut]:
        counts = dict(
            (
                await db.execute(
                    select(Profile.team_id, func.count(Profile.id))
                    .where(Profile.team_id.is_not(None))
                    .group_by(Profile.team_id)
                )
            ).all()
        )
        result = await db.execute(
            select(Team)
            .options(selectinload(Team.leader))
            .order_by(Team.name)
            .execution_options(populate_existing=True)
        )
        return [
            TeamOut(
                id=team.id,
                name=team.name,
                description=team.description,
                leader_id=team.leader_id,
                leader=ProfileBrief.model_validate(team.leader) if team.leader else None,
                member_count=counts.get(team.id, 0),
                created_at=team.created_at,
            )
            for team in result.scalars().all()
        ]

    @staticmethod
    async def create_team(
        db: AsyncSession,
        data: TeamCreate,
        actor_id: uuid.UUID,
    ) -> TeamOut:
        await TeamService._ensure_unique_name(db, data.name)
        if data.leader_id is not None:
            await UserAdminService._get_profile(db, data.leader_id)

        team = Team(
            name=data.name,
            description=(data.description or "").strip() or None,
            leader_id=data.leader_id,
        )
        db.add(team)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="team",
            entity_id=team.id,
            actor_id=actor_id,
            new_values={"name": team.name},
        )
        return await TeamService._build_response(db, team)

    @staticmethod
    async def update_team(
        db: AsyncSession,
        team_id: uuid.UUID,
        data: TeamCreate,
        actor_id: uuid.UUID,
    ) -> TeamOut:
        team = await TeamService._get_team(db, team_id)
        await TeamService._ensure_unique_name(db, data.name, exclude_id=team.id)
        if data.leader_id is not None:
            await UserAdminService._get_profile(db, data.leader_id)

        old_values = {"name": team.name, "leader_id": str(team.leader_id) if team.leader_id else None}
        team.name = data.name
        team.description = (data.description or "").strip() or None
        team.leader_id = data.leader_id
        team.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="team",
            entity_id=team.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={"name": team.name, "leader_id": str(team.leader_id) if team.leader_id else None},
        )
        return await TeamService._build_response(db, team)

    @staticmethod
    async def delete_team(
        db: AsyncSession,
        team_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        """Delete a team; its members stay but lose their team."""
        team = await TeamService._get_team(db, team_id)
        await db.execute(
            update(Profile)
            .where(Profile.team_id == team.id)
            .values(team_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await db.delete(team)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="team",
            entity_id=team_id,
            actor_id=actor_id,
            old_values={"name": team.name},
        )
        logger.info("Team %s deleted by %s", team_id, actor_id)


# ═════════════════════════════════════════════════════════════════════
# ShiftService
# ═════════════════════════════════════════════════════════════════════


class ShiftService:

    @staticmethod
    async def _get_shift(db: AsyncSession, shift_id: uuid.UUID) -> Shift:
        shift = (await db.execute(select(Shift).where(Shift.id == shift_id))).scalars().first()
        if shift is None:
            raise NotFoundException("Shift", shift_id)
        return shift

    @staticmethod
    async def _ensure_unique_name(
        db: AsyncSession,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        query = select(Shift.id).where(func.lower(Shift.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Shift.id != exclude_id)
        if (await db.execute(query)).scalar() is not None:
            raise ConflictError("name", name)

    @staticmethod
    async def list_shifts(db: AsyncSession) -> list[ShiftOut]:
        """All shifts by start time; seeds the AM/PM defaults on an empty table."""
        result = await db.execute(select(Shift).order_by(Shift.start_time))
        shifts = list(result.scalars().all())
        if not shifts:
            for name, start, end in DEFAULT_SHIFTS:
                shift = Shift(
                    name=name,
                    start_time=time.fromisoformat(start),
                    end_time=time.fromisoformat(end),
                )
                db.add(shift)
                shifts.append(shift)
            await db.flush()
            logger.info("Seeded %d default shifts", len(shifts))
        return [ShiftOut.model_validate(s) for s in shifts]

    @staticmethod
    async def create_shift(
        db: AsyncSession,
        data: ShiftCreate,
        actor_id: uuid.UUID,
    ) -> ShiftOut:
        await ShiftService._ensure_unique_name(db, data.name)
        shift = Shift(name=data.name, start_time=data.start_time, end_time=data.end_time)
        db.add(shift)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=actor_id,
            new_values={
                "name": shift.name,
                "start_time": shift.start_time.isoformat(),
                "end_time": shift.end_time.isoformat(),
            },
        )
        return ShiftOut.model_validate(shift)

    @staticmethod
    async def update_shift(
        db: AsyncSession,
        shift_id: uuid.UUID,
        data: ShiftCreate,
        actor_id: uuid.UUID,
    ) -> ShiftOut:
        shift = await ShiftService._get_shift(db, shift_id)
        await ShiftService._ensure_unique_name(db, data.name, exclude_id=shift.id)

        old_values = {
            "name": shift.name,
            "start_time": shift.start_time.isoformat(),
            "end_time": shift.end_time.isoformat(),
        }
        shift.name = data.name
        shift.start_time = data.start_time
        shift.end_time = data.end_time
        shift.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="shift",
            entity_id=shift.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={
                "name": shift.name,
                "start_time": shift.start_time.isoformat(),
                "end_time": shift.end_time.isoformat(),
            },
        )
        return ShiftOut.model_validate(shift)

    @staticmethod
    async def delete_shift(
        db: AsyncSession,
        shift_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        shift = await ShiftService._get_shift(db, shift_id)
        await db.execute(
            update(Profile)
            .where(Profile.shift_id == shift.id)
            .values(shift_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await db.delete(shift)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="shift",
            entity_id=shift_id,
            actor_id=actor_id,
            old_values={"name": shift.name},
        )
