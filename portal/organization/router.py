"""Organization routers.

Exported routers, mounted by the app factory:
  - profile_router → /api/v1/profile
  - users_router   → /api/v1/users
  - roles_router   → /api/v1/roles
  - teams_router   → /api/v1/teams
  - shifts_router  → /api/v1/shifts
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_permission
from portal.database import get_db
from portal.organization.models import Profile
from portal.organization.schemas import (
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
    UserRejectRequest,
)
from portal.organization.service import (
    ProfileService,
    ShiftService,
    TeamService,
    UserAdminService,
)

profile_router = APIRouter()
users_router = APIRouter()
roles_router = APIRouter()
teams_router = APIRouter()
shifts_router = APIRouter()


# ═════════════════════════════════════════════════════════════════════
# Profile
# ═════════════════════════════════════════════════════════════════════

@profile_router.get("/me", response_model=ProfileOut)
async def get_my_profile(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProfileService.get_profile(db, profile.id)


@profile_router.put("/me", response_model=ProfileOut)
async def update_my_profile(
    body: ProfileUpdate,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProfileService.update_profile(db, profile, body)


# ═════════════════════════════════════════════════════════════════════
# Users (account approval)
# ═════════════════════════════════════════════════════════════════════

@users_router.get("", response_model=UserListOut)
async def list_users(
    profile: Profile = Depends(require_permission("user:approve")),
    db: AsyncSession = Depends(get_db),
):
    """Accounts awaiting approval and approved accounts."""
    return await UserAdminService.list_users(db)


@users_router.put("/{user_id}/approve", response_model=UserListItem)
async def approve_user(
    user_id: uuid.UUID,
    profile: Profile = Depends(require_permission("user:approve")),
    db: AsyncSession = Depends(get_db),
):
    return await UserAdminService.approve_user(db, user_id, profile.id)


@users_router.put("/{user_id}/reject", response_model=UserListItem)
async def reject_user(
    user_id: uuid.UUID,
    body: Optional[UserRejectRequest] = None,
    profile: Profile = Depends(require_permission("user:approve")),
    db: AsyncSession = Depends(get_db),
):
    return await UserAdminService.reject_user(
        db, user_id, profile.id, reason=body.reason if body else None,
    )


# ═════════════════════════════════════════════════════════════════════
# Roles
# ═════════════════════════════════════════════════════════════════════

@roles_router.get("", response_model=list[UserListItem])
async def list_assignable_users(
    profile: Profile = Depends(require_permission("role:assign")),
    db: AsyncSession = Depends(get_db),
):
    return await UserAdminService.list_assignable_users(db)


@roles_router.put("", response_model=RoleUpdateResult)
async def update_roles(
    body: list[RoleChange],
    profile: Profile = Depends(require_permission("role:assign")),
    db: AsyncSession = Depends(get_db),
):
    """Bulk role update. Admin accounts cannot be changed."""
    return await UserAdminService.update_roles(db, body, profile.id)


# ═════════════════════════════════════════════════════════════════════
# Teams
# ═════════════════════════════════════════════════════════════════════

@teams_router.get("", response_model=list[TeamOut])
async def list_teams(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TeamService.list_teams(db)


@teams_router.post("", response_model=TeamOut, status_code=201)
async def create_team(
    body: TeamCreate,
    profile: Profile = Depends(require_permission("team:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await TeamService.create_team(db, body, profile.id)


@teams_router.put("/{team_id}", response_model=TeamOut)
async def update_team(
    team_id: uuid.UUID,
    body: TeamCreate,
    profile: Profile = Depends(require_permission("team:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await TeamService.update_team(db, team_id, body, profile.id)


@teams_router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: uuid.UUID,
    profile: Profile = Depends(require_permission("team:configure")),
    db: AsyncSession = Depends(get_db),
):
    await TeamService.delete_team(db, team_id, profile.id)


# ═════════════════════════════════════════════════════════════════════
# Shifts
# ═════════════════════════════════════════════════════════════════════

@shifts_router.get("", response_model=list[ShiftOut])
async def list_shifts(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.list_shifts(db)


@shifts_router.post("", response_model=ShiftOut, status_code=201)
async def create_shift(
    body: ShiftCreate,
    profile: Profile = Depends(require_permission("shift:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.create_shift(db, body, profile.id)


@shifts_router.put("/{shift_id}", response_model=ShiftOut)
async def update_shift(
    shift_id: uuid.UUID,
    body: ShiftCreate,
    profile: Profile = Depends(require_permission("shift:configure")),
    db: AsyncSession = Depends(get_db),
):
    return await ShiftService.update_shift(db, shift_id, body, profile.id)


@shifts_router.delete("/{shift_id}", status_code=204)
async def delete_shift(
    shift_id: uuid.UUID,
    profile: Profile = Depends(require_permission("shift:configure")),
    db: AsyncSession = Depends(get_db),
):
    await ShiftService.delete_shift(db, shift_id, profile.id)
