"""Auth dependencies — identity-provider JWT validation, RBAC enforcement.

Tokens are minted by the external identity provider; this service only
verifies them and maps the subject onto a local Profile.
"""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from portal.common.constants import PERMISSIONS, UserRole
from portal.common.exceptions import ForbiddenException
from portal.config import settings
from portal.database import get_db
from portal.organization.models import Profile

# Each role implicitly includes the lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.leader, UserRole.staff},
    UserRole.leader: {UserRole.leader, UserRole.staff},
    UserRole.staff: {UserRole.staff},
}


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


def role_of(profile: Profile) -> UserRole:
    """Return the profile's role, defaulting to staff when none is assigned."""
    if profile.role_assignment is None:
        return UserRole.staff
    return profile.role_assignment.role


def has_role(role: UserRole, *allowed: UserRole) -> bool:
    """True if *role* (expanded via hierarchy) covers any of *allowed*."""
    return bool(_ROLE_HIERARCHY.get(role, {role}).intersection(allowed))


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Validate the identity-provider JWT and return the approved Profile."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    try:
        profile_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    result = await db.execute(
        select(Profile)
        .where(Profile.id == profile_id)
        .options(selectinload(Profile.role_assignment))
        .execution_options(populate_existing=True),
    )
    profile = result.scalars().first()
    if profile is None:
        raise HTTPException(status_code=401, detail="User account not found.")

    if not profile.is_approved:
        raise ForbiddenException(detail="Your account is pending administrator approval.")

    request.state.user_role = role_of(profile)
    return profile


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — e.g. admin can access leader endpoints.
    """

    async def _check(
        request: Request,
        profile: Profile = Depends(get_current_user),
    ) -> Profile:
        user_role: UserRole = request.state.user_role
        if not has_role(user_role, *allowed_roles):
            raise ForbiddenException(
                detail=f"Role '{user_role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return profile

    return _check


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(
        request: Request,
        profile: Profile = Depends(get_current_user),
    ) -> Profile:
        user_role: UserRole = request.state.user_role
        role_permissions = PERMISSIONS.get(user_role, [])
        if permission not in role_permissions:
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{user_role.value}'.",
            )
        return profile

    return _check
