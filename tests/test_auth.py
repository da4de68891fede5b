"""Auth tests — bearer token validation, account approval gate, RBAC helpers."""

from __future__ import annotations

import uuid

import pytest

from portal.auth.dependencies import has_role, role_of
from portal.common.constants import PERMISSIONS, UserRole
from tests.conftest import auth_headers, create_access_token, seed_profile

PROFILE_URL = "/api/v1/profile/me"


# ── Token validation ────────────────────────────────────────────────


async def test_missing_authorization_header(client):
    resp = await client.get(PROFILE_URL)
    assert resp.status_code == 401


async def test_non_bearer_scheme_rejected(client):
    resp = await client.get(PROFILE_URL, headers={"Authorization": "Basic abc"})
    assert resp.status_code == 401


async def test_valid_token_returns_profile(client, staff_user):
    resp = await client.get(PROFILE_URL, headers=auth_headers(staff_user))
    assert resp.status_code == 200
    assert resp.json()["id"] == str(staff_user.id)


async def test_expired_token(client, staff_user):
    token = create_access_token(staff_user.id, expired=True)
    resp = await client.get(PROFILE_URL, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token has expired."


async def test_wrong_audience(client, staff_user):
    token = create_access_token(staff_user.id, audience="anon")
    resp = await client.get(PROFILE_URL, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_wrong_secret(client, staff_user):
    token = create_access_token(staff_user.id, secret="not-the-real-secret")
    resp = await client.get(PROFILE_URL, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token."


async def test_unknown_profile(client):
    token = create_access_token(uuid.uuid4())
    resp = await client.get(PROFILE_URL, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_unapproved_profile_is_forbidden(client, db):
    pending = await seed_profile(db, is_approved=False)
    resp = await client.get(PROFILE_URL, headers=auth_headers(pending))
    assert resp.status_code == 403
    assert "pending administrator approval" in resp.json()["detail"]


# ── Role and permission enforcement ─────────────────────────────────


async def test_staff_blocked_from_leader_endpoint(client, staff_user):
    resp = await client.get("/api/v1/bookings/pending", headers=auth_headers(staff_user))
    assert resp.status_code == 403


async def test_admin_inherits_leader_access(client, admin_user):
    resp = await client.get("/api/v1/bookings/pending", headers=auth_headers(admin_user))
    assert resp.status_code == 200


async def test_permission_denied_names_permission(client, leader_user):
    resp = await client.post(
        "/api/v1/rooms", json={"name": "Annex"}, headers=auth_headers(leader_user)
    )
    assert resp.status_code == 403
    assert "room:configure" in resp.json()["detail"]


async def test_role_of_defaults_to_staff(db):
    profile = await seed_profile(db)
    await db.refresh(profile, ["role_assignment"])
    assert role_of(profile) == UserRole.staff


@pytest.mark.parametrize(
    "role,allowed,expected",
    [
        (UserRole.admin, (UserRole.leader,), True),
        (UserRole.admin, (UserRole.staff,), True),
        (UserRole.leader, (UserRole.staff,), True),
        (UserRole.leader, (UserRole.admin,), False),
        (UserRole.staff, (UserRole.leader, UserRole.admin), False),
    ],
)
def test_role_hierarchy(role, allowed, expected):
    assert has_role(role, *allowed) is expected


def test_only_admin_configures_rooms():
    holders = {role for role, perms in PERMISSIONS.items() if "room:configure" in perms}
    assert holders == {UserRole.admin}
