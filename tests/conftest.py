"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (rooms, bookings, tasks, leave, organization).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("TIMEZONE", "Asia/Ho_Chi_Minh")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from portal.common.constants import UserRole
from portal.config import settings
from portal.database import Base, get_db
from portal.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import portal.attendance.models  # noqa: F401
import portal.auth.models  # noqa: F401
import portal.common.audit  # noqa: F401
import portal.leave.models  # noqa: F401
import portal.organization.models  # noqa: F401
import portal.rooms.models  # noqa: F401
import portal.tasks.models  # noqa: F401

from portal.auth.models import RoleAssignment
from portal.organization.models import Profile

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_profile(
    *,
    email: Optional[str] = None,
    first_name: str = "Test",
    last_name: str = "User",
    is_approved: bool = True,
    annual_leave_balance: int = 12,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        email=email or f"user-{uuid.uuid4().hex[:8]}@portal.test",
        first_name=first_name,
        last_name=last_name,
        is_approved=is_approved,
        approval_rejected=False,
        annual_leave_balance=annual_leave_balance,
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def seed_profile(
    db: AsyncSession,
    *,
    role: Optional[UserRole] = None,
    **kwargs,
) -> Profile:
    """Insert a profile (and its role row when *role* is given) and commit."""
    profile = Profile(**_make_profile(**kwargs))
    db.add(profile)
    await db.flush()
    if role is not None:
        db.add(
            RoleAssignment(
                id=uuid.uuid4(),
                user_id=profile.id,
                role=role,
                assigned_at=datetime.now(timezone.utc),
            )
        )
    await db.commit()
    return profile


@pytest.fixture
async def staff_user(db) -> Profile:
    return await seed_profile(db, email="staff@portal.test", first_name="Sam")


@pytest.fixture
async def leader_user(db) -> Profile:
    return await seed_profile(
        db, role=UserRole.leader, email="leader@portal.test", first_name="Lee",
    )


@pytest.fixture
async def admin_user(db) -> Profile:
    return await seed_profile(
        db, role=UserRole.admin, email="admin@portal.test", first_name="Ada",
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    profile_id: uuid.UUID,
    *,
    expired: bool = False,
    audience: str = "authenticated",
    secret: Optional[str] = None,
) -> str:
    """Mint an identity-provider style access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(profile_id),
        "aud": audience,
        "role": "authenticated",
        "exp": exp,
    }
    return jwt.encode(
        payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM,
    )


def auth_headers(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}
