"""001 – Initial schema: profiles, organization, rooms, bookings, tasks, leave, attendance, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000+07:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Status-like columns are VARCHAR(20) guarded by CHECK constraints
STATUS_VALUES: dict[str, list[str]] = {
    "user_role": ["staff", "leader", "admin"],
    "booking_status": ["pending", "approved", "rejected", "cancelled"],
    "task_status": ["todo", "in_progress", "review", "done"],
    "task_priority": ["low", "medium", "high", "urgent"],
    "leave_status": ["pending", "approved", "rejected"],
    "leave_kind": ["annual", "sick", "personal", "unpaid", "custom"],
    "attendance_type": ["check_in", "check_out"],
}


def _check_in(column: str, kind: str) -> str:
    vals = ", ".join(f"'{v}'" for v in STATUS_VALUES[kind])
    return f"CHECK ({column} IN ({vals}))"


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. teams (leader FK added after profiles) ─────────────────────────
    op.execute("""
        CREATE TABLE teams (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name         VARCHAR(100) NOT NULL UNIQUE,
            description  TEXT,
            leader_id    UUID,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. shifts ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE shifts (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(50) NOT NULL UNIQUE,
            start_time  TIME NOT NULL,
            end_time    TIME NOT NULL,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_shift_range CHECK (start_time < end_time)
        )
    """)
    op.execute("""
        INSERT INTO shifts (name, start_time, end_time) VALUES
            ('AM', '08:00', '12:00'),
            ('PM', '13:00', '17:00')
    """)

    # ── 3. profiles ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE profiles (
            id                    UUID PRIMARY KEY,
            email                 VARCHAR(255) NOT NULL UNIQUE,
            first_name            VARCHAR(100),
            last_name             VARCHAR(100),
            phone                 VARCHAR(10),
            date_of_birth         DATE,
            avatar_url            TEXT,
            cv_url                TEXT,
            team_id               UUID REFERENCES teams(id) ON DELETE SET NULL,
            shift_id              UUID REFERENCES shifts(id) ON DELETE SET NULL,
            annual_leave_balance  INTEGER DEFAULT 12,
            is_approved           BOOLEAN DEFAULT FALSE,
            approval_rejected     BOOLEAN DEFAULT FALSE,
            rejection_reason      TEXT,
            approval_date         TIMESTAMPTZ,
            last_online           TIMESTAMPTZ,
            created_at            TIMESTAMPTZ DEFAULT NOW(),
            updated_at            TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_profiles_team ON profiles(team_id)")

    # Deferred FK: teams.leader_id → profiles.id
    op.execute("""
        ALTER TABLE teams
            ADD CONSTRAINT fk_team_leader
            FOREIGN KEY (leader_id) REFERENCES profiles(id) ON DELETE SET NULL
    """)

    # ── 4. user_roles ─────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE user_roles (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id      UUID NOT NULL UNIQUE REFERENCES profiles(id) ON DELETE CASCADE,
            role         VARCHAR(20) NOT NULL DEFAULT 'staff' {_check_in("role", "user_role")},
            assigned_by  UUID REFERENCES profiles(id) ON DELETE SET NULL,
            assigned_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 5. meeting_rooms ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE meeting_rooms (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(100) NOT NULL,
            location    VARCHAR(255),
            capacity    INTEGER NOT NULL DEFAULT 1 CHECK (capacity >= 1),
            equipment   JSONB,
            is_active   BOOLEAN DEFAULT TRUE,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 6. room_bookings ──────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE room_bookings (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            room_id           UUID NOT NULL REFERENCES meeting_rooms(id),
            user_id           UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            title             VARCHAR(200) NOT NULL,
            description       TEXT,
            start_time        TIMESTAMPTZ NOT NULL,
            end_time          TIMESTAMPTZ NOT NULL,
            status            VARCHAR(20) NOT NULL DEFAULT 'pending'
                              {_check_in("status", "booking_status")},
            reviewed_by       UUID REFERENCES profiles(id) ON DELETE SET NULL,
            reviewed_at       TIMESTAMPTZ,
            reviewer_remarks  TEXT,
            cancelled_at      TIMESTAMPTZ,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_room_booking_range CHECK (start_time < end_time)
        )
    """)
    op.execute("CREATE INDEX ix_room_bookings_room_status ON room_bookings(room_id, status)")
    op.execute("CREATE INDEX ix_room_bookings_user_id     ON room_bookings(user_id)")

    # ── 7. tasks ──────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE tasks (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            title        VARCHAR(200) NOT NULL,
            description  TEXT,
            priority     VARCHAR(20) NOT NULL DEFAULT 'medium'
                         {_check_in("priority", "task_priority")},
            status       VARCHAR(20) NOT NULL DEFAULT 'todo'
                         {_check_in("status", "task_status")},
            deadline     DATE,
            assigned_to  UUID REFERENCES profiles(id) ON DELETE SET NULL,
            created_by   UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_tasks_created_by  ON tasks(created_by)")
    op.execute("CREATE INDEX ix_tasks_assigned_to ON tasks(assigned_to)")
    op.execute("CREATE INDEX ix_tasks_status      ON tasks(status)")

    # ── 8. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name         VARCHAR(100) NOT NULL UNIQUE,
            description  TEXT,
            created_at   TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 9. leave_requests ─────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE leave_requests (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id           UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            leave_kind        VARCHAR(20) NOT NULL {_check_in("leave_kind", "leave_kind")},
            leave_type_id     UUID REFERENCES leave_types(id) ON DELETE SET NULL,
            start_date        DATE NOT NULL,
            end_date          DATE NOT NULL,
            reason            TEXT,
            status            VARCHAR(20) NOT NULL DEFAULT 'pending'
                              {_check_in("status", "leave_status")},
            reviewed_by       UUID REFERENCES profiles(id) ON DELETE SET NULL,
            reviewed_at       TIMESTAMPTZ,
            reviewer_remarks  TEXT,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_request_range CHECK (start_date <= end_date)
        )
    """)
    op.execute("CREATE INDEX ix_leave_requests_user_id ON leave_requests(user_id)")
    op.execute("CREATE INDEX ix_leave_requests_status  ON leave_requests(status)")

    # ── 10. attendance ────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE attendance (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id      UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            type         VARCHAR(20) NOT NULL {_check_in("type", "attendance_type")},
            recorded_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            ip_address   INET
        )
    """)
    op.execute("CREATE INDEX ix_attendance_user_recorded ON attendance(user_id, recorded_at)")

    # ── 11. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     UUID REFERENCES profiles(id) ON DELETE SET NULL,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            ip_address   INET,
            user_agent   TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "attendance",
        "leave_requests",
        "leave_types",
        "tasks",
        "room_bookings",
        "meeting_rooms",
        "user_roles",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop deferred FK before dropping profiles / teams
    op.execute("ALTER TABLE teams DROP CONSTRAINT IF EXISTS fk_team_leader")
    op.execute("DROP TABLE IF EXISTS profiles CASCADE")
    op.execute("DROP TABLE IF EXISTS shifts CASCADE")
    op.execute("DROP TABLE IF EXISTS teams CASCADE")
