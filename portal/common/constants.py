"""Enums and constants for the ops portal — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    staff = "staff"
    leader = "leader"
    admin = "admin"


# ── Meeting rooms ───────────────────────────────────────────────────

class BookingStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# Allowed lifecycle moves; rejected and cancelled are terminal
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.pending: {
        BookingStatus.approved,
        BookingStatus.rejected,
        BookingStatus.cancelled,
    },
    BookingStatus.approved: {BookingStatus.cancelled},
    BookingStatus.rejected: set(),
    BookingStatus.cancelled: set(),
}


# ── Tasks ───────────────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    review = "review"
    done = "done"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class TaskScope(str, enum.Enum):
    all = "all"
    assigned = "assigned"
    created = "created"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class LeaveKind(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    personal = "personal"
    unpaid = "unpaid"
    custom = "custom"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceType(str, enum.Enum):
    check_in = "check_in"
    check_out = "check_out"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.staff: [
        "profile:read_own",
        "profile:update_own",
        "booking:request",
        "booking:read_own",
        "task:create",
        "task:read_own",
        "leave:request",
        "leave:read_own",
    ],
    UserRole.leader: [
        "profile:read_own",
        "profile:update_own",
        "booking:request",
        "booking:read_own",
        "booking:approve",
        "booking:reject",
        "task:create",
        "task:read_own",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
    ],
    UserRole.admin: [
        "profile:read_own",
        "profile:update_own",
        "profile:read_all",
        "booking:request",
        "booking:read_own",
        "booking:approve",
        "booking:reject",
        "room:configure",
        "task:create",
        "task:read_own",
        "task:manage_all",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "leave:configure",
        "user:approve",
        "role:assign",
        "team:configure",
        "shift:configure",
        "dashboard:company",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

DEFAULT_SHIFTS: list[tuple[str, str, str]] = [
    ("AM", "08:00", "12:00"),
    ("PM", "13:00", "17:00"),
]
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
UPCOMING_MEETINGS_LIMIT = 5
