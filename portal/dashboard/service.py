"""Dashboard service — read-only aggregation queries.

Queries are kept at COUNT / AVG level in the database; nothing is loaded
row by row.
"""

from __future__ import annotations

import uuid

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.attendance.service import AttendanceService
from portal.auth.dependencies import has_role
from portal.common.audit import utcnow
from portal.common.constants import BookingStatus, TaskStatus, UserRole
from portal.dashboard.schemas import DashboardStatsOut
from portal.organization.models import Profile
from portal.rooms.models import RoomBooking
from portal.tasks.models import Task


def _completion_rate(completed: int, total: int) -> int:
    return round(completed * 100 / total) if total else 0


class DashboardService:

    @staticmethod
    async def _task_totals(db: AsyncSession, *conditions) -> tuple[int, int]:
        result = await db.execute(
            select(
                func.count(Task.id),
                func.coalesce(
                    func.sum(case((Task.status == TaskStatus.done, 1), else_=0)), 0
                ),
            ).where(*conditions)
        )
        total, completed = result.one()
        return int(total), int(completed)

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        profile: Profile,
        role: UserRole,
    ) -> DashboardStatsOut:
        if has_role(role, UserRole.admin):
            return await DashboardService.company_stats(db, profile.id)
        return await DashboardService.personal_stats(db, profile)

    @staticmethod
    async def personal_stats(db: AsyncSession, profile: Profile) -> DashboardStatsOut:
        """Tasks assigned to the user, their leave balance, upcoming meetings
        and whether they checked in today."""
        total, completed = await DashboardService._task_totals(
            db, Task.assigned_to == profile.id
        )
        upcoming = (
            await db.execute(
                select(func.count(RoomBooking.id)).where(
                    RoomBooking.user_id == profile.id,
                    RoomBooking.status.in_([BookingStatus.pending, BookingStatus.approved]),
                    RoomBooking.start_time >= utcnow(),
                )
            )
        ).scalar_one()
        checked_in = await AttendanceService.checked_in_today(db, profile.id)

        return DashboardStatsOut(
            scope="personal",
            total_tasks=total,
            completed_tasks=completed,
            pending_tasks=total - completed,
            completion_rate=_completion_rate(completed, total),
            leave_balance=profile.annual_leave_balance,
            upcoming_meetings=upcoming,
            today_attendance=checked_in,
        )

    @staticmethod
    async def company_stats(db: AsyncSession, admin_id: uuid.UUID) -> DashboardStatsOut:
        """Company-wide figures; tasks the admin created are left out."""
        total, completed = await DashboardService._task_totals(
            db, Task.created_by != admin_id
        )
        users, approved, avg_balance = (
            await db.execute(
                select(
                    func.count(Profile.id),
                    func.coalesce(
                        func.sum(case((Profile.is_approved.is_(True), 1), else_=0)), 0
                    ),
                    func.avg(Profile.annual_leave_balance),
                )
            )
        ).one()

        return DashboardStatsOut(
            scope="company",
            total_tasks=total,
            completed_tasks=completed,
            pending_tasks=total - completed,
            completion_rate=_completion_rate(completed, total),
            total_users=int(users),
            approved_users=int(approved),
            average_leave_balance=round(float(avg_balance), 1) if avg_balance is not None else 0.0,
        )
