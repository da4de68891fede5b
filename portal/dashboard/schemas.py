"""Dashboard Pydantic v2 schemas."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class DashboardStatsOut(BaseModel):
    """KPI cards. Personal fields are set for staff and leaders, company
    fields for admins."""

    scope: Literal["personal", "company"]
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    completion_rate: int = Field(0, description="Completed / total, rounded percent")

    # Personal
    leave_balance: Optional[int] = None
    upcoming_meetings: Optional[int] = None
    today_attendance: Optional[bool] = Field(
        None, description="Checked in on the current local day"
    )

    # Company
    total_users: Optional[int] = None
    approved_users: Optional[int] = None
    average_leave_balance: Optional[float] = None
