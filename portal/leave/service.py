"""Leave service layer — custom leave types, applications and approvals.

Business logic:
  - Custom leave types (admin-defined, unique by name)
  - Leave applications for the built-in kinds or a custom type
  - Staff see their own requests; leaders and admins see everyone's
  - Approving an annual request deducts its inclusive day count from the
    requester's annual leave balance
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import has_role
from portal.common.audit import create_audit_entry, utcnow
from portal.common.constants import LeaveKind, LeaveStatus, UserRole
from portal.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from portal.leave.models import LeaveRequest, LeaveType
from portal.leave.schemas import (
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
)
from portal.organization.models import Profile
from portal.organization.schemas import ProfileBrief

logger = logging.getLogger(__name__)


class LeaveService:
    """Async leave operations: types, requests, approvals."""

    # ─────────────────────────────────────────────────────────────────
    # Leave types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_leave_types(db: AsyncSession) -> list[LeaveTypeOut]:
        result = await db.execute(select(LeaveType).order_by(LeaveType.name))
        return [LeaveTypeOut.model_validate(t) for t in result.scalars().all()]

    @staticmethod
    async def create_leave_type(
        db: AsyncSession,
        data: LeaveTypeCreate,
        actor_id: uuid.UUID,
    ) -> LeaveTypeOut:
        existing = await db.execute(
            select(LeaveType.id).where(LeaveType.name == data.name)
        )
        if existing.scalar() is not None:
            raise ConflictError("name", data.name)

        leave_type = LeaveType(name=data.name, description=data.description)
        db.add(leave_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_type",
            entity_id=leave_type.id,
            actor_id=actor_id,
            new_values={"name": leave_type.name},
        )
        return LeaveTypeOut.model_validate(leave_type)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest).where(LeaveRequest.id == request_id)
        )
        leave = result.scalars().first()
        if leave is None:
            raise NotFoundException("Leave Request", request_id)
        return leave

    @staticmethod
    async def _build_responses(
        db: AsyncSession,
        requests: Sequence[LeaveRequest],
    ) -> list[LeaveRequestOut]:
        user_ids = {r.user_id for r in requests}
        type_ids = {r.leave_type_id for r in requests if r.leave_type_id}

        people: dict[uuid.UUID, Profile] = {}
        if user_ids:
            result = await db.execute(select(Profile).where(Profile.id.in_(user_ids)))
            people = {p.id: p for p in result.scalars().all()}
        type_names: dict[uuid.UUID, str] = {}
        if type_ids:
            result = await db.execute(
                select(LeaveType.id, LeaveType.name).where(LeaveType.id.in_(type_ids))
            )
            type_names = dict(result.all())

        out: list[LeaveRequestOut] = []
        for leave in requests:
            item = LeaveRequestOut.model_validate(leave)
            item.leave_type_name = type_names.get(leave.leave_type_id)
            if leave.user_id in people:
                item.requester_summary = ProfileBrief.model_validate(people[leave.user_id])
            out.append(item)
        return out

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        if data.leave_type_id is not None:
            found = await db.execute(
                select(LeaveType.id).where(LeaveType.id == data.leave_type_id)
            )
            if found.scalar() is None:
                raise NotFoundException("Leave Type", data.leave_type_id)

        leave = LeaveRequest(
            user_id=user_id,
            leave_kind=data.leave_kind,
            leave_type_id=data.leave_type_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=(data.reason or "").strip() or None,
            status=LeaveStatus.pending,
        )
        db.add(leave)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave.id,
            actor_id=user_id,
            new_values={
                "leave_kind": data.leave_kind.value,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
            },
        )
        logger.info(
            "Leave request %s (%s, %d days) submitted by %s",
            leave.id, data.leave_kind.value, leave.days, user_id,
        )
        return (await LeaveService._build_responses(db, [leave]))[0]

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        user_id: uuid.UUID,
        role: UserRole,
        *,
        status: Optional[LeaveStatus] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[LeaveRequestOut]:
        """Own requests for staff, everyone's for leaders and admins."""
        query = select(LeaveRequest)
        if not has_role(role, UserRole.leader):
            query = query.where(LeaveRequest.user_id == user_id)
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        if month is not None:
            query = query.where(extract("month", LeaveRequest.start_date) == month)
        if year is not None:
            query = query.where(extract("year", LeaveRequest.start_date) == year)

        result = await db.execute(query.order_by(LeaveRequest.created_at.desc()))
        return await LeaveService._build_responses(db, result.scalars().all())

    @staticmethod
    async def approve_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        remarks: Optional[str] = None,
    ) -> LeaveRequestOut:
        leave = await LeaveService._get_request(db, request_id)
        if leave.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": ["Only pending leave requests can be approved."]}
            )

        balance_change = None
        if leave.leave_kind == LeaveKind.annual:
            result = await db.execute(select(Profile).where(Profile.id == leave.user_id))
            requester = result.scalars().first()
            if requester is None:
                raise NotFoundException("User", leave.user_id)
            if requester.annual_leave_balance < leave.days:
                raise ValidationException(
                    {"leave_kind": [
                        f"Insufficient annual leave balance: {requester.annual_leave_balance} "
                        f"day(s) left, {leave.days} requested."
                    ]}
                )
            before = requester.annual_leave_balance
            requester.annual_leave_balance = before - leave.days
            requester.updated_at = utcnow()
            balance_change = (before, requester.annual_leave_balance)

        leave.status = LeaveStatus.approved
        leave.reviewed_by = reviewer_id
        leave.reviewed_at = utcnow()
        leave.reviewer_remarks = remarks
        leave.updated_at = utcnow()
        await db.flush()

        new_values = {"status": LeaveStatus.approved.value}
        if balance_change is not None:
            new_values["annual_leave_balance"] = balance_change[1]
        await create_audit_entry(
            db,
            action="approve",
            entity_type="leave_request",
            entity_id=leave.id,
            actor_id=reviewer_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values=new_values,
        )
        if balance_change is not None:
            logger.info(
                "Leave %s approved by %s; balance of %s %d -> %d",
                leave.id, reviewer_id, leave.user_id, *balance_change,
            )
        else:
            logger.info("Leave %s approved by %s", leave.id, reviewer_id)
        return (await LeaveService._build_responses(db, [leave]))[0]

    @staticmethod
    async def reject_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        reviewer_id: uuid.UUID,
        remarks: Optional[str] = None,
    ) -> LeaveRequestOut:
        leave = await LeaveService._get_request(db, request_id)
        if leave.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": ["Only pending leave requests can be rejected."]}
            )

        leave.status = LeaveStatus.rejected
        leave.reviewed_by = reviewer_id
        leave.reviewed_at = utcnow()
        leave.reviewer_remarks = remarks
        leave.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="reject",
            entity_type="leave_request",
            entity_id=leave.id,
            actor_id=reviewer_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.rejected.value, "remarks": remarks},
        )
        logger.info("Leave %s rejected by %s", leave.id, reviewer_id)
        return (await LeaveService._build_responses(db, [leave]))[0]
