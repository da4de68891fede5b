"""Task service layer — personal and assigned task tracking."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import has_role
from portal.common.audit import create_audit_entry, utcnow
from portal.common.constants import TaskPriority, TaskScope, TaskStatus, UserRole
from portal.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from portal.common.filters import apply_filters, apply_search
from portal.common.pagination import PaginatedResponse, PaginationParams, paginate
from portal.organization.models import Profile
from portal.organization.schemas import ProfileBrief
from portal.tasks.models import Task
from portal.tasks.schemas import TaskCreate, TaskOut, TaskUpdate

logger = logging.getLogger(__name__)

UNASSIGNED = "unassigned"


def _task_snapshot(task: Task) -> dict:
    return {
        "title": task.title,
        "status": TaskStatus(task.status).value,
        "priority": TaskPriority(task.priority).value,
        "deadline": task.deadline.isoformat() if task.deadline else None,
        "assigned_to": str(task.assigned_to) if task.assigned_to else None,
    }


class TaskService:

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_task(db: AsyncSession, task_id: uuid.UUID) -> Task:
        result = await db.execute(select(Task).where(Task.id == task_id))
        task = result.scalars().first()
        if task is None:
            raise NotFoundException("Task", task_id)
        return task

    @staticmethod
    async def _ensure_profile(db: AsyncSession, profile_id: uuid.UUID) -> None:
        result = await db.execute(select(Profile.id).where(Profile.id == profile_id))
        if result.scalar() is None:
            raise NotFoundException("User", profile_id)

    @staticmethod
    async def _build_responses(
        db: AsyncSession,
        tasks: Sequence[Task],
    ) -> list[TaskOut]:
        ids = {t.created_by for t in tasks} | {t.assigned_to for t in tasks if t.assigned_to}
        people: dict[uuid.UUID, Profile] = {}
        if ids:
            result = await db.execute(select(Profile).where(Profile.id.in_(ids)))
            people = {p.id: p for p in result.scalars().all()}

        out: list[TaskOut] = []
        for task in tasks:
            item = TaskOut.model_validate(task)
            if task.assigned_to in people:
                item.assignee_summary = ProfileBrief.model_validate(people[task.assigned_to])
            if task.created_by in people:
                item.creator_summary = ProfileBrief.model_validate(people[task.created_by])
            out.append(item)
        return out

    @staticmethod
    def _parse_assignee(assignee: Optional[str]) -> dict:
        if assignee is None or not assignee.strip():
            return {}
        if assignee.strip().lower() == UNASSIGNED:
            return {"assigned_to__isnull": True}
        try:
            return {"assigned_to": uuid.UUID(assignee.strip())}
        except ValueError:
            raise ValidationException(
                {"assignee": ["Must be 'unassigned' or a user id."]}
            )

    # ─────────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_task(
        db: AsyncSession,
        creator_id: uuid.UUID,
        data: TaskCreate,
    ) -> TaskOut:
        if data.assigned_to is not None:
            await TaskService._ensure_profile(db, data.assigned_to)

        task = Task(
            title=data.title,
            description=(data.description or "").strip() or None,
            priority=data.priority,
            status=TaskStatus.todo,
            deadline=data.deadline,
            assigned_to=data.assigned_to,
            created_by=creator_id,
        )
        db.add(task)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="task",
            entity_id=task.id,
            actor_id=creator_id,
            new_values=_task_snapshot(task),
        )
        logger.info("Task %s created by %s", task.id, creator_id)
        return (await TaskService._build_responses(db, [task]))[0]

    @staticmethod
    async def list_tasks(
        db: AsyncSession,
        user_id: uuid.UUID,
        params: PaginationParams,
        *,
        search: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assignee: Optional[str] = None,
        scope: TaskScope = TaskScope.all,
    ) -> PaginatedResponse:
        """Tasks the user created or is assigned to, newest first."""
        query = select(Task)
        if scope == TaskScope.assigned:
            query = query.where(Task.assigned_to == user_id)
        elif scope == TaskScope.created:
            query = query.where(Task.created_by == user_id)
        else:
            query = query.where(or_(Task.created_by == user_id, Task.assigned_to == user_id))

        filters = {"status": status, "priority": priority}
        filters.update(TaskService._parse_assignee(assignee))
        query = apply_filters(query, Task, filters)
        query = apply_search(query, Task, search, ["title", "description"])
        query = query.order_by(Task.created_at.desc())

        page = await paginate(db, query, params, model=Task)
        page.data = await TaskService._build_responses(db, page.data)
        return page

    @staticmethod
    async def update_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        data: TaskUpdate,
        user_id: uuid.UUID,
        role: UserRole,
    ) -> TaskOut:
        task = await TaskService._get_task(db, task_id)
        if user_id not in (task.created_by, task.assigned_to) and not has_role(
            role, UserRole.admin
        ):
            raise ForbiddenException(
                detail="Only the creator, the assignee or an admin can edit this task."
            )

        changes = data.model_dump(exclude_unset=True)
        for field in ("title", "priority", "status"):
            if field in changes and changes[field] is None:
                changes.pop(field)
        if changes.get("assigned_to") is not None:
            await TaskService._ensure_profile(db, changes["assigned_to"])
        if "description" in changes:
            changes["description"] = (changes["description"] or "").strip() or None

        old_values = _task_snapshot(task)
        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = utcnow()
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="task",
            entity_id=task.id,
            actor_id=user_id,
            old_values=old_values,
            new_values=_task_snapshot(task),
        )
        if old_values["status"] != _task_snapshot(task)["status"]:
            logger.info(
                "Task %s moved %s -> %s by %s",
                task.id, old_values["status"], TaskStatus(task.status).value, user_id,
            )
        return (await TaskService._build_responses(db, [task]))[0]

    @staticmethod
    async def delete_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
        role: UserRole,
    ) -> None:
        task = await TaskService._get_task(db, task_id)
        if task.created_by != user_id and not has_role(role, UserRole.admin):
            raise ForbiddenException(
                detail="Only the creator or an admin can delete this task."
            )

        old_values = _task_snapshot(task)
        await db.delete(task)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="task",
            entity_id=task_id,
            actor_id=user_id,
            old_values=old_values,
        )
        logger.info("Task %s deleted by %s", task_id, user_id)
