"""Task router — create, list with filters, update, delete."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.dependencies import get_current_user, require_permission
from portal.common.constants import TaskPriority, TaskScope, TaskStatus
from portal.common.pagination import PaginatedResponse, PaginationParams
from portal.database import get_db
from portal.organization.models import Profile
from portal.tasks.schemas import TaskCreate, TaskOut, TaskUpdate
from portal.tasks.service import TaskService

router = APIRouter()


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    body: TaskCreate,
    profile: Profile = Depends(require_permission("task:create")),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.create_task(db, profile.id, body)


@router.get("", response_model=PaginatedResponse[TaskOut])
async def list_tasks(
    search: Optional[str] = Query(None, max_length=200),
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    assignee: Optional[str] = Query(None, description='"unassigned" or a user id'),
    scope: TaskScope = Query(TaskScope.all),
    pagination: PaginationParams = Depends(),
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tasks the caller created or is assigned to, newest first."""
    return await TaskService.list_tasks(
        db,
        profile.id,
        pagination,
        search=search,
        status=status,
        priority=priority,
        assignee=assignee,
        scope=scope,
    )


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    request: Request,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.update_task(
        db, task_id, body, profile.id, request.state.user_role,
    )


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    request: Request,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TaskService.delete_task(db, task_id, profile.id, request.state.user_role)
