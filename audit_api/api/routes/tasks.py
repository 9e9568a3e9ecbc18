from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination, get_tenant_id
from audit_api.db.session import get_async_session
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.tasks import (
    RemediationTaskCreate,
    RemediationTaskRead,
    RemediationTaskUpdate,
    TaskNotificationCreate,
    TaskNotificationRead,
)
from audit_api.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])


# PUBLIC_INTERFACE
@router.get("", response_model=PaginatedResult[RemediationTaskRead], summary="List remediation tasks")
async def list_tasks(
    tenant_id: UUID = Depends(get_tenant_id),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[RemediationTaskRead]:
    rows, total = await TaskService(session).list_tasks(tenant_id, page)
    return page_of(RemediationTaskRead, rows, total, page)


# PUBLIC_INTERFACE
@router.get("/open", response_model=List[RemediationTaskRead], summary="List open tasks")
async def list_open_tasks(
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[RemediationTaskRead]:
    return [RemediationTaskRead.model_validate(t) for t in await TaskService(session).list_open(tenant_id)]


# PUBLIC_INTERFACE
@router.get("/{task_id}", response_model=RemediationTaskRead, summary="Get task")
async def get_task(
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> RemediationTaskRead:
    return RemediationTaskRead.model_validate(await TaskService(session).get_task(tenant_id, task_id))


# PUBLIC_INTERFACE
@router.post("", response_model=RemediationTaskRead, status_code=status.HTTP_201_CREATED, summary="Create task")
async def create_task(
    payload: RemediationTaskCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> RemediationTaskRead:
    return RemediationTaskRead.model_validate(await TaskService(session).create_task(tenant_id, payload, actor))


# PUBLIC_INTERFACE
@router.put("/{task_id}", response_model=RemediationTaskRead, summary="Update task")
async def update_task(
    payload: RemediationTaskUpdate,
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> RemediationTaskRead:
    task = await TaskService(session).update_task(tenant_id, task_id, payload, actor)
    return RemediationTaskRead.model_validate(task)


# PUBLIC_INTERFACE
@router.post("/{task_id}/complete", response_model=RemediationTaskRead, summary="Complete task")
async def complete_task(
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> RemediationTaskRead:
    return RemediationTaskRead.model_validate(await TaskService(session).complete_task(tenant_id, task_id, actor))


# PUBLIC_INTERFACE
@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete task")
async def delete_task(
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await TaskService(session).delete_task(tenant_id, task_id, actor)


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/notifications",
    response_model=TaskNotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record task notification",
)
async def notify(
    payload: TaskNotificationCreate,
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> TaskNotificationRead:
    note = await TaskService(session).notify(tenant_id, task_id, payload, actor)
    return TaskNotificationRead.model_validate(note)


# PUBLIC_INTERFACE
@router.get("/{task_id}/notifications", response_model=List[TaskNotificationRead], summary="List task notifications")
async def list_notifications(
    task_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[TaskNotificationRead]:
    return [TaskNotificationRead.model_validate(n) for n in await TaskService(session).notifications(tenant_id, task_id)]
