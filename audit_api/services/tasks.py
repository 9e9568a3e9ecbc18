from __future__ import annotations

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.errors import EntityValidationError
from audit_api.db.base import utcnow
from audit_api.db.models.enums import TaskPriority, TaskStatus
from audit_api.db.models.tasks import RemediationTask, TaskNotification
from audit_api.repositories.compliance import ControlRepository
from audit_api.repositories.risk import RiskRepository
from audit_api.repositories.tasks import RemediationTaskRepository
from audit_api.schemas.common import Pagination
from audit_api.schemas.tasks import RemediationTaskCreate, RemediationTaskUpdate, TaskNotificationCreate
from audit_api.services.base import BaseService, parse_enum


class TaskService(BaseService):
    """Remediation tasks and the notifications sent about them."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.tasks = RemediationTaskRepository(session)

    async def get_task(self, tenant_id: UUID, task_id: UUID) -> RemediationTask:
        task = await self.tasks.get_for_tenant(tenant_id, task_id)
        if task is None:
            raise self.not_found("Task", task_id)
        return task

    async def list_tasks(self, tenant_id: UUID, page: Pagination) -> Tuple[List[RemediationTask], int]:
        items = await self.tasks.list_for_tenant(tenant_id, offset=page.offset, limit=page.page_size)
        return items, await self.tasks.count_for_tenant(tenant_id)

    async def list_open(self, tenant_id: UUID) -> List[RemediationTask]:
        return await self.tasks.list_open(tenant_id)

    async def _check_links(self, tenant_id: UUID, control_id: Optional[UUID], risk_id: Optional[UUID]) -> None:
        if control_id is not None and await ControlRepository(self.session).get_for_tenant(tenant_id, control_id) is None:
            raise self.not_found("Control", control_id)
        if risk_id is not None and await RiskRepository(self.session).get_for_tenant(tenant_id, risk_id) is None:
            raise self.not_found("Risk", risk_id)

    # PUBLIC_INTERFACE
    async def create_task(
        self, tenant_id: UUID, payload: RemediationTaskCreate, actor: Optional[str] = None
    ) -> RemediationTask:
        """Open a remediation task, optionally tied to a control and/or a risk of the same tenant."""
        await self.require_tenant(tenant_id)
        await self._check_links(tenant_id, payload.control_id, payload.risk_id)
        priority = TaskPriority.Medium
        if payload.priority is not None:
            priority = parse_enum(TaskPriority, payload.priority, "priority")
        task = RemediationTask(
            tenant_id=tenant_id,
            title=payload.title,
            description=payload.description,
            control_id=payload.control_id,
            risk_id=payload.risk_id,
            assigned_to=payload.assigned_to,
            status=TaskStatus.Open,
            priority=priority,
            due_date=payload.due_date,
            external_task_id=payload.external_task_id,
        )
        await self.tasks.add(task, actor)
        await self.uow.commit()
        return task

    async def update_task(
        self, tenant_id: UUID, task_id: UUID, payload: RemediationTaskUpdate, actor: Optional[str] = None
    ) -> RemediationTask:
        task = await self.get_task(tenant_id, task_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = parse_enum(TaskStatus, changes["status"], "status")
            if changes["status"] == TaskStatus.Completed and task.completed_at is None:
                changes["completed_at"] = utcnow()
        if changes.get("priority") is not None:
            changes["priority"] = parse_enum(TaskPriority, changes["priority"], "priority")
        if self.apply_changes(task, changes):
            await self.tasks.update(task, actor)
            await self.uow.commit()
        return task

    # PUBLIC_INTERFACE
    async def complete_task(self, tenant_id: UUID, task_id: UUID, actor: Optional[str] = None) -> RemediationTask:
        """Mark a task Completed and stamp completed_at. Cancelled tasks cannot be completed."""
        task = await self.get_task(tenant_id, task_id)
        if task.status == TaskStatus.Completed:
            return task
        if task.status == TaskStatus.Cancelled:
            raise EntityValidationError("Cancelled tasks cannot be completed", details={"id": str(task_id)})
        task.status = TaskStatus.Completed
        task.completed_at = utcnow()
        await self.tasks.update(task, actor)
        await self.uow.commit()
        return task

    async def delete_task(self, tenant_id: UUID, task_id: UUID, actor: Optional[str] = None) -> None:
        task = await self.get_task(tenant_id, task_id)
        await self.tasks.delete(task, actor)
        await self.uow.commit()

    # PUBLIC_INTERFACE
    async def notify(
        self, tenant_id: UUID, task_id: UUID, payload: TaskNotificationCreate, actor: Optional[str] = None
    ) -> TaskNotification:
        """Record a notification sent about a task. Delivery itself happens elsewhere."""
        task = await self.get_task(tenant_id, task_id)
        note = TaskNotification(
            task_id=task.id,
            recipient_email=payload.recipient_email,
            subject=payload.subject,
            body=payload.body,
            sent_at=utcnow(),
        )
        await self.uow.repository(TaskNotification).add(note, actor)
        await self.uow.commit()
        return note

    async def notifications(self, tenant_id: UUID, task_id: UUID) -> List[TaskNotification]:
        await self.get_task(tenant_id, task_id)
        return await self.tasks.list_notifications(task_id)
