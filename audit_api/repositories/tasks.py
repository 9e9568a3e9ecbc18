from __future__ import annotations

from typing import List
from uuid import UUID

from audit_api.db.models.enums import TaskStatus
from audit_api.db.models.tasks import RemediationTask, TaskNotification
from .base import AuditedRepository, TenantScopedRepository


class RemediationTaskRepository(TenantScopedRepository[RemediationTask]):
    model = RemediationTask

    async def list_open(self, tenant_id: UUID) -> List[RemediationTask]:
        return await self.find(
            RemediationTask.tenant_id == tenant_id,
            RemediationTask.status.not_in([TaskStatus.Completed, TaskStatus.Cancelled]),
            order_by=(RemediationTask.due_date, RemediationTask.created_at),
        )

    async def list_notifications(self, task_id: UUID) -> List[TaskNotification]:
        return await AuditedRepository(self.session, TaskNotification).find(
            TaskNotification.task_id == task_id
        )
