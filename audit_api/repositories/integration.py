from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy import false

from audit_api.db.models.integration import Integration, IntegrationEvent
from .base import AuditedRepository, TenantScopedRepository


class IntegrationRepository(TenantScopedRepository[Integration]):
    model = Integration


class IntegrationEventRepository(AuditedRepository[IntegrationEvent]):
    model = IntegrationEvent

    async def list_for_integration(self, integration_id: UUID) -> List[IntegrationEvent]:
        return await self.find(IntegrationEvent.integration_id == integration_id)

    async def list_unprocessed(self, integration_id: UUID) -> List[IntegrationEvent]:
        return await self.find(
            IntegrationEvent.integration_id == integration_id,
            IntegrationEvent.processed == false(),
        )
