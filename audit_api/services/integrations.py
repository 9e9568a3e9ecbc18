from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.db.base import utcnow
from audit_api.db.models.integration import Integration, IntegrationEvent
from audit_api.repositories.integration import IntegrationEventRepository, IntegrationRepository
from audit_api.services.base import BaseService

logger = logging.getLogger(__name__)


class IntegrationService(BaseService):
    """
    Bookkeeping for third-party integrations: registration and the inbound
    event log. Talking to the external systems is out of scope here.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.integrations = IntegrationRepository(session)
        self.events = IntegrationEventRepository(session)

    async def get_integration(self, tenant_id: UUID, integration_id: UUID) -> Integration:
        integration = await self.integrations.get_for_tenant(tenant_id, integration_id)
        if integration is None:
            raise self.not_found("Integration", integration_id)
        return integration

    async def register(
        self,
        tenant_id: UUID,
        name: str,
        integration_type: str,
        configuration: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None,
    ) -> Integration:
        await self.require_tenant(tenant_id)
        integration = Integration(
            tenant_id=tenant_id,
            name=name,
            integration_type=integration_type,
            configuration=configuration or {},
            is_active=True,
        )
        await self.integrations.add(integration, actor)
        await self.uow.commit()
        return integration

    # PUBLIC_INTERFACE
    async def record_event(
        self, tenant_id: UUID, integration_id: UUID, event_type: str, event_data: str = ""
    ) -> IntegrationEvent:
        """Append an inbound event for later processing."""
        integration = await self.get_integration(tenant_id, integration_id)
        event = IntegrationEvent(integration_id=integration.id, event_type=event_type, event_data=event_data)
        await self.events.add(event, actor=integration.name)
        integration.last_sync_at = utcnow()
        await self.integrations.update(integration)
        await self.uow.commit()
        return event

    # PUBLIC_INTERFACE
    async def mark_processed(self, tenant_id: UUID, event_id: UUID, actor: Optional[str] = None) -> IntegrationEvent:
        """Flag an event processed; already processed events keep their original timestamp."""
        event = await self.events.get_by_id(event_id)
        if event is None:
            raise self.not_found("Integration event", event_id)
        await self.get_integration(tenant_id, event.integration_id)
        if event.processed:
            return event
        event.processed = True
        event.processed_at = utcnow()
        await self.events.update(event, actor)
        await self.uow.commit()
        logger.debug("Integration event %s processed", event.id)
        return event

    async def pending_events(self, tenant_id: UUID, integration_id: UUID) -> List[IntegrationEvent]:
        await self.get_integration(tenant_id, integration_id)
        return await self.events.list_unprocessed(integration_id)
