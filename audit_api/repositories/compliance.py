from __future__ import annotations

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, select

from audit_api.db.models.compliance import (
    Control,
    Evidence,
    EvidenceAuditLog,
    Framework,
    FrameworkControl,
    Policy,
)
from .base import AuditedRepository, TenantScopedRepository


class FrameworkRepository(TenantScopedRepository[Framework]):
    """Repository for frameworks and their control mappings."""

    model = Framework

    async def get_by_code(self, tenant_id: UUID, code: str) -> Optional[Framework]:
        return await self.single_or_default(Framework.tenant_id == tenant_id, Framework.code == code)

    async def map_control(
        self, framework_id: UUID, control_id: UUID, *, requirement: str = "", sequence: int = 0
    ) -> FrameworkControl:
        """Stage a framework-control mapping; a duplicate pair fails at commit."""
        link = FrameworkControl(
            framework_id=framework_id,
            control_id=control_id,
            requirement=requirement,
            sequence=sequence,
        )
        await self.add_all([link])
        return link

    async def unmap_control(self, framework_id: UUID, control_id: UUID) -> None:
        await self.execute(
            delete(FrameworkControl).where(
                FrameworkControl.framework_id == framework_id,
                FrameworkControl.control_id == control_id,
            )
        )

    async def list_controls(self, framework_id: UUID) -> List[Tuple[Control, FrameworkControl]]:
        """Visible controls mapped into the framework, in requirement sequence order."""
        stmt = (
            select(Control, FrameworkControl)
            .join(FrameworkControl, FrameworkControl.control_id == Control.id)
            .where(FrameworkControl.framework_id == framework_id)
            .order_by(FrameworkControl.sequence, Control.code)
        )
        result = await self.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]


class ControlRepository(TenantScopedRepository[Control]):
    model = Control

    async def get_by_code(self, tenant_id: UUID, code: str) -> Optional[Control]:
        return await self.single_or_default(Control.tenant_id == tenant_id, Control.code == code)


class PolicyRepository(TenantScopedRepository[Policy]):
    model = Policy


class EvidenceRepository(TenantScopedRepository[Evidence]):
    """Repository for evidence and its append-only change log."""

    model = Evidence

    async def list_for_control(self, control_id: UUID) -> List[Evidence]:
        return await self.find(Evidence.control_id == control_id)

    async def append_log(self, evidence: Evidence, action: str, details: str, changed_by: str) -> EvidenceAuditLog:
        entry = EvidenceAuditLog(evidence_id=evidence.id, action=action, details=details, changed_by=changed_by)
        logs = AuditLogRepository(self.session)
        return await logs.add(entry, actor=changed_by)

    async def list_logs(self, evidence_id: UUID) -> List[EvidenceAuditLog]:
        return await AuditLogRepository(self.session).find(EvidenceAuditLog.evidence_id == evidence_id)


class AuditLogRepository(AuditedRepository[EvidenceAuditLog]):
    model = EvidenceAuditLog
