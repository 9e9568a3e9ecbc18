from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.db.base import utcnow
from audit_api.db.models.compliance import Control, Evidence, EvidenceAuditLog, Framework, FrameworkControl
from audit_api.db.models.enums import ControlStatus, EvidenceStatus
from audit_api.repositories.compliance import ControlRepository, EvidenceRepository, FrameworkRepository
from audit_api.schemas.common import Pagination
from audit_api.schemas.compliance import (
    ControlCreate,
    ControlUpdate,
    EvidenceCreate,
    FrameworkControlCreate,
    FrameworkCreate,
    FrameworkUpdate,
)
from audit_api.services.base import BaseService, parse_enum

logger = logging.getLogger(__name__)


class ComplianceService(BaseService):
    """
    Domain service for frameworks, controls and evidence.

    All lookups are scoped to the tenant passed in; an id belonging to another
    tenant behaves exactly like an unknown id.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.frameworks = FrameworkRepository(session)
        self.controls = ControlRepository(session)
        self.evidence = EvidenceRepository(session)

    # Frameworks

    async def get_framework(self, tenant_id: UUID, framework_id: UUID) -> Framework:
        framework = await self.frameworks.get_for_tenant(tenant_id, framework_id)
        if framework is None:
            raise self.not_found("Framework", framework_id)
        return framework

    async def list_frameworks(self, tenant_id: UUID, page: Pagination) -> Tuple[List[Framework], int]:
        items = await self.frameworks.list_for_tenant(tenant_id, offset=page.offset, limit=page.page_size)
        return items, await self.frameworks.count_for_tenant(tenant_id)

    # PUBLIC_INTERFACE
    async def create_framework(
        self, tenant_id: UUID, payload: FrameworkCreate, actor: Optional[str] = None
    ) -> Framework:
        """
        Create a framework for the tenant.

        Returns:
            The committed Framework (version "1.0" unless given, active).
        Raises:
            NotFoundError: unknown tenant.
            ConflictError: the code is already used within the tenant.
        """
        await self.require_tenant(tenant_id)
        framework = Framework(
            tenant_id=tenant_id,
            name=payload.name,
            code=payload.code,
            description=payload.description,
            version=payload.version or "1.0",
            is_active=True,
        )
        await self.frameworks.add(framework, actor)
        await self.uow.commit()
        logger.info("Created framework %s (%s)", framework.code, framework.id)
        return framework

    async def update_framework(
        self, tenant_id: UUID, framework_id: UUID, payload: FrameworkUpdate, actor: Optional[str] = None
    ) -> Framework:
        framework = await self.get_framework(tenant_id, framework_id)
        if self.apply_changes(framework, payload.model_dump(exclude_unset=True)):
            await self.frameworks.update(framework, actor)
            await self.uow.commit()
        return framework

    async def delete_framework(self, tenant_id: UUID, framework_id: UUID, actor: Optional[str] = None) -> None:
        framework = await self.get_framework(tenant_id, framework_id)
        await self.frameworks.delete(framework, actor)
        await self.uow.commit()

    # PUBLIC_INTERFACE
    async def map_control(
        self, tenant_id: UUID, framework_id: UUID, payload: FrameworkControlCreate
    ) -> FrameworkControl:
        """Map one of the tenant's controls into a framework; mapping the same pair twice conflicts."""
        await self.get_framework(tenant_id, framework_id)
        await self.get_control(tenant_id, payload.control_id)
        link = await self.frameworks.map_control(
            framework_id, payload.control_id, requirement=payload.requirement, sequence=payload.sequence
        )
        await self.uow.commit()
        return link

    async def unmap_control(self, tenant_id: UUID, framework_id: UUID, control_id: UUID) -> None:
        await self.get_framework(tenant_id, framework_id)
        await self.frameworks.unmap_control(framework_id, control_id)
        await self.uow.commit()

    async def list_framework_controls(
        self, tenant_id: UUID, framework_id: UUID
    ) -> List[Tuple[Control, FrameworkControl]]:
        await self.get_framework(tenant_id, framework_id)
        return await self.frameworks.list_controls(framework_id)

    # Controls

    async def get_control(self, tenant_id: UUID, control_id: UUID) -> Control:
        control = await self.controls.get_for_tenant(tenant_id, control_id)
        if control is None:
            raise self.not_found("Control", control_id)
        return control

    async def list_controls(self, tenant_id: UUID, page: Pagination) -> Tuple[List[Control], int]:
        items = await self.controls.list_for_tenant(tenant_id, offset=page.offset, limit=page.page_size)
        return items, await self.controls.count_for_tenant(tenant_id)

    async def create_control(self, tenant_id: UUID, payload: ControlCreate, actor: Optional[str] = None) -> Control:
        await self.require_tenant(tenant_id)
        status = ControlStatus.NotStarted
        if payload.status is not None:
            status = parse_enum(ControlStatus, payload.status, "status")
        control = Control(
            tenant_id=tenant_id,
            name=payload.name,
            code=payload.code,
            description=payload.description,
            owner=payload.owner,
            status=status,
            compliance_percentage=payload.compliance_percentage,
        )
        await self.controls.add(control, actor)
        await self.uow.commit()
        return control

    async def update_control(
        self, tenant_id: UUID, control_id: UUID, payload: ControlUpdate, actor: Optional[str] = None
    ) -> Control:
        control = await self.get_control(tenant_id, control_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = parse_enum(ControlStatus, changes["status"], "status")
        if self.apply_changes(control, changes):
            await self.controls.update(control, actor)
            await self.uow.commit()
        return control

    async def delete_control(self, tenant_id: UUID, control_id: UUID, actor: Optional[str] = None) -> None:
        """Soft-delete a control; its evidence goes with it, tasks and policies only lose the link."""
        control = await self.get_control(tenant_id, control_id)
        await self.controls.delete(control, actor)
        await self.uow.commit()

    # Evidence

    async def get_evidence(self, tenant_id: UUID, evidence_id: UUID) -> Evidence:
        evidence = await self.evidence.get_for_tenant(tenant_id, evidence_id)
        if evidence is None:
            raise self.not_found("Evidence", evidence_id)
        return evidence

    # PUBLIC_INTERFACE
    async def submit_evidence(self, tenant_id: UUID, payload: EvidenceCreate, actor: str) -> Evidence:
        """Record evidence for a control as Pending, with a 'Submitted' history entry."""
        await self.get_control(tenant_id, payload.control_id)
        evidence = Evidence(
            tenant_id=tenant_id,
            control_id=payload.control_id,
            policy_id=payload.policy_id,
            title=payload.title,
            description=payload.description,
            file_url=payload.file_url,
            file_type=payload.file_type,
            file_size_bytes=payload.file_size_bytes,
            evidence_date=payload.evidence_date or utcnow(),
            status=EvidenceStatus.Pending,
        )
        await self.evidence.add(evidence, actor)
        await self.evidence.append_log(evidence, "Submitted", payload.title, actor)
        await self.uow.commit()
        return evidence

    # PUBLIC_INTERFACE
    async def approve_evidence(self, tenant_id: UUID, evidence_id: UUID, actor: str) -> Evidence:
        """Approve evidence, stamping the approver and appending to its history."""
        evidence = await self.get_evidence(tenant_id, evidence_id)
        evidence.status = EvidenceStatus.Approved
        evidence.approved_by = actor
        evidence.approved_at = utcnow()
        await self.evidence.update(evidence, actor)
        await self.evidence.append_log(evidence, "Approved", "", actor)
        await self.uow.commit()
        return evidence

    # PUBLIC_INTERFACE
    async def reject_evidence(self, tenant_id: UUID, evidence_id: UUID, actor: str, reason: str = "") -> Evidence:
        """Reject evidence; the reason is kept in the history entry."""
        evidence = await self.get_evidence(tenant_id, evidence_id)
        evidence.status = EvidenceStatus.Rejected
        evidence.approved_by = None
        evidence.approved_at = None
        await self.evidence.update(evidence, actor)
        await self.evidence.append_log(evidence, "Rejected", reason, actor)
        await self.uow.commit()
        return evidence

    async def evidence_history(self, tenant_id: UUID, evidence_id: UUID) -> List[EvidenceAuditLog]:
        await self.get_evidence(tenant_id, evidence_id)
        return await self.evidence.list_logs(evidence_id)
