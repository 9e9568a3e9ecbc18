from __future__ import annotations

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.errors import EntityValidationError
from audit_api.db.models.enums import RiskStatus, RiskTier
from audit_api.db.models.risk import Risk
from audit_api.db.models.vendor import Vendor, VendorRisk
from audit_api.repositories.base import AuditedRepository
from audit_api.repositories.compliance import ControlRepository
from audit_api.repositories.risk import RiskRepository
from audit_api.repositories.vendor import VendorRepository
from audit_api.schemas.common import Pagination
from audit_api.schemas.risk import RiskCreate, RiskUpdate, VendorCreate, VendorUpdate
from audit_api.services.base import BaseService, parse_enum

logger = logging.getLogger(__name__)

SCALE_MIN = 1
SCALE_MAX = 5


# PUBLIC_INTERFACE
def risk_score(likelihood: int, impact: int) -> int:
    """
    Score a risk on the 5x5 matrix.

    Raises:
        EntityValidationError: either factor falls outside 1-5.
    """
    for name, value in (("likelihood", likelihood), ("impact", impact)):
        if not SCALE_MIN <= value <= SCALE_MAX:
            raise EntityValidationError(
                f"{name} must be between {SCALE_MIN} and {SCALE_MAX}", details={name: value}
            )
    return likelihood * impact


class RiskService(BaseService):
    """Domain service for the risk register and vendor risk assessments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.risks = RiskRepository(session)
        self.vendors = VendorRepository(session)
        self.controls = ControlRepository(session)

    # Risks

    async def get_risk(self, tenant_id: UUID, risk_id: UUID) -> Risk:
        risk = await self.risks.get_for_tenant(tenant_id, risk_id)
        if risk is None:
            raise self.not_found("Risk", risk_id)
        return risk

    async def list_risks(self, tenant_id: UUID, page: Pagination) -> Tuple[List[Risk], int]:
        items = await self.risks.list_for_tenant(tenant_id, offset=page.offset, limit=page.page_size)
        return items, await self.risks.count_for_tenant(tenant_id)

    # PUBLIC_INTERFACE
    async def create_risk(self, tenant_id: UUID, payload: RiskCreate, actor: Optional[str] = None) -> Risk:
        """Register a risk; the score is always derived from likelihood and impact."""
        await self.require_tenant(tenant_id)
        risk = Risk(
            tenant_id=tenant_id,
            title=payload.title,
            description=payload.description,
            owner=payload.owner,
            likelihood=payload.likelihood,
            impact=payload.impact,
            risk_score=risk_score(payload.likelihood, payload.impact),
            status=RiskStatus.Open,
            mitigation_plan=payload.mitigation_plan,
        )
        await self.risks.add(risk, actor)
        await self.uow.commit()
        return risk

    async def update_risk(
        self, tenant_id: UUID, risk_id: UUID, payload: RiskUpdate, actor: Optional[str] = None
    ) -> Risk:
        risk = await self.get_risk(tenant_id, risk_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = parse_enum(RiskStatus, changes["status"], "status")
        likelihood = changes["likelihood"] if changes.get("likelihood") is not None else risk.likelihood
        impact = changes["impact"] if changes.get("impact") is not None else risk.impact
        changes["risk_score"] = risk_score(likelihood, impact)
        if self.apply_changes(risk, changes):
            await self.risks.update(risk, actor)
            await self.uow.commit()
        return risk

    async def delete_risk(self, tenant_id: UUID, risk_id: UUID, actor: Optional[str] = None) -> None:
        risk = await self.get_risk(tenant_id, risk_id)
        await self.risks.delete(risk, actor)
        await self.uow.commit()

    async def link_control(self, tenant_id: UUID, risk_id: UUID, control_id: UUID) -> None:
        await self.get_risk(tenant_id, risk_id)
        if await self.controls.get_for_tenant(tenant_id, control_id) is None:
            raise self.not_found("Control", control_id)
        await self.risks.link_control(risk_id, control_id)
        await self.uow.commit()

    async def top_risks(self, tenant_id: UUID, minimum_score: int) -> List[Risk]:
        return await self.risks.list_by_minimum_score(tenant_id, minimum_score)

    # Vendors

    async def get_vendor(self, tenant_id: UUID, vendor_id: UUID) -> Vendor:
        vendor = await self.vendors.get_for_tenant(tenant_id, vendor_id)
        if vendor is None:
            raise self.not_found("Vendor", vendor_id)
        return vendor

    async def list_vendors(self, tenant_id: UUID, page: Pagination) -> Tuple[List[Vendor], int]:
        items = await self.vendors.list_for_tenant(tenant_id, offset=page.offset, limit=page.page_size)
        return items, await self.vendors.count_for_tenant(tenant_id)

    async def create_vendor(self, tenant_id: UUID, payload: VendorCreate, actor: Optional[str] = None) -> Vendor:
        await self.require_tenant(tenant_id)
        tier = RiskTier.Medium
        if payload.risk_tier is not None:
            tier = parse_enum(RiskTier, payload.risk_tier, "risk_tier")
        vendor = Vendor(
            tenant_id=tenant_id,
            name=payload.name,
            description=payload.description,
            services=payload.services,
            contact_email=payload.contact_email,
            contact_phone=payload.contact_phone,
            risk_tier=tier,
            is_active=True,
        )
        await self.vendors.add(vendor, actor)
        await self.uow.commit()
        return vendor

    async def update_vendor(
        self, tenant_id: UUID, vendor_id: UUID, payload: VendorUpdate, actor: Optional[str] = None
    ) -> Vendor:
        vendor = await self.get_vendor(tenant_id, vendor_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("risk_tier") is not None:
            changes["risk_tier"] = parse_enum(RiskTier, changes["risk_tier"], "risk_tier")
        if self.apply_changes(vendor, changes):
            await self.vendors.update(vendor, actor)
            await self.uow.commit()
        return vendor

    async def delete_vendor(self, tenant_id: UUID, vendor_id: UUID, actor: Optional[str] = None) -> None:
        """Soft-delete a vendor together with its questionnaires, questions and vendor risks."""
        vendor = await self.get_vendor(tenant_id, vendor_id)
        await self.vendors.delete(vendor, actor)
        await self.uow.commit()

    # PUBLIC_INTERFACE
    async def assess_vendor_risk(
        self,
        tenant_id: UUID,
        vendor_id: UUID,
        description: str,
        likelihood: int,
        impact: int,
        actor: Optional[str] = None,
    ) -> VendorRisk:
        """Record a scored risk against a vendor."""
        vendor = await self.get_vendor(tenant_id, vendor_id)
        entry = VendorRisk(
            vendor_id=vendor.id,
            risk_description=description,
            likelihood=likelihood,
            impact=impact,
            risk_score=risk_score(likelihood, impact),
        )
        await self.uow.repository(VendorRisk, AuditedRepository).add(entry, actor)
        await self.uow.commit()
        logger.info("Vendor %s assessed at score %d", vendor.id, entry.risk_score)
        return entry
