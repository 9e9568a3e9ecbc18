from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy import delete, select

from audit_api.db.models.compliance import Control
from audit_api.db.models.risk import Risk, RiskControl
from .base import TenantScopedRepository


class RiskRepository(TenantScopedRepository[Risk]):
    """Repository for the risk register and risk-control links."""

    model = Risk

    async def link_control(self, risk_id: UUID, control_id: UUID) -> None:
        await self.add_all([RiskControl(risk_id=risk_id, control_id=control_id)])

    async def unlink_control(self, risk_id: UUID, control_id: UUID) -> None:
        await self.execute(
            delete(RiskControl).where(RiskControl.risk_id == risk_id, RiskControl.control_id == control_id)
        )

    async def list_controls(self, risk_id: UUID) -> List[Control]:
        stmt = (
            select(Control)
            .join(RiskControl, RiskControl.control_id == Control.id)
            .where(RiskControl.risk_id == risk_id)
            .order_by(Control.code)
        )
        return list(await self.scalars(stmt))

    async def list_by_minimum_score(self, tenant_id: UUID, minimum: int) -> List[Risk]:
        return await self.find(
            Risk.tenant_id == tenant_id,
            Risk.risk_score >= minimum,
            order_by=(Risk.risk_score.desc(), Risk.title),
        )
