from __future__ import annotations

from typing import List
from uuid import UUID

from sqlalchemy import select

from audit_api.db.models.vendor import Vendor, VendorQuestion, VendorQuestionnaire, VendorRisk
from .base import AuditedRepository, TenantScopedRepository


class VendorRepository(TenantScopedRepository[Vendor]):
    model = Vendor

    async def list_questionnaires(self, vendor_id: UUID) -> List[VendorQuestionnaire]:
        return await AuditedRepository(self.session, VendorQuestionnaire).find(
            VendorQuestionnaire.vendor_id == vendor_id
        )

    async def list_questions(self, questionnaire_id: UUID) -> List[VendorQuestion]:
        """Questions of one questionnaire ordered by sequence."""
        return await AuditedRepository(self.session, VendorQuestion).find(
            VendorQuestion.questionnaire_id == questionnaire_id,
            order_by=(VendorQuestion.sequence, VendorQuestion.id),
        )

    async def list_risks(self, vendor_id: UUID) -> List[VendorRisk]:
        stmt = (
            select(VendorRisk)
            .where(VendorRisk.vendor_id == vendor_id)
            .order_by(VendorRisk.risk_score.desc(), VendorRisk.created_at)
        )
        return list(await self.scalars(stmt))
