from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination, get_tenant_id
from audit_api.db.session import get_async_session
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.compliance import (
    ControlCreate,
    ControlRead,
    ControlUpdate,
    EvidenceAuditLogRead,
    EvidenceCreate,
    EvidenceRead,
    EvidenceReview,
)
from audit_api.services.compliance import ComplianceService

router = APIRouter(prefix="/controls", tags=["Controls"])
evidence_router = APIRouter(prefix="/evidence", tags=["Evidence"])


# PUBLIC_INTERFACE
@router.get("", response_model=PaginatedResult[ControlRead], summary="List controls")
async def list_controls(
    tenant_id: UUID = Depends(get_tenant_id),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[ControlRead]:
    rows, total = await ComplianceService(session).list_controls(tenant_id, page)
    return page_of(ControlRead, rows, total, page)


# PUBLIC_INTERFACE
@router.get("/{control_id}", response_model=ControlRead, summary="Get control")
async def get_control(
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> ControlRead:
    return ControlRead.model_validate(await ComplianceService(session).get_control(tenant_id, control_id))


# PUBLIC_INTERFACE
@router.post("", response_model=ControlRead, status_code=status.HTTP_201_CREATED, summary="Create control")
async def create_control(
    payload: ControlCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> ControlRead:
    control = await ComplianceService(session).create_control(tenant_id, payload, actor)
    return ControlRead.model_validate(control)


# PUBLIC_INTERFACE
@router.put("/{control_id}", response_model=ControlRead, summary="Update control")
async def update_control(
    payload: ControlUpdate,
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> ControlRead:
    control = await ComplianceService(session).update_control(tenant_id, control_id, payload, actor)
    return ControlRead.model_validate(control)


# PUBLIC_INTERFACE
@router.delete(
    "/{control_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete control",
    description="Soft-delete a control and its evidence. Linked tasks and policies survive unlinked.",
)
async def delete_control(
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await ComplianceService(session).delete_control(tenant_id, control_id, actor)


# PUBLIC_INTERFACE
@router.get("/{control_id}/evidence", response_model=List[EvidenceRead], summary="List evidence for control")
async def list_control_evidence(
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[EvidenceRead]:
    service = ComplianceService(session)
    await service.get_control(tenant_id, control_id)
    return [EvidenceRead.model_validate(e) for e in await service.evidence.list_for_control(control_id)]


# PUBLIC_INTERFACE
@evidence_router.post("", response_model=EvidenceRead, status_code=status.HTTP_201_CREATED, summary="Submit evidence")
async def submit_evidence(
    payload: EvidenceCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> EvidenceRead:
    evidence = await ComplianceService(session).submit_evidence(tenant_id, payload, actor or "")
    return EvidenceRead.model_validate(evidence)


# PUBLIC_INTERFACE
@evidence_router.post("/{evidence_id}/approve", response_model=EvidenceRead, summary="Approve evidence")
async def approve_evidence(
    evidence_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> EvidenceRead:
    evidence = await ComplianceService(session).approve_evidence(tenant_id, evidence_id, actor or "")
    return EvidenceRead.model_validate(evidence)


# PUBLIC_INTERFACE
@evidence_router.post("/{evidence_id}/reject", response_model=EvidenceRead, summary="Reject evidence")
async def reject_evidence(
    payload: EvidenceReview,
    evidence_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> EvidenceRead:
    evidence = await ComplianceService(session).reject_evidence(tenant_id, evidence_id, actor or "", payload.reason)
    return EvidenceRead.model_validate(evidence)


# PUBLIC_INTERFACE
@evidence_router.get(
    "/{evidence_id}/history",
    response_model=List[EvidenceAuditLogRead],
    summary="Evidence history",
    description="Append-only change log of one evidence item, oldest first.",
)
async def evidence_history(
    evidence_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[EvidenceAuditLogRead]:
    logs = await ComplianceService(session).evidence_history(tenant_id, evidence_id)
    return [EvidenceAuditLogRead.model_validate(x) for x in logs]
