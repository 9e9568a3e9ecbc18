from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination, get_tenant_id
from audit_api.db.session import get_async_session
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.risk import RiskCreate, RiskRead, RiskUpdate
from audit_api.services.risks import RiskService

router = APIRouter(prefix="/risks", tags=["Risks"])


# PUBLIC_INTERFACE
@router.get("", response_model=PaginatedResult[RiskRead], summary="List risks")
async def list_risks(
    tenant_id: UUID = Depends(get_tenant_id),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[RiskRead]:
    rows, total = await RiskService(session).list_risks(tenant_id, page)
    return page_of(RiskRead, rows, total, page)


# PUBLIC_INTERFACE
@router.get(
    "/top",
    response_model=List[RiskRead],
    summary="Highest risks",
    description="Risks scoring at least `minimum_score`, highest first.",
)
async def top_risks(
    minimum_score: int = Query(15, ge=1, le=25),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[RiskRead]:
    return [RiskRead.model_validate(r) for r in await RiskService(session).top_risks(tenant_id, minimum_score)]


# PUBLIC_INTERFACE
@router.get("/{risk_id}", response_model=RiskRead, summary="Get risk")
async def get_risk(
    risk_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> RiskRead:
    return RiskRead.model_validate(await RiskService(session).get_risk(tenant_id, risk_id))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=RiskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create risk",
    description="Register a risk. Likelihood and impact are 1-5; the score is their product.",
)
async def create_risk(
    payload: RiskCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> RiskRead:
    return RiskRead.model_validate(await RiskService(session).create_risk(tenant_id, payload, actor))


# PUBLIC_INTERFACE
@router.put("/{risk_id}", response_model=RiskRead, summary="Update risk")
async def update_risk(
    payload: RiskUpdate,
    risk_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> RiskRead:
    return RiskRead.model_validate(await RiskService(session).update_risk(tenant_id, risk_id, payload, actor))


# PUBLIC_INTERFACE
@router.delete("/{risk_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete risk")
async def delete_risk(
    risk_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await RiskService(session).delete_risk(tenant_id, risk_id, actor)


# PUBLIC_INTERFACE
@router.post(
    "/{risk_id}/controls/{control_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Link mitigating control",
)
async def link_control(
    risk_id: UUID = Path(...),
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await RiskService(session).link_control(tenant_id, risk_id, control_id)
