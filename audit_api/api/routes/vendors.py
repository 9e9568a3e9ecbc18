from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination, get_tenant_id
from audit_api.db.session import get_async_session
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.risk import (
    VendorCreate,
    VendorRead,
    VendorRiskCreate,
    VendorRiskRead,
    VendorUpdate,
)
from audit_api.services.risks import RiskService

router = APIRouter(prefix="/vendors", tags=["Vendors"])


# PUBLIC_INTERFACE
@router.get("", response_model=PaginatedResult[VendorRead], summary="List vendors")
async def list_vendors(
    tenant_id: UUID = Depends(get_tenant_id),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[VendorRead]:
    rows, total = await RiskService(session).list_vendors(tenant_id, page)
    return page_of(VendorRead, rows, total, page)


# PUBLIC_INTERFACE
@router.get("/{vendor_id}", response_model=VendorRead, summary="Get vendor")
async def get_vendor(
    vendor_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> VendorRead:
    return VendorRead.model_validate(await RiskService(session).get_vendor(tenant_id, vendor_id))


# PUBLIC_INTERFACE
@router.post("", response_model=VendorRead, status_code=status.HTTP_201_CREATED, summary="Create vendor")
async def create_vendor(
    payload: VendorCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> VendorRead:
    return VendorRead.model_validate(await RiskService(session).create_vendor(tenant_id, payload, actor))


# PUBLIC_INTERFACE
@router.put("/{vendor_id}", response_model=VendorRead, summary="Update vendor")
async def update_vendor(
    payload: VendorUpdate,
    vendor_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> VendorRead:
    vendor = await RiskService(session).update_vendor(tenant_id, vendor_id, payload, actor)
    return VendorRead.model_validate(vendor)


# PUBLIC_INTERFACE
@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete vendor")
async def delete_vendor(
    vendor_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await RiskService(session).delete_vendor(tenant_id, vendor_id, actor)


# PUBLIC_INTERFACE
@router.post(
    "/{vendor_id}/risks",
    response_model=VendorRiskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assess vendor risk",
)
async def assess_vendor_risk(
    payload: VendorRiskCreate,
    vendor_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> VendorRiskRead:
    entry = await RiskService(session).assess_vendor_risk(
        tenant_id, vendor_id, payload.risk_description, payload.likelihood, payload.impact, actor
    )
    return VendorRiskRead.model_validate(entry)


# PUBLIC_INTERFACE
@router.get("/{vendor_id}/risks", response_model=List[VendorRiskRead], summary="List vendor risks")
async def list_vendor_risks(
    vendor_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[VendorRiskRead]:
    service = RiskService(session)
    await service.get_vendor(tenant_id, vendor_id)
    return [VendorRiskRead.model_validate(r) for r in await service.vendors.list_risks(vendor_id)]
