from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination, get_tenant_id
from audit_api.db.session import get_async_session
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.compliance import (
    ControlRead,
    FrameworkControlCreate,
    FrameworkControlRead,
    FrameworkCreate,
    FrameworkRead,
    FrameworkUpdate,
)
from audit_api.services.compliance import ComplianceService

router = APIRouter(prefix="/frameworks", tags=["Frameworks"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=PaginatedResult[FrameworkRead],
    summary="List frameworks",
    description="List the tenant's compliance frameworks.",
)
async def list_frameworks(
    tenant_id: UUID = Depends(get_tenant_id),
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[FrameworkRead]:
    rows, total = await ComplianceService(session).list_frameworks(tenant_id, page)
    return page_of(FrameworkRead, rows, total, page)


# PUBLIC_INTERFACE
@router.get("/{framework_id}", response_model=FrameworkRead, summary="Get framework")
async def get_framework(
    framework_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> FrameworkRead:
    framework = await ComplianceService(session).get_framework(tenant_id, framework_id)
    return FrameworkRead.model_validate(framework)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=FrameworkRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create framework",
    description="Create a framework. Codes are unique per tenant; version defaults to 1.0.",
)
async def create_framework(
    payload: FrameworkCreate,
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> FrameworkRead:
    framework = await ComplianceService(session).create_framework(tenant_id, payload, actor)
    return FrameworkRead.model_validate(framework)


# PUBLIC_INTERFACE
@router.put("/{framework_id}", response_model=FrameworkRead, summary="Update framework")
async def update_framework(
    payload: FrameworkUpdate,
    framework_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> FrameworkRead:
    framework = await ComplianceService(session).update_framework(tenant_id, framework_id, payload, actor)
    return FrameworkRead.model_validate(framework)


# PUBLIC_INTERFACE
@router.delete("/{framework_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete framework")
async def delete_framework(
    framework_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await ComplianceService(session).delete_framework(tenant_id, framework_id, actor)


# PUBLIC_INTERFACE
@router.post(
    "/{framework_id}/controls",
    response_model=FrameworkControlRead,
    status_code=status.HTTP_201_CREATED,
    summary="Map control into framework",
    description="Attach one of the tenant's controls to the framework with its requirement text.",
)
async def map_control(
    payload: FrameworkControlCreate,
    framework_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> FrameworkControlRead:
    service = ComplianceService(session)
    link = await service.map_control(tenant_id, framework_id, payload)
    control = await service.get_control(tenant_id, link.control_id)
    return FrameworkControlRead(
        control=ControlRead.model_validate(control), requirement=link.requirement, sequence=link.sequence
    )


# PUBLIC_INTERFACE
@router.get(
    "/{framework_id}/controls",
    response_model=List[FrameworkControlRead],
    summary="List framework controls",
)
async def list_framework_controls(
    framework_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> List[FrameworkControlRead]:
    pairs = await ComplianceService(session).list_framework_controls(tenant_id, framework_id)
    return [
        FrameworkControlRead(control=ControlRead.model_validate(c), requirement=fc.requirement, sequence=fc.sequence)
        for c, fc in pairs
    ]


# PUBLIC_INTERFACE
@router.delete(
    "/{framework_id}/controls/{control_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unmap control from framework",
)
async def unmap_control(
    framework_id: UUID = Path(...),
    control_id: UUID = Path(...),
    tenant_id: UUID = Depends(get_tenant_id),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    await ComplianceService(session).unmap_control(tenant_id, framework_id, control_id)
