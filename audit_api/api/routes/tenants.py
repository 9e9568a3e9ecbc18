from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.deps import get_actor, get_pagination
from audit_api.core.errors import NotFoundError
from audit_api.db.models.tenancy import Tenant
from audit_api.db.session import get_async_session
from audit_api.repositories.tenancy import TenantRepository
from audit_api.repositories.unit_of_work import UnitOfWork
from audit_api.schemas.common import Pagination, PaginatedResult, page_of
from audit_api.schemas.tenancy import TenantCreate, TenantRead, TenantUpdate

router = APIRouter(prefix="/tenants", tags=["Tenants"])


async def _get_or_404(repo: TenantRepository, tenant_id: UUID) -> Tenant:
    tenant = await repo.get_by_id(tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant not found", details={"id": str(tenant_id)})
    return tenant


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=PaginatedResult[TenantRead],
    summary="List tenants",
    description="List tenants ordered by creation time.",
)
async def list_tenants(
    page: Pagination = Depends(get_pagination),
    session: AsyncSession = Depends(get_async_session),
) -> PaginatedResult[TenantRead]:
    repo = TenantRepository(session)
    rows = await repo.find(offset=page.offset, limit=page.page_size)
    return page_of(TenantRead, rows, await repo.count(), page)


# PUBLIC_INTERFACE
@router.get("/{tenant_id}", response_model=TenantRead, summary="Get tenant")
async def get_tenant(
    tenant_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    return TenantRead.model_validate(await _get_or_404(TenantRepository(session), tenant_id))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TenantRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    description="Create a tenant. The tenant code must be globally unique (409 otherwise).",
)
async def create_tenant(
    payload: TenantCreate,
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    uow = UnitOfWork(session)
    tenant = Tenant(
        name=payload.name,
        tenant_code=payload.tenant_code,
        description=payload.description,
        is_active=True,
    )
    await uow.repository(Tenant, TenantRepository).add(tenant, actor)
    await uow.commit()
    return TenantRead.model_validate(tenant)


# PUBLIC_INTERFACE
@router.put("/{tenant_id}", response_model=TenantRead, summary="Update tenant")
async def update_tenant(
    payload: TenantUpdate,
    tenant_id: UUID = Path(...),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> TenantRead:
    uow = UnitOfWork(session)
    repo = uow.repository(Tenant, TenantRepository)
    tenant = await _get_or_404(repo, tenant_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(tenant, key, value)
    await repo.update(tenant, actor)
    await uow.commit()
    return TenantRead.model_validate(tenant)


# PUBLIC_INTERFACE
@router.delete(
    "/{tenant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tenant",
    description="Soft-delete a tenant and, with it, every record the tenant owns.",
)
async def delete_tenant(
    tenant_id: UUID = Path(...),
    actor: Optional[str] = Depends(get_actor),
    session: AsyncSession = Depends(get_async_session),
) -> None:
    uow = UnitOfWork(session)
    repo = uow.repository(Tenant, TenantRepository)
    await repo.delete(await _get_or_404(repo, tenant_id), actor)
    await uow.commit()
