from __future__ import annotations

import enum
from typing import Any, Mapping, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.errors import EntityValidationError, NotFoundError
from audit_api.db.models.tenancy import Tenant
from audit_api.repositories.tenancy import TenantRepository
from audit_api.repositories.unit_of_work import UnitOfWork

E = TypeVar("E", bound=enum.Enum)


# PUBLIC_INTERFACE
def parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Resolve an enumeration member from its name (or the member itself)."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls[str(value)]
    except KeyError:
        allowed = ", ".join(m.name for m in enum_cls)
        raise EntityValidationError(f"Invalid {field} '{value}'", details={"allowed": allowed}) from None


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories.

    Services keep business logic and orchestration, delegating data access to
    repositories. Every public write method stages its changes and commits
    them through one UnitOfWork, so a failure leaves nothing behind.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.tenants = TenantRepository(session)

    async def require_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenants.get_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found", details={"tenant_id": str(tenant_id)})
        return tenant

    @staticmethod
    def apply_changes(entity: Any, changes: Mapping[str, Any]) -> bool:
        """Copy non-None values onto the entity; returns whether anything changed."""
        changed = False
        for key, value in changes.items():
            if value is None:
                continue
            if getattr(entity, key) != value:
                setattr(entity, key, value)
                changed = True
        return changed

    @staticmethod
    def not_found(kind: str, entity_id: Optional[UUID]) -> NotFoundError:
        return NotFoundError(f"{kind} not found", details={"id": str(entity_id)})
