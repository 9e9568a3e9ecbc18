from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select

from audit_api.db.models.tenancy import Role, Tenant, User, UserRole
from .base import AuditedRepository, TenantScopedRepository


class TenantRepository(AuditedRepository[Tenant]):
    """Repository for tenants (not tenant-scoped themselves)."""

    model = Tenant

    async def get_by_code(self, tenant_code: str) -> Optional[Tenant]:
        return await self.single_or_default(Tenant.tenant_code == tenant_code)


class UserRepository(TenantScopedRepository[User]):
    """Repository for users and their role assignments within a tenant."""

    model = User

    async def get_by_email(self, tenant_id: UUID, email: str) -> Optional[User]:
        return await self.single_or_default(User.tenant_id == tenant_id, User.email == email)

    async def assign_role(self, user_id: UUID, role_id: UUID) -> None:
        await self.add_all([UserRole(user_id=user_id, role_id=role_id)])

    async def remove_role(self, user_id: UUID, role_id: UUID) -> None:
        await self.execute(delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id))

    async def list_roles(self, user_id: UUID) -> List[Role]:
        stmt = (
            select(Role)
            .join(UserRole, Role.id == UserRole.role_id)
            .where(UserRole.user_id == user_id)
            .order_by(Role.priority, Role.name)
        )
        return list(await self.scalars(stmt))


class RoleRepository(TenantScopedRepository[Role]):
    model = Role
