"""
Database seeding utilities for minimal reference data.

Seeds:
- Base tenant (ACME)
- SOC 2 framework
- One sample control mapped into the framework

Every step looks for existing rows first, so running the seed twice is harmless.

Usage:
  python -m audit_api.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.core.logging import configure_logging
from audit_api.core.settings import get_app_settings
from audit_api.db.models.compliance import Control, Framework
from audit_api.db.models.tenancy import Tenant
from audit_api.db.session import create_schema, get_session_maker
from audit_api.repositories.compliance import ControlRepository, FrameworkRepository
from audit_api.repositories.tenancy import TenantRepository
from audit_api.repositories.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

SEED_ACTOR = "seed"


# PUBLIC_INTERFACE
async def seed_all(session: Optional[AsyncSession] = None) -> Tenant:
    """
    Seed the database with minimal reference data and return the base tenant.

    Uses the given session, or opens one from the global session factory.
    """
    if session is not None:
        return await _seed(session)
    async with get_session_maker()() as own:
        return await _seed(own)


async def _seed(session: AsyncSession) -> Tenant:
    tenant_code = get_app_settings().DEFAULT_TENANT_CODE
    uow = UnitOfWork(session)

    tenants = uow.repository(Tenant, TenantRepository)
    tenant = await tenants.get_by_code(tenant_code)
    if tenant is None:
        tenant = Tenant(name="Acme Corporation", tenant_code=tenant_code, description="Default tenant", is_active=True)
        await tenants.add(tenant, SEED_ACTOR)

    frameworks = uow.repository(Framework, FrameworkRepository)
    framework = await frameworks.get_by_code(tenant.id, "SOC2")
    if framework is None:
        framework = Framework(
            tenant_id=tenant.id,
            name="SOC 2",
            code="SOC2",
            description="Service Organization Control 2",
            version="1.0",
            is_active=True,
        )
        await frameworks.add(framework, SEED_ACTOR)

    controls = uow.repository(Control, ControlRepository)
    control = await controls.get_by_code(tenant.id, "CC6.1")
    if control is None:
        control = Control(
            tenant_id=tenant.id,
            name="Logical access security",
            code="CC6.1",
            description="Logical access to information assets is restricted.",
        )
        await controls.add(control, SEED_ACTOR)
        await frameworks.map_control(
            framework.id, control.id, requirement="Restrict logical access to authorised users", sequence=1
        )

    staged = await uow.commit()
    logger.info("Seeded tenant %s (%d rows written)", tenant.tenant_code, staged)
    return tenant


async def _main() -> None:
    configure_logging(get_app_settings().LOG_LEVEL)
    await create_schema()
    await seed_all()


if __name__ == "__main__":
    asyncio.run(_main())
