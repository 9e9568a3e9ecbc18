"""
Shared pytest fixtures.

Every test gets its own file-backed SQLite database (aiosqlite driver, foreign
keys enforced) with the full schema created from the ORM metadata.
"""
import os

# Set test environment BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./audit_api_test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from audit_api.db.models import Control, Framework, Tenant
from audit_api.db.session import build_engine, build_session_maker, create_schema, get_async_session
from audit_api.repositories.base import AuditedRepository
from audit_api.repositories.unit_of_work import UnitOfWork


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(url=f"sqlite+aiosqlite:///{tmp_path / 'audit.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def fresh(session_maker):
    """A second, independent session for reading back what was committed."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def tenant(session):
    uow = UnitOfWork(session)
    acme = Tenant(name="Acme Corporation", tenant_code="ACME", description="", is_active=True)
    await uow.repository(Tenant).add(acme, "tester")
    await uow.commit()
    return acme


@pytest_asyncio.fixture
async def other_tenant(session):
    uow = UnitOfWork(session)
    globex = Tenant(name="Globex", tenant_code="GLOBEX", description="", is_active=True)
    await uow.repository(Tenant).add(globex, "tester")
    await uow.commit()
    return globex


@pytest_asyncio.fixture
async def control(session, tenant):
    repo = AuditedRepository(session, Control)
    ctl = Control(tenant_id=tenant.id, name="Access reviews", code="AC-1")
    await repo.add(ctl, "tester")
    await repo.save_changes()
    return ctl


@pytest_asyncio.fixture
async def framework(session, tenant):
    repo = AuditedRepository(session, Framework)
    soc2 = Framework(tenant_id=tenant.id, name="SOC 2", code="SOC2", description="", version="1.0")
    await repo.add(soc2, "tester")
    await repo.save_changes()
    return soc2


@pytest_asyncio.fixture
async def client(session_maker):
    from audit_api.api.main import app

    async def _override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
