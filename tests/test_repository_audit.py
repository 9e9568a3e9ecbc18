from uuid import uuid4

import pytest

from audit_api.db.base import utcnow
from audit_api.db.models import Control, ControlStatus, Framework
from audit_api.repositories.base import AuditedRepository
from audit_api.repositories.compliance import ControlRepository, FrameworkRepository


@pytest.mark.asyncio
async def test_add_stamps_envelope_and_waits_for_commit(session, fresh, tenant):
    repo = FrameworkRepository(session)
    soc2 = Framework(tenant_id=tenant.id, name="SOC 2", code="SOC2")

    before = utcnow()
    await repo.add(soc2, actor="alice")

    assert soc2.id is not None
    assert soc2.created_at is not None
    assert soc2.created_at >= before
    assert soc2.created_by == "alice"
    assert soc2.is_deleted is False
    assert soc2.modified_at is None
    # Staged only: another session sees nothing yet.
    assert await FrameworkRepository(fresh).count() == 0

    assert await repo.save_changes() == 1

    stored = await FrameworkRepository(fresh).get_by_id(soc2.id)
    assert stored is not None
    assert stored.name == "SOC 2"
    assert stored.version == "1.0"
    assert stored.is_active is True
    assert stored.created_by == "alice"
    assert stored.created_at.replace(tzinfo=None) == soc2.created_at.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_update_stamps_modified_fields_only(session, fresh, framework):
    repo = FrameworkRepository(session)
    created_at = framework.created_at

    framework.is_active = False
    await repo.update(framework, actor="bob")
    await repo.save_changes()

    stored = await FrameworkRepository(fresh).get_by_id(framework.id)
    assert stored.is_active is False
    assert stored.modified_by == "bob"
    assert stored.modified_at is not None
    assert stored.created_by == "tester"
    assert stored.created_at.replace(tzinfo=None) == created_at.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_get_by_id_unknown_returns_none(session, tenant):
    assert await FrameworkRepository(session).get_by_id(uuid4()) is None


@pytest.mark.asyncio
async def test_find_single_exists_and_count(session, tenant):
    repo = ControlRepository(session)
    for code, status in (("AC-1", ControlStatus.Completed), ("AC-2", ControlStatus.InProgress), ("AC-3", ControlStatus.Completed)):
        await repo.add(Control(tenant_id=tenant.id, name=f"Control {code}", code=code, status=status))
    await repo.save_changes()

    done = await repo.find(Control.status == ControlStatus.Completed, order_by=(Control.code,))
    assert [c.code for c in done] == ["AC-1", "AC-3"]

    assert (await repo.single_or_default(Control.code == "AC-2")).status == ControlStatus.InProgress
    assert await repo.single_or_default(Control.code == "ZZ-9") is None

    assert await repo.exists(Control.code == "AC-3") is True
    assert await repo.exists(Control.code == "ZZ-9") is False

    assert await repo.count() == 3
    assert await repo.count(Control.status == ControlStatus.Completed) == 2
    assert len(await repo.get_all()) == 3


@pytest.mark.asyncio
async def test_tenant_scoped_paging(session, tenant, other_tenant):
    repo = ControlRepository(session)
    for i in range(5):
        await repo.add(Control(tenant_id=tenant.id, name=f"c{i}", code=f"C-{i}"))
    await repo.add(Control(tenant_id=other_tenant.id, name="foreign", code="C-0"))
    await repo.save_changes()

    assert await repo.count_for_tenant(tenant.id) == 5
    assert await repo.count_for_tenant(other_tenant.id) == 1

    assert len(await repo.list_for_tenant(tenant.id, offset=2, limit=2)) == 2
    assert len(await repo.list_for_tenant(tenant.id, offset=4, limit=2)) == 1
    second_page = await repo.find(Control.tenant_id == tenant.id, order_by=(Control.code,), offset=2, limit=2)
    assert [c.code for c in second_page] == ["C-2", "C-3"]

    foreign = (await repo.list_for_tenant(other_tenant.id))[0]
    assert await repo.get_for_tenant(tenant.id, foreign.id) is None
    assert await repo.get_for_tenant(other_tenant.id, foreign.id) is foreign


@pytest.mark.asyncio
async def test_generic_repository_needs_a_model(session):
    with pytest.raises(TypeError):
        AuditedRepository(session)
