from uuid import uuid4

import pytest

from audit_api.core.errors import ConflictError
from audit_api.db.models import Control, Evidence, Framework, Policy, RemediationTask, Tenant
from audit_api.repositories.base import AuditedRepository
from audit_api.repositories.compliance import ControlRepository, EvidenceRepository, FrameworkRepository
from audit_api.repositories.tenancy import TenantRepository
from audit_api.repositories.unit_of_work import UnitOfWork


@pytest.mark.asyncio
async def test_commit_persists_every_kind_together(session, fresh, tenant):
    uow = UnitOfWork(session)
    framework = Framework(tenant_id=tenant.id, name="ISO 27001", code="ISO27001")
    control = Control(tenant_id=tenant.id, name="Asset inventory", code="A.5.9")
    await uow.repository(Framework, FrameworkRepository).add(framework)
    await uow.repository(Control, ControlRepository).add(control)
    await uow.repository(Framework, FrameworkRepository).map_control(framework.id, control.id, sequence=1)
    task = RemediationTask(tenant_id=tenant.id, title="Build inventory", control_id=control.id)
    await uow.repository(RemediationTask).add(task)

    assert await uow.commit() == 4

    pairs = await FrameworkRepository(fresh).list_controls(framework.id)
    assert [(c.code, link.sequence) for c, link in pairs] == [("A.5.9", 1)]
    assert (await AuditedRepository(fresh, RemediationTask).get_by_id(task.id)).control_id == control.id


@pytest.mark.asyncio
async def test_failed_commit_leaves_nothing_behind(session, fresh, tenant, framework):
    tenant_id = tenant.id
    uow = UnitOfWork(session)
    await uow.repository(Control, ControlRepository).add(Control(tenant_id=tenant_id, name="ok", code="OK-1"))
    await uow.repository(Framework, FrameworkRepository).add(
        Framework(tenant_id=tenant_id, name="dup", code=framework.code)
    )

    with pytest.raises(ConflictError):
        await uow.commit()

    assert await ControlRepository(fresh).count() == 0
    assert await FrameworkRepository(fresh).count() == 1
    # The rollback expired loaded rows; re-stage from captured keys.
    await uow.repository(Control, ControlRepository).add(Control(tenant_id=tenant_id, name="ok", code="OK-1"))
    assert await uow.commit() == 1


@pytest.mark.asyncio
async def test_context_manager_rolls_back_on_error(session, fresh, tenant):
    with pytest.raises(RuntimeError):
        async with UnitOfWork(session) as uow:
            await uow.repository(Control).add(Control(tenant_id=tenant.id, name="never", code="NV-1"))
            raise RuntimeError("boom")

    assert await ControlRepository(fresh).count() == 0
    assert len(session.new) == 0


@pytest.mark.asyncio
async def test_repository_instances_are_shared_per_kind(session):
    uow = UnitOfWork(session)
    generic = uow.repository(Control)
    assert uow.repository(Control) is generic
    specialised = uow.repository(Control, ControlRepository)
    assert isinstance(specialised, ControlRepository)
    assert uow.repository(Control) is specialised
    assert specialised.session is session


@pytest.mark.asyncio
async def test_new_parent_and_children_commit_together(session, fresh):
    uow = UnitOfWork(session)
    acme = Tenant(id=uuid4(), name="Acme Corporation", tenant_code="ACME")
    framework = Framework(id=uuid4(), tenant_id=acme.id, name="SOC 2", code="SOC2")
    control = Control(id=uuid4(), tenant_id=acme.id, name="Logical access", code="CC6.1")
    # Staged children first; the commit still inserts parents before them.
    await uow.repository(Framework, FrameworkRepository).map_control(framework.id, control.id, sequence=1)
    await uow.repository(Control, ControlRepository).add(control)
    await uow.repository(Framework, FrameworkRepository).add(framework)
    await uow.repository(Tenant, TenantRepository).add(acme)

    assert await uow.commit() == 4

    assert (await TenantRepository(fresh).get_by_code("ACME")).id == acme.id
    pairs = await FrameworkRepository(fresh).list_controls(framework.id)
    assert [c.code for c, _ in pairs] == ["CC6.1"]


@pytest.mark.asyncio
async def test_new_policy_and_its_evidence_commit_together(session, fresh, tenant, control):
    uow = UnitOfWork(session)
    policy = Policy(id=uuid4(), tenant_id=tenant.id, title="Backup policy", control_id=control.id)
    evidence = Evidence(tenant_id=tenant.id, control_id=control.id, policy_id=policy.id, title="Restore log")
    await uow.repository(Evidence, EvidenceRepository).add(evidence)
    await uow.repository(Policy).add(policy)

    assert await uow.commit() == 2
    assert (await EvidenceRepository(fresh).get_by_id(evidence.id)).policy_id == policy.id
