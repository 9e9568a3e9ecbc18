from uuid import uuid4

import pytest
from sqlalchemy import select

from audit_api.core.errors import AppendOnlyViolationError
from audit_api.db.models import (
    Control,
    Evidence,
    EvidenceAuditLog,
    Framework,
    FrameworkControl,
    Policy,
    RemediationTask,
)
from audit_api.db.session import INCLUDE_DELETED
from audit_api.repositories.base import AuditedRepository
from audit_api.repositories.compliance import (
    ControlRepository,
    EvidenceRepository,
    FrameworkRepository,
)
from audit_api.repositories.tenancy import TenantRepository


async def _evidence_for(session, control, title="Quarterly review"):
    repo = EvidenceRepository(session)
    evidence = Evidence(tenant_id=control.tenant_id, control_id=control.id, title=title)
    await repo.add(evidence, "tester")
    await repo.append_log(evidence, "Submitted", title, "tester")
    await repo.save_changes()
    return evidence


@pytest.mark.asyncio
async def test_deleted_rows_disappear_from_every_read(session, fresh, framework):
    repo = FrameworkRepository(session)
    await repo.delete(framework, actor="carol")
    await repo.save_changes()

    reader = FrameworkRepository(fresh)
    assert await reader.get_by_id(framework.id) is None
    assert await reader.get_all() == []
    assert await reader.find(Framework.code == "SOC2") == []
    assert await reader.single_or_default(Framework.code == "SOC2") is None
    assert await reader.exists(Framework.code == "SOC2") is False
    assert await reader.count() == 0

    kept = await reader.get_by_id_including_deleted(framework.id)
    assert kept is not None
    assert kept.is_deleted is True
    assert kept.deleted_at is not None
    assert kept.modified_by == "carol"
    assert [f.id for f in await reader.find_including_deleted(Framework.code == "SOC2")] == [framework.id]


@pytest.mark.asyncio
async def test_deleted_rows_are_hidden_before_commit_in_same_session(session, framework):
    repo = FrameworkRepository(session)
    await repo.delete(framework)
    assert await repo.get_by_id(framework.id) is None
    assert await repo.get_all() == []
    assert await repo.exists(Framework.code == "SOC2") is False
    assert await repo.count() == 0


@pytest.mark.asyncio
async def test_pages_skip_rows_deleted_in_same_session(session, tenant):
    repo = ControlRepository(session)
    controls = [Control(tenant_id=tenant.id, name=f"Control {i}", code=f"C-{i}") for i in range(3)]
    for control in controls:
        await repo.add(control)
    await repo.save_changes()

    await repo.delete(controls[0])
    page = await repo.find(order_by=(Control.code,), limit=2)
    assert [c.code for c in page] == ["C-1", "C-2"]
    assert await repo.count_for_tenant(tenant.id) == 2


@pytest.mark.asyncio
async def test_delete_by_id_unknown_is_noop(session, framework):
    repo = FrameworkRepository(session)
    await repo.delete_by_id(uuid4())
    assert await repo.save_changes() == 0
    assert await repo.count() == 1


@pytest.mark.asyncio
async def test_second_delete_keeps_original_timestamp(session, session_maker, framework):
    repo = FrameworkRepository(session)
    await repo.delete(framework)
    await repo.save_changes()

    async with session_maker() as second:
        again = FrameworkRepository(second)
        row = await again.get_by_id_including_deleted(framework.id)
        first_deleted_at = row.deleted_at
        await again.delete(row, actor="dave")
        await again.save_changes()

    async with session_maker() as third:
        row = await FrameworkRepository(third).get_by_id_including_deleted(framework.id)
        assert row.deleted_at == first_deleted_at
        assert row.modified_by is None


@pytest.mark.asyncio
async def test_control_delete_cascades_to_evidence_and_unlinks_tasks(session, fresh, tenant, control, framework):
    evidence = await _evidence_for(session, control)
    task = RemediationTask(tenant_id=tenant.id, title="Fix access reviews", control_id=control.id)
    policy = Policy(tenant_id=tenant.id, title="Access policy", control_id=control.id)
    await AuditedRepository(session, RemediationTask).add(task)
    await AuditedRepository(session, Policy).add(policy)
    await FrameworkRepository(session).map_control(framework.id, control.id, requirement="CC6.1", sequence=1)
    await ControlRepository(session).save_changes()

    repo = ControlRepository(session)
    await repo.delete(control, actor="erin")
    await repo.save_changes()

    # CASCADE dependent: soft-deleted with the same stamp.
    assert await EvidenceRepository(fresh).get_by_id(evidence.id) is None
    gone = await EvidenceRepository(fresh).get_by_id_including_deleted(evidence.id)
    assert gone.is_deleted is True
    deleted_control = await ControlRepository(fresh).get_by_id_including_deleted(control.id)
    assert gone.deleted_at == deleted_control.deleted_at

    # SET NULL dependents survive without the reference.
    survivor = await AuditedRepository(fresh, RemediationTask).get_by_id(task.id)
    assert survivor is not None
    assert survivor.control_id is None
    assert survivor.modified_by == "erin"
    assert (await AuditedRepository(fresh, Policy).get_by_id(policy.id)).control_id is None

    # Append-only history and junction rows are left alone.
    logs = await EvidenceRepository(fresh).list_logs(evidence.id)
    assert [log.action for log in logs] == ["Submitted"]
    links = (await fresh.execute(select(FrameworkControl))).scalars().all()
    assert len(links) == 1

    # Joins through the junction still hide the deleted control.
    assert await FrameworkRepository(fresh).list_controls(framework.id) == []


@pytest.mark.asyncio
async def test_tenant_delete_cascades_to_owned_records(session, fresh, tenant, control, framework):
    await TenantRepository(session).delete(tenant, actor="ops")
    await TenantRepository(session).save_changes()

    assert await TenantRepository(fresh).get_by_code("ACME") is None
    assert await FrameworkRepository(fresh).count() == 0
    assert await ControlRepository(fresh).count() == 0
    assert len(await ControlRepository(fresh).find_including_deleted()) == 1


@pytest.mark.asyncio
async def test_append_only_records_refuse_update_and_delete(session, control):
    evidence = await _evidence_for(session, control)
    log = (await EvidenceRepository(session).list_logs(evidence.id))[0]
    logs = AuditedRepository(session, EvidenceAuditLog)

    with pytest.raises(AppendOnlyViolationError):
        await logs.update(log)
    with pytest.raises(AppendOnlyViolationError):
        await logs.delete(log)


@pytest.mark.asyncio
async def test_include_deleted_execution_option_lifts_filter(session, fresh, control):
    await ControlRepository(session).delete(control)
    await ControlRepository(session).save_changes()

    hidden = (await fresh.execute(select(Control))).scalars().all()
    shown = (await fresh.execute(select(Control).execution_options(**{INCLUDE_DELETED: True}))).scalars().all()
    assert hidden == []
    assert [c.id for c in shown] == [control.id]


@pytest.mark.asyncio
async def test_policy_delete_unlinks_evidence(session, fresh, tenant, control):
    policy = Policy(tenant_id=tenant.id, title="Backup policy")
    await AuditedRepository(session, Policy).add(policy)
    evidence = Evidence(tenant_id=tenant.id, control_id=control.id, policy_id=policy.id, title="Restore log")
    await EvidenceRepository(session).add(evidence)
    await EvidenceRepository(session).save_changes()

    policies = AuditedRepository(session, Policy)
    await policies.delete(policy)
    await policies.save_changes()

    kept = await EvidenceRepository(fresh).get_by_id(evidence.id)
    assert kept is not None
    assert kept.policy_id is None
