from uuid import uuid4

import pytest

from audit_api.core.errors import EntityValidationError, NotFoundError
from audit_api.db.models import (
    ControlStatus,
    EvidenceStatus,
    RiskStatus,
    RiskTier,
    TaskPriority,
    TaskStatus,
)
from audit_api.schemas.common import Pagination
from audit_api.schemas.compliance import (
    ControlCreate,
    ControlUpdate,
    EvidenceCreate,
    FrameworkControlCreate,
    FrameworkCreate,
)
from audit_api.schemas.risk import RiskCreate, RiskUpdate, VendorCreate
from audit_api.schemas.tasks import RemediationTaskCreate, RemediationTaskUpdate, TaskNotificationCreate
from audit_api.services import (
    ComplianceService,
    IntegrationService,
    RiskService,
    TaskService,
    parse_enum,
    risk_score,
)


def test_risk_score_is_likelihood_times_impact():
    assert risk_score(1, 1) == 1
    assert risk_score(3, 4) == 12
    assert risk_score(5, 5) == 25
    for likelihood, impact in ((0, 3), (6, 1), (3, 0), (2, 9)):
        with pytest.raises(EntityValidationError):
            risk_score(likelihood, impact)


def test_parse_enum_by_name():
    assert parse_enum(TaskPriority, "High", "priority") is TaskPriority.High
    assert parse_enum(TaskPriority, TaskPriority.Low, "priority") is TaskPriority.Low
    with pytest.raises(EntityValidationError):
        parse_enum(TaskPriority, "Urgent", "priority")


@pytest.mark.asyncio
async def test_framework_lifecycle_and_mapping(session, tenant):
    service = ComplianceService(session)
    framework = await service.create_framework(tenant.id, FrameworkCreate(name="SOC 2", code="SOC2"))
    assert framework.version == "1.0"
    assert framework.is_active is True
    assert framework.created_by is None

    control = await service.create_control(
        tenant.id, ControlCreate(name="Logical access", code="CC6.1", status="InProgress")
    )
    assert control.status == ControlStatus.InProgress

    await service.map_control(
        tenant.id, framework.id, FrameworkControlCreate(control_id=control.id, requirement="Restrict access", sequence=2)
    )
    pairs = await service.list_framework_controls(tenant.id, framework.id)
    assert [(c.code, link.requirement) for c, link in pairs] == [("CC6.1", "Restrict access")]

    rows, total = await service.list_frameworks(tenant.id, Pagination(page_number=1, page_size=10))
    assert total == 1 and rows[0].id == framework.id

    await service.delete_framework(tenant.id, framework.id)
    with pytest.raises(NotFoundError):
        await service.get_framework(tenant.id, framework.id)


@pytest.mark.asyncio
async def test_records_of_another_tenant_are_not_found(session, tenant, other_tenant):
    service = ComplianceService(session)
    control = await service.create_control(other_tenant.id, ControlCreate(name="Foreign", code="F-1"))

    with pytest.raises(NotFoundError):
        await service.get_control(tenant.id, control.id)
    with pytest.raises(NotFoundError):
        await service.update_control(tenant.id, control.id, ControlUpdate(name="Hijacked"))
    with pytest.raises(NotFoundError):
        await service.create_framework(uuid4(), FrameworkCreate(name="x", code="X"))


@pytest.mark.asyncio
async def test_update_control_rejects_unknown_status(session, tenant, control):
    service = ComplianceService(session)
    with pytest.raises(EntityValidationError):
        await service.update_control(tenant.id, control.id, ControlUpdate(status="Done"))

    updated = await service.update_control(
        tenant.id, control.id, ControlUpdate(status="Completed", compliance_percentage=100), actor="auditor"
    )
    assert updated.status == ControlStatus.Completed
    assert updated.compliance_percentage == 100
    assert updated.modified_by == "auditor"


@pytest.mark.asyncio
async def test_evidence_review_keeps_a_history(session, tenant, control):
    service = ComplianceService(session)
    evidence = await service.submit_evidence(
        tenant.id, EvidenceCreate(control_id=control.id, title="Access review Q1"), actor="owner"
    )
    assert evidence.status == EvidenceStatus.Pending
    assert evidence.evidence_date is not None

    rejected = await service.reject_evidence(tenant.id, evidence.id, "auditor", reason="Missing sign-off")
    assert rejected.status == EvidenceStatus.Rejected

    approved = await service.approve_evidence(tenant.id, evidence.id, "auditor")
    assert approved.status == EvidenceStatus.Approved
    assert approved.approved_by == "auditor"
    assert approved.approved_at is not None

    history = await service.evidence_history(tenant.id, evidence.id)
    assert sorted(entry.action for entry in history) == ["Approved", "Rejected", "Submitted"]
    assert {entry.changed_by for entry in history} == {"owner", "auditor"}
    assert [entry.details for entry in history if entry.action == "Rejected"] == ["Missing sign-off"]


@pytest.mark.asyncio
async def test_risk_scores_follow_updates(session, tenant, control):
    service = RiskService(session)
    risk = await service.create_risk(tenant.id, RiskCreate(title="Data leak", likelihood=2, impact=4))
    assert risk.risk_score == 8
    assert risk.status == RiskStatus.Open

    risk = await service.update_risk(tenant.id, risk.id, RiskUpdate(likelihood=5, status="Mitigated"))
    assert risk.risk_score == 20
    assert risk.status == RiskStatus.Mitigated

    with pytest.raises(EntityValidationError):
        await service.update_risk(tenant.id, risk.id, RiskUpdate(impact=7))
    with pytest.raises(EntityValidationError):
        await service.create_risk(tenant.id, RiskCreate(title="Bad", likelihood=0, impact=3))

    await service.link_control(tenant.id, risk.id, control.id)
    assert [c.id for c in await service.risks.list_controls(risk.id)] == [control.id]
    assert [r.id for r in await service.top_risks(tenant.id, 15)] == [risk.id]


@pytest.mark.asyncio
async def test_vendor_risk_assessment(session, tenant):
    service = RiskService(session)
    vendor = await service.create_vendor(tenant.id, VendorCreate(name="CloudCo", risk_tier="High"))
    assert vendor.risk_tier == RiskTier.High

    entry = await service.assess_vendor_risk(tenant.id, vendor.id, "Sub-processor outside EU", 3, 3)
    assert entry.risk_score == 9
    assert [r.id for r in await service.vendors.list_risks(vendor.id)] == [entry.id]

    with pytest.raises(EntityValidationError):
        await service.assess_vendor_risk(tenant.id, vendor.id, "Impossible", 3, 6)

    await service.delete_vendor(tenant.id, vendor.id)
    assert await service.vendors.list_risks(vendor.id) == []


@pytest.mark.asyncio
async def test_task_completion_and_notifications(session, tenant, control):
    service = TaskService(session)
    task = await service.create_task(
        tenant.id, RemediationTaskCreate(title="Rotate keys", control_id=control.id, priority="High")
    )
    assert task.status == TaskStatus.Open
    assert task.priority == TaskPriority.High
    assert [t.id for t in await service.list_open(tenant.id)] == [task.id]

    note = await service.notify(
        tenant.id, task.id, TaskNotificationCreate(recipient_email="owner@acme.test", subject="Due soon")
    )
    assert note.sent_at is not None
    assert [n.id for n in await service.notifications(tenant.id, task.id)] == [note.id]

    done = await service.complete_task(tenant.id, task.id, actor="owner")
    assert done.status == TaskStatus.Completed
    assert done.completed_at is not None
    assert await service.list_open(tenant.id) == []


@pytest.mark.asyncio
async def test_cancelled_task_cannot_be_completed(session, tenant):
    service = TaskService(session)
    task = await service.create_task(tenant.id, RemediationTaskCreate(title="Obsolete"))
    await service.update_task(tenant.id, task.id, RemediationTaskUpdate(status="Cancelled"))
    with pytest.raises(EntityValidationError):
        await service.complete_task(tenant.id, task.id)


@pytest.mark.asyncio
async def test_task_links_must_belong_to_tenant(session, tenant, other_tenant):
    foreign = await ComplianceService(session).create_control(other_tenant.id, ControlCreate(name="x", code="X-1"))
    with pytest.raises(NotFoundError):
        await TaskService(session).create_task(
            tenant.id, RemediationTaskCreate(title="Cross-tenant", control_id=foreign.id)
        )


@pytest.mark.asyncio
async def test_integration_events_are_processed_once(session, tenant):
    service = IntegrationService(session)
    jira = await service.register(tenant.id, "Jira", "jira", {"project": "SEC"})
    event = await service.record_event(tenant.id, jira.id, "issue.updated", '{"key": "SEC-1"}')
    assert jira.last_sync_at is not None
    assert [e.id for e in await service.pending_events(tenant.id, jira.id)] == [event.id]

    processed = await service.mark_processed(tenant.id, event.id)
    first_stamp = processed.processed_at
    assert processed.processed is True
    assert await service.pending_events(tenant.id, jira.id) == []

    again = await service.mark_processed(tenant.id, event.id)
    assert again.processed_at == first_stamp

    with pytest.raises(NotFoundError):
        await service.mark_processed(uuid4(), event.id)
