from uuid import uuid4

import pytest


def _headers(tenant_id, actor=None):
    headers = {"X-Tenant-ID": str(tenant_id)}
    if actor:
        headers["X-Actor"] = actor
    return headers


@pytest.mark.asyncio
async def test_health_endpoints(client):
    resp = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Healthy", "details": None}
    assert resp.headers["X-Correlation-ID"] == "abc-123"

    tid = uuid4()
    resp = await client.get("/api/v1/health/tenant", headers=_headers(tid))
    assert resp.status_code == 200
    assert resp.json() == {"tenant_id": str(tid)}


@pytest.mark.asyncio
async def test_tenant_header_is_required_and_validated(client):
    resp = await client.get("/api/v1/frameworks")
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["type"] == "http_error"
    assert body["path"] == "/api/v1/frameworks"

    resp = await client.get("/api/v1/frameworks", headers={"X-Tenant-ID": "not-a-uuid"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_tenant_crud(client):
    resp = await client.post("/api/v1/tenants", json={"name": "Acme Corporation", "tenant_code": "ACME"})
    assert resp.status_code == 201
    tenant = resp.json()
    assert tenant["is_active"] is True

    dup = await client.post("/api/v1/tenants", json={"name": "Other", "tenant_code": "ACME"})
    assert dup.status_code == 409
    assert dup.json()["error"]["type"] == "conflict"

    resp = await client.put(f"/api/v1/tenants/{tenant['id']}", json={"description": "Primary tenant"})
    assert resp.status_code == 200
    assert resp.json()["description"] == "Primary tenant"
    assert resp.json()["tenant_code"] == "ACME"

    listing = (await client.get("/api/v1/tenants")).json()
    assert listing["total_count"] == 1
    assert listing["total_pages"] == 1

    assert (await client.delete(f"/api/v1/tenants/{tenant['id']}")).status_code == 204
    missing = await client.get(f"/api/v1/tenants/{tenant['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"]["type"] == "not_found"


@pytest.mark.asyncio
async def test_framework_scenario_end_to_end(client):
    tenant = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    headers = _headers(tenant["id"], actor="alice")

    resp = await client.post(
        "/api/v1/frameworks",
        json={"name": "SOC 2", "code": "SOC2", "description": "Trust services criteria"},
        headers=headers,
    )
    assert resp.status_code == 201
    framework = resp.json()
    assert framework["version"] == "1.0"
    assert framework["is_active"] is True
    assert framework["tenant_id"] == tenant["id"]

    dup = await client.post("/api/v1/frameworks", json={"name": "Again", "code": "SOC2"}, headers=headers)
    assert dup.status_code == 409

    control = (
        await client.post("/api/v1/controls", json={"name": "Logical access", "code": "CC6.1"}, headers=headers)
    ).json()
    assert control["status"] == "NotStarted"

    mapped = await client.post(
        f"/api/v1/frameworks/{framework['id']}/controls",
        json={"control_id": control["id"], "requirement": "Restrict access", "sequence": 1},
        headers=headers,
    )
    assert mapped.status_code == 201
    assert mapped.json()["control"]["code"] == "CC6.1"

    resp = await client.put(f"/api/v1/frameworks/{framework['id']}", json={"is_active": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    controls = (await client.get(f"/api/v1/frameworks/{framework['id']}/controls", headers=headers)).json()
    assert [c["requirement"] for c in controls] == ["Restrict access"]

    assert (await client.delete(f"/api/v1/frameworks/{framework['id']}", headers=headers)).status_code == 204
    assert (await client.get(f"/api/v1/frameworks/{framework['id']}", headers=headers)).status_code == 404
    listing = (await client.get("/api/v1/frameworks", headers=headers)).json()
    assert listing["total_count"] == 0
    assert listing["items"] == []


@pytest.mark.asyncio
async def test_frameworks_are_isolated_per_tenant(client):
    acme = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    globex = (await client.post("/api/v1/tenants", json={"name": "Globex", "tenant_code": "GLOBEX"})).json()

    for tenant in (acme, globex):
        resp = await client.post("/api/v1/frameworks", json={"name": "SOC 2", "code": "SOC2"}, headers=_headers(tenant["id"]))
        assert resp.status_code == 201
    acme_fw = (await client.get("/api/v1/frameworks", headers=_headers(acme["id"]))).json()["items"][0]

    resp = await client.get(f"/api/v1/frameworks/{acme_fw['id']}", headers=_headers(globex["id"]))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_pagination_totals(client):
    tenant = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    headers = _headers(tenant["id"])
    for i in range(7):
        await client.post("/api/v1/controls", json={"name": f"Control {i}", "code": f"C-{i}"}, headers=headers)

    page = (await client.get("/api/v1/controls?page_number=2&page_size=3", headers=headers)).json()
    assert page["total_count"] == 7
    assert page["total_pages"] == 3
    assert page["page_number"] == 2
    assert len(page["items"]) == 3

    last = (await client.get("/api/v1/controls?page_number=3&page_size=3", headers=headers)).json()
    assert len(last["items"]) == 1

    assert (await client.get("/api/v1/controls?page_size=101", headers=headers)).status_code == 422
    assert (await client.get("/api/v1/controls?page_number=0", headers=headers)).status_code == 422


@pytest.mark.asyncio
async def test_risk_and_task_endpoints(client):
    tenant = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    headers = _headers(tenant["id"], actor="risk-owner")

    resp = await client.post("/api/v1/risks", json={"title": "Ransomware", "likelihood": 4, "impact": 5}, headers=headers)
    assert resp.status_code == 201
    risk = resp.json()
    assert risk["risk_score"] == 20

    bad = await client.post("/api/v1/risks", json={"title": "Bad", "likelihood": 9, "impact": 1}, headers=headers)
    assert bad.status_code == 400
    assert bad.json()["error"]["type"] == "validation_error"

    task = (
        await client.post("/api/v1/tasks", json={"title": "Offline backups", "risk_id": risk["id"]}, headers=headers)
    ).json()
    assert task["status"] == "Open"
    assert task["priority"] == "Medium"

    # Deleting the risk keeps the task but clears the link.
    assert (await client.delete(f"/api/v1/risks/{risk['id']}", headers=headers)).status_code == 204
    task = (await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)).json()
    assert task["risk_id"] is None

    done = await client.post(f"/api/v1/tasks/{task['id']}/complete", headers=headers)
    assert done.status_code == 200
    assert done.json()["status"] == "Completed"
    assert done.json()["completed_at"] is not None


@pytest.mark.asyncio
async def test_vendor_endpoints(client):
    tenant = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    headers = _headers(tenant["id"])

    vendor = (await client.post("/api/v1/vendors", json={"name": "CloudCo"}, headers=headers)).json()
    assert vendor["risk_tier"] == "Medium"

    bad_tier = await client.post("/api/v1/vendors", json={"name": "X", "risk_tier": "Extreme"}, headers=headers)
    assert bad_tier.status_code == 400

    entry = await client.post(
        f"/api/v1/vendors/{vendor['id']}/risks",
        json={"risk_description": "Shared tenancy", "likelihood": 2, "impact": 3},
        headers=headers,
    )
    assert entry.status_code == 201
    assert entry.json()["risk_score"] == 6

    resp = await client.put(f"/api/v1/vendors/{vendor['id']}", json={"risk_tier": "Critical"}, headers=headers)
    assert resp.json()["risk_tier"] == "Critical"


@pytest.mark.asyncio
async def test_evidence_endpoints(client):
    tenant = (await client.post("/api/v1/tenants", json={"name": "Acme", "tenant_code": "ACME"})).json()
    headers = _headers(tenant["id"], actor="owner")
    control = (await client.post("/api/v1/controls", json={"name": "Backups", "code": "BK-1"}, headers=headers)).json()

    evidence = (
        await client.post("/api/v1/evidence", json={"control_id": control["id"], "title": "Restore test"}, headers=headers)
    ).json()
    assert evidence["status"] == "Pending"

    approved = await client.post(f"/api/v1/evidence/{evidence['id']}/approve", headers=_headers(tenant["id"], "auditor"))
    assert approved.json()["status"] == "Approved"
    assert approved.json()["approved_by"] == "auditor"

    history = (await client.get(f"/api/v1/evidence/{evidence['id']}/history", headers=headers)).json()
    assert sorted(h["action"] for h in history) == ["Approved", "Submitted"]

    # Deleting the control takes the evidence with it.
    assert (await client.delete(f"/api/v1/controls/{control['id']}", headers=headers)).status_code == 204
    assert (await client.post(f"/api/v1/evidence/{evidence['id']}/approve", headers=headers)).status_code == 404
