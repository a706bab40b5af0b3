"""
HTTP API tests.

The app runs on the in-memory test database through a get_db override;
the lifespan (settings seeding on the production database) is not run.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from advisy.db import get_db
from advisy.main import app
from advisy.models import COLLABORATOR_TYPE, Client, DocumentScan, DocumentScanResult

HEADERS = {"X-Tenant-Id": "tenant-1", "X-User-Id": "user-1", "X-Active-Role": "agent"}
OTHER_TENANT = {"X-Tenant-Id": "tenant-2", "X-User-Id": "user-2", "X-Active-Role": "agent"}


@pytest_asyncio.fixture
async def api(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Health & context ──────────────────────────────────────


@pytest.mark.asyncio
async def test_health(api):
    response = await api.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "advisy"}

    response = await api.get("/api/health/ready")
    assert response.json()["status"] == "ready"

    response = await api.get("/api/health/live")
    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_missing_tenant_is_rejected(api, monkeypatch):
    monkeypatch.setattr("advisy.api.dependencies.settings.default_tenant_id", None)
    response = await api.post("/api/commissions/allocate", json={"total_amount": 100})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_role_is_rejected(api):
    response = await api.post(
        "/api/commissions/allocate",
        json={"total_amount": 100},
        headers={**HEADERS, "X-Active-Role": "emperor"},
    )
    assert response.status_code == 400


# ── Commissions ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_allocate_seeds_from_policy(api, team, policy):
    response = await api.post(
        "/api/commissions/allocate",
        json={"total_amount": 1000, "policy_id": policy.id},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert [(p["agent_id"], p["rate"], p["amount"]) for p in body["parts"]] == [
        (team["julie"].id, 40.0, 400.0),
        (team["marc"].id, 10.0, 100.0),
    ]
    assert body["parts"][1]["agent_name"] == "Marc Dubois (Manager)"
    assert body["remaining_rate"] == 50.0
    assert body["rejected"] == []


@pytest.mark.asyncio
async def test_allocate_reports_rejections(api, team):
    response = await api.post(
        "/api/commissions/allocate",
        json={
            "total_amount": 1000,
            "category": "auto",
            "parts": [{"agent_id": team["paul"].id}, {"agent_id": 999, "rate": 10}],
        },
        headers=HEADERS,
    )

    assert response.json()["rejected"] == [
        {"agent_id": team["paul"].id, "reason": "no_rate"},
        {"agent_id": 999, "reason": "unknown_agent"},
    ]


@pytest.mark.asyncio
async def test_create_and_update_commission(api, team, policy):
    response = await api.post(
        "/api/commissions",
        json={
            "policy_id": policy.id,
            "amount": 1200,
            "date": "2025-04-15",
            "parts": [
                {"agent_id": team["julie"].id, "rate": 40},
                {"agent_id": team["marc"].id, "rate": 10},
            ],
        },
        headers=HEADERS,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["commission_date"] == "2025-04-15"
    assert [p["amount"] for p in body["parts"]] == [480.0, 120.0]

    response = await api.patch(
        f"/api/commissions/{body['id']}/amount",
        json={"amount": 600},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert [p["amount"] for p in response.json()["parts"]] == [240.0, 60.0]


@pytest.mark.asyncio
async def test_create_commission_errors(api, team, policy):
    over = await api.post(
        "/api/commissions",
        json={
            "policy_id": policy.id,
            "amount": 1000,
            "parts": [
                {"agent_id": team["julie"].id, "rate": 60},
                {"agent_id": team["paul"].id, "rate": 50},
            ],
        },
        headers=HEADERS,
    )
    missing = await api.post(
        "/api/commissions",
        json={"policy_id": 404, "amount": 1000, "parts": []},
        headers=HEADERS,
    )
    unknown = await api.patch("/api/commissions/404/amount", json={"amount": 10}, headers=HEADERS)

    assert over.status_code == 422
    assert missing.status_code == 404
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_commissions_are_scoped_to_tenant(api, team, policy):
    created = await api.post(
        "/api/commissions",
        json={"policy_id": policy.id, "amount": 1000, "parts": [{"agent_id": team["julie"].id, "rate": 40}]},
        headers=HEADERS,
    )
    commission_id = created.json()["id"]

    patched = await api.patch(f"/api/commissions/{commission_id}/amount", json={"amount": 1}, headers=OTHER_TENANT)
    on_foreign_policy = await api.post(
        "/api/commissions",
        json={"policy_id": policy.id, "amount": 1000, "parts": []},
        headers=OTHER_TENANT,
    )
    preview = await api.post(
        "/api/commissions/allocate",
        json={"total_amount": 1000, "policy_id": policy.id},
        headers=OTHER_TENANT,
    )

    assert patched.status_code == 404
    assert on_foreign_policy.status_code == 404
    assert preview.status_code == 404


@pytest.mark.asyncio
async def test_commission_part_outside_roster(api, db_session, team, policy):
    outsider = Client(tenant_id="tenant-2", type_adresse=COLLABORATOR_TYPE, first_name="Zoe", commission_rate=30)
    db_session.add(outsider)
    await db_session.commit()

    response = await api.post(
        "/api/commissions",
        json={"policy_id": policy.id, "amount": 1000, "parts": [{"agent_id": outsider.id, "rate": 30}]},
        headers=HEADERS,
    )

    assert response.status_code == 422


# ── Contracts ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reconcile(api, catalog, client_record):
    response = await api.post(
        "/api/contracts/reconcile",
        json={
            "client_id": client_record.id,
            "new_products": [
                {"company": "CSS", "product_name": "LAMal Standard", "premium_monthly": 120.5},
                {"company": " css ", "product_name": "myFlex Economy", "premium_monthly": 45.0},
            ],
            "old_products": [{"company": "AXA", "product_name": "SmartFlex 3a"}],
            "termination": True,
        },
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["created_count"] == 2
    assert body["skipped_count"] == 0
    old, new = body["created"]
    assert old["status"] == "resilie"
    assert new["premium_monthly"] == 165.5
    assert new["premium_yearly"] == 1986.0
    assert new["product_type"] == "multi"


@pytest.mark.asyncio
async def test_create_contract(api, catalog, client_record):
    response = await api.post(
        "/api/contracts",
        json={
            "client_id": client_record.id,
            "product_id": catalog["lamal"].id,
            "start_date": "2025-01-01",
            "lamal_amount": 300,
            "lca_amount": 50.5,
        },
        headers=HEADERS,
    )

    assert response.status_code == 201
    assert response.json()["notes"] == "LAMal: 300 CHF, LCA: 50.5 CHF"

    missing = await api.post(
        "/api/contracts",
        json={"client_id": client_record.id, "product_id": 404, "start_date": "2025-01-01"},
        headers=HEADERS,
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_contracts_are_scoped_to_tenant(api, catalog, client_record):
    reconciled = await api.post(
        "/api/contracts/reconcile",
        json={
            "client_id": client_record.id,
            "new_products": [{"company": "CSS", "product_name": "LAMal Standard"}],
        },
        headers=OTHER_TENANT,
    )
    manual = await api.post(
        "/api/contracts",
        json={"client_id": client_record.id, "product_id": catalog["lamal"].id, "start_date": "2025-01-01"},
        headers=OTHER_TENANT,
    )
    unknown_client = await api.post(
        "/api/contracts/reconcile",
        json={"client_id": 404, "new_products": [{"company": "CSS", "product_name": "LAMal Standard"}]},
        headers=HEADERS,
    )

    assert reconciled.status_code == 404
    assert manual.status_code == 404
    assert unknown_client.status_code == 404


# ── Scans ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_validate_scan(api, db_session, catalog):
    scan = DocumentScan(tenant_id="tenant-1", original_file_key="scans/a.pdf", original_file_name="a.pdf")
    db_session.add(scan)
    await db_session.flush()
    db_session.add_all([
        DocumentScanResult(scan_id=scan.id, field_name="nom", field_category="client", extracted_value="Keller"),
        DocumentScanResult(scan_id=scan.id, field_name="prenom", field_category="client", extracted_value="Anna"),
    ])
    await db_session.commit()

    response = await api.post(
        f"/api/scans/{scan.id}/validate",
        json={"edited_values": {"prenom": "Anne"}},
        headers=HEADERS,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["created_items"] == ["Client", "Document", "Suivi"]
    assert body["document_id"] is not None

    again = await api.post(f"/api/scans/{scan.id}/validate", json={}, headers=HEADERS)
    missing = await api.post("/api/scans/404/validate", json={}, headers=HEADERS)

    assert again.status_code == 409
    assert missing.status_code == 404
