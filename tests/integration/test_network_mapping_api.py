"""
Integration tests for the network mapping HTTP API: path computation, zone
resolution, coverage checks, request validation and tenant/scope guards.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from backend.app.core.database import get_db
from backend.app.core.security import Role, create_access_token
from backend.app.main import app
from tests.data.network_fixtures import seed_line, seed_offers, seed_zones

BASE = "/api/v1/network"


@pytest.fixture
async def auth_client(db_session):
    """Client that validates real bearer tokens; only the database is overridden."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def _headers(role=Role.OPERATOR, tenant_id="t1", **claims):
    token = create_access_token({"sub": "alice", "role": role, "tenant_id": tenant_id, **claims})
    return {"Authorization": f"Bearer {token}"}


class TestComputePath:
    @pytest.mark.asyncio
    async def test_found(self, client: AsyncClient, db_session):
        await seed_line(db_session)

        resp = await client.post(
            f"{BASE}/t1/paths/compute",
            json={"source_node_id": "N1", "target_node_id": "N3", "max_hops": 5},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["found"] is True
        assert data["node_ids"] == ["N1", "N2", "N3"]
        assert data["link_ids"] == ["L1", "L2"]
        assert [h["seq_no"] for h in data["hops"]] == [1, 2]
        assert data["hops"][0]["from_node_id"] == "N1"
        assert data["total_cost"] > data["total_distance_m"] > 0

    @pytest.mark.asyncio
    async def test_not_found_is_not_an_error(self, client: AsyncClient, db_session):
        await seed_line(db_session)

        resp = await client.post(
            f"{BASE}/t1/paths/compute",
            json={"source_node_id": "N1", "target_node_id": "N3", "exclude_link_ids": ["L2"]},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["found"] is False
        assert data["node_ids"] == []
        assert data["link_ids"] == []
        assert data["hops"] == []
        assert data["total_cost"] is None

    @pytest.mark.asyncio
    async def test_unknown_source_is_rejected(self, client: AsyncClient, db_session):
        await seed_line(db_session)

        resp = await client.post(f"{BASE}/t1/paths/compute", json={"source_node_id": "N9", "target_node_id": "N3"})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "source_node_id not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"source_node_id": "N1", "target_node_id": "N3", "max_hops": -1},
        {"source_node_id": "N1", "target_node_id": "N3", "max_hops": 65},
        {"source_node_id": "", "target_node_id": "N3"},
        {"source_node_id": "N1", "target_node_id": "N3", "max_utilization_pct": -5},
        {"target_node_id": "N3"},
        {"source_node_id": "N3", "target_node_id": "N3"},
    ])
    async def test_invalid_requests(self, client: AsyncClient, db_session, body):
        await seed_line(db_session)

        resp = await client.post(f"{BASE}/t1/paths/compute", json=body)
        assert resp.status_code == 422


class TestZonesAndCoverage:
    @pytest.mark.asyncio
    async def test_resolve_most_specific_priority(self, client: AsyncClient, db_session):
        await seed_zones(db_session)

        resp = await client.post(f"{BASE}/t1/zones/resolve", json={"lat": 5.0, "lng": 5.0})
        assert resp.status_code == 200
        assert resp.json() == {"zone": {"id": "Z2", "name": "Downtown", "priority": 1}}

    @pytest.mark.asyncio
    async def test_resolve_outside_all_zones(self, client: AsyncClient, db_session):
        await seed_zones(db_session)

        resp = await client.post(f"{BASE}/t1/zones/resolve", json={"lat": 45.0, "lng": 45.0})
        assert resp.status_code == 200
        assert resp.json() == {"zone": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("point", [{"lat": 90.5, "lng": 0}, {"lat": 0, "lng": -181}, {"lat": 0}])
    async def test_invalid_coordinates(self, client: AsyncClient, point):
        for path in ("zones/resolve", "coverage/check"):
            resp = await client.post(f"{BASE}/t1/{path}", json=point)
            assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_coverage_offers(self, client: AsyncClient, db_session):
        await seed_zones(db_session)
        await seed_offers(db_session)

        resp = await client.post(f"{BASE}/t1/coverage/check", json={"lat": 5.0, "lng": 5.0})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["zone"]["id"] == "Z2"
        assert [o["package_id"] for o in data["offers"]] == ["P2", "P1"]
        fiber_500, fiber_100 = data["offers"]
        assert fiber_500["price_monthly"] == 45.0
        assert fiber_500["effective_price_monthly"] == 45.0
        assert fiber_500["effective_price_yearly"] == 500.0
        assert fiber_100["price_monthly"] is None
        assert fiber_100["effective_price_monthly"] == 30.0
        assert fiber_100["features"] == ["static-ip"]

    @pytest.mark.asyncio
    async def test_coverage_outside_all_zones(self, client: AsyncClient, db_session):
        await seed_zones(db_session)
        await seed_offers(db_session)

        resp = await client.post(f"{BASE}/t1/coverage/check", json={"lat": -45.0, "lng": 100.0})
        assert resp.status_code == 200
        assert resp.json() == {"zone": None, "offers": []}


class TestAccessControl:
    @pytest.mark.asyncio
    async def test_missing_token(self, auth_client: AsyncClient):
        resp = await auth_client.post(f"{BASE}/t1/zones/resolve", json={"lat": 5.0, "lng": 5.0})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, auth_client: AsyncClient):
        resp = await auth_client.post(
            f"{BASE}/t1/zones/resolve",
            json={"lat": 5.0, "lng": 5.0},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_operator_of_tenant(self, auth_client: AsyncClient, db_session):
        await seed_zones(db_session)

        resp = await auth_client.post(f"{BASE}/t1/zones/resolve", json={"lat": 5.0, "lng": 5.0}, headers=_headers())
        assert resp.status_code == 200
        assert resp.json()["zone"]["id"] == "Z2"

    @pytest.mark.asyncio
    async def test_token_for_other_tenant_is_forbidden(self, auth_client: AsyncClient, db_session):
        await seed_zones(db_session)

        resp = await auth_client.post(
            f"{BASE}/t1/zones/resolve", json={"lat": 5.0, "lng": 5.0}, headers=_headers(tenant_id="t2")
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_crosses_tenants(self, auth_client: AsyncClient, db_session):
        await seed_zones(db_session)

        resp = await auth_client.post(
            f"{BASE}/t1/zones/resolve", json={"lat": 5.0, "lng": 5.0}, headers=_headers(role=Role.ADMIN, tenant_id="t2")
        )
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_sales_cannot_compute_paths(self, auth_client: AsyncClient, db_session):
        await seed_line(db_session)
        headers = _headers(role=Role.SALES)

        resp = await auth_client.post(
            f"{BASE}/t1/paths/compute", json={"source_node_id": "N1", "target_node_id": "N3"}, headers=headers
        )
        assert resp.status_code == 403

        resp = await auth_client.post(f"{BASE}/t1/coverage/check", json={"lat": 5.0, "lng": 5.0}, headers=headers)
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_explicit_scopes_override_role(self, auth_client: AsyncClient, db_session):
        await seed_line(db_session)

        resp = await auth_client.post(
            f"{BASE}/t1/paths/compute",
            json={"source_node_id": "N1", "target_node_id": "N3"},
            headers=_headers(role=Role.OPERATOR, scopes=["coverage:read"]),
        )
        assert resp.status_code == 403


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Correlation-ID": "corr-123"})
        assert resp.headers["X-Correlation-ID"] == "corr-123"
        assert resp.headers["X-Event-ID"]

    @pytest.mark.asyncio
    async def test_ready_reports_path_engine(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "ok"
        assert data["path_engine"]["max_hops_limit"] == 64

    @pytest.mark.asyncio
    async def test_root_lists_endpoints(self, client: AsyncClient):
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json()["endpoints"]["compute_path"] == "/api/v1/network/{tenant_id}/paths/compute"
