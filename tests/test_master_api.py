"""
WealthDesk - Master Data API Tests
"""

import pytest

from app.utils.security import verify_password
from app.models import User


class TestRoles:

    @pytest.mark.asyncio
    async def test_seeded_roles(self, client, admin_headers):
        response = await client.get("/api/mst/roles", headers=admin_headers)
        assert [r["name"] for r in response.json()] == ["Admin", "Leader", "Client"]

    @pytest.mark.asyncio
    async def test_role_crud(self, client, admin_headers):
        created = await client.post("/api/mst/roles", json={"name": "Auditor"}, headers=admin_headers)
        role_id = created.json()["roleId"]

        updated = await client.put(f"/api/mst/roles/{role_id}", json={"name": "Reviewer"}, headers=admin_headers)
        deleted = await client.delete(f"/api/mst/roles/{role_id}", headers=admin_headers)
        fetched = await client.get(f"/api/mst/roles/{role_id}", headers=admin_headers)
        listed = await client.get("/api/mst/roles", headers=admin_headers)

        assert created.status_code == 201
        assert updated.json()["name"] == "Reviewer"
        assert deleted.status_code == 200
        assert fetched.status_code == 404
        assert "Reviewer" not in [r["name"] for r in listed.json()]


class TestUsers:

    @pytest.mark.asyncio
    async def test_create_hashes_password(self, client, admin_headers, db_session):
        response = await client.post(
            "/api/mst/users",
            json={"userName": "ops", "password": "secret1", "email": "ops@example.com", "roleId": 2},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert "password" not in response.json()
        user = await db_session.get(User, response.json()["userId"])
        assert verify_password("secret1", user.password)

    @pytest.mark.asyncio
    async def test_duplicate_email_is_409(self, client, admin_headers):
        payload = {"userName": "ops", "password": "secret1", "email": "admin@example.com", "roleId": 2}
        response = await client.post("/api/mst/users", json=payload, headers=admin_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_role_is_rejected(self, client, admin_headers):
        payload = {"userName": "ops", "password": "secret1", "roleId": 99}
        response = await client.post("/api/mst/users", json=payload, headers=admin_headers)
        assert response.status_code == 400


class TestBranches:

    @pytest.mark.asyncio
    async def test_reads_need_login_only(self, client, admin_headers, team):
        await client.post("/api/mst/branches", json={"name": "Pune", "city": "Pune"}, headers=admin_headers)

        listed = await client.get("/api/mst/branches", headers=team["member_headers"])
        denied = await client.post("/api/mst/branches", json={"name": "Goa"}, headers=team["member_headers"])

        assert [b["name"] for b in listed.json()] == ["Pune"]
        assert denied.status_code == 403


class TestClients:

    @pytest.mark.asyncio
    async def test_list_is_scoped(self, client, team, admin_headers):
        admin_view = await client.get("/api/mst/clients", headers=admin_headers)
        leader_view = await client.get("/api/mst/clients", headers=team["leader_headers"])
        member_view = await client.get("/api/mst/clients", headers=team["member_headers"])

        assert admin_view.json()["total"] == 3
        assert {c["code"] for c in leader_view.json()["clients"]} == {"L1", "C1"}
        assert [c["code"] for c in member_view.json()["clients"]] == ["C1"]

    @pytest.mark.asyncio
    async def test_get_out_of_scope_is_404(self, client, team):
        response = await client.get(f"/api/mst/clients/{team['outsider'].client_id}", headers=team["member_headers"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_duplicate_code_is_409(self, client, team, admin_headers):
        response = await client.post("/api/mst/clients", json={"code": "C1", "name": "Again"}, headers=admin_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_reference_must_exist(self, client, admin_headers):
        response = await client.post(
            "/api/mst/clients",
            json={"code": "N1", "name": "New", "referenceId": 12345},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_self_reference_rejected(self, client, team, admin_headers):
        member_id = team["member"].client_id
        response = await client.put(
            f"/api/mst/clients/{member_id}",
            json={"referenceId": member_id},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_and_soft_delete(self, client, team, admin_headers):
        outsider_id = team["outsider"].client_id
        updated = await client.put(
            f"/api/mst/clients/{outsider_id}",
            json={"city": "Nagpur", "referenceId": team["leader_client"].client_id},
            headers=admin_headers,
        )
        deleted = await client.delete(f"/api/mst/clients/{outsider_id}", headers=admin_headers)

        assert updated.json()["city"] == "Nagpur"
        assert deleted.status_code == 200
        leader_view = await client.get("/api/mst/clients", headers=team["leader_headers"])
        assert "C2" not in {c["code"] for c in leader_view.json()["clients"]}


class TestLookups:

    @pytest.mark.asyncio
    async def test_indicators_and_modules(self, client, team):
        indicators = await client.get("/api/mst/indicators", headers=team["member_headers"])
        modules = await client.get("/api/mst/modules", headers=team["member_headers"])
        rights = await client.get("/api/mst/role-rights/2", headers=team["member_headers"])

        assert [i["name"] for i in indicators.json()] == ["Investment", "Payout", "Withdrawal", "Closure"]
        assert len(modules.json()) == 7
        assert len(rights.json()) == 5


class TestServiceInfo:

    @pytest.mark.asyncio
    async def test_health_and_api_info(self, client):
        health = await client.get("/health")
        info = await client.get("/api")

        assert health.json()["status"] == "healthy"
        assert info.json()["endpoints"]["master"] == "/api/mst"
