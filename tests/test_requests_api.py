"""
WealthDesk - Client Request API Tests
"""

import pytest
from sqlalchemy import select

from app.models import Client
from app.services.request_service import ADMIN_CLIENT_CODE

from conftest import LEADER_ROLE_ID, auth_headers, make_user


class TestInvestmentRequests:

    @pytest.mark.asyncio
    async def test_client_creates_for_own_account(self, client, team):
        response = await client.post(
            "/api/requests/investment",
            json={"amount": 2500, "investmentRemark": "SIP top-up"},
            headers=team["member_headers"],
        )

        assert response.status_code == 201
        body = response.json()
        assert body["clientId"] == team["member"].client_id
        assert body["status"] == "pending"
        assert body["transactionId"].startswith("TXN")
        assert body["transactionNo"].startswith("INV")
        assert body["client"]["code"] == "C1"

    @pytest.mark.asyncio
    async def test_receipt_is_emailed(self, client, team, db_session, mail_outbox):
        member = team["member"]
        member.email = "c1@example.com"
        await db_session.commit()

        response = await client.post(
            "/api/requests/investment",
            json={"amount": 100, "transactionNo": "INV-42"},
            headers=team["member_headers"],
        )

        assert response.status_code == 201
        assert mail_outbox[0].subject == "Investment Receipt - INV-42"

    @pytest.mark.asyncio
    async def test_admin_without_client_uses_shared_account(self, client, admin_headers, db_session):
        first = await client.post("/api/requests/investment", json={"amount": 10}, headers=admin_headers)
        second = await client.post("/api/requests/referral", json={"refereeName": "Ravi", "refereePhone": "99"}, headers=admin_headers)

        assert first.status_code == 201
        assert second.status_code == 201
        shared = (await db_session.execute(select(Client).where(Client.code == ADMIN_CLIENT_CODE))).scalars().all()
        assert len(shared) == 1
        assert first.json()["clientId"] == shared[0].client_id == second.json()["clientId"]

    @pytest.mark.asyncio
    async def test_non_admin_without_client_is_400(self, client, db_session):
        orphan = await make_user(db_session, "orphan@example.com", LEADER_ROLE_ID)

        response = await client.post(
            "/api/requests/withdrawal",
            json={"amount": 10},
            headers=auth_headers(orphan, "Leader"),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, client, team):
        response = await client.post("/api/requests/investment", json={"amount": 0}, headers=team["member_headers"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_listing_is_scoped(self, client, team):
        for key in ("member_headers", "outsider_headers"):
            await client.post("/api/requests/withdrawal", json={"amount": 50, "reason": "fees"}, headers=team[key])

        leader_view = await client.get("/api/requests/withdrawal", headers=team["leader_headers"])
        outsider_view = await client.get("/api/requests/withdrawal", headers=team["outsider_headers"])

        assert [r["clientId"] for r in leader_view.json()] == [team["member"].client_id]
        assert [r["clientId"] for r in outsider_view.json()] == [team["outsider"].client_id]
        assert outsider_view.json()[0]["withdrawalRemark"] == "fees"


class TestReferralRequests:

    @pytest.mark.asyncio
    async def test_blank_referee_is_400(self, client, team):
        response = await client.post(
            "/api/requests/referral",
            json={"refereeName": "   ", "refereePhone": "9000000000"},
            headers=team["member_headers"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, team):
        created = await client.post(
            "/api/requests/referral",
            json={"refereeName": "Meera", "refereePhone": "9000000000"},
            headers=team["member_headers"],
        )
        listed = await client.get("/api/requests/referral", headers=team["member_headers"])

        assert created.status_code == 201
        assert [r["name"] for r in listed.json()] == ["Meera"]


class TestStatusReview:

    @pytest.mark.asyncio
    async def test_admin_approves(self, client, team, admin_headers):
        created = await client.post("/api/requests/investment", json={"amount": 500}, headers=team["member_headers"])
        request_id = created.json()["clientInvestmentRequestId"]

        response = await client.patch(
            f"/api/requests/investment/{request_id}/status",
            json={"status": "approved"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_review(self, client, team):
        response = await client.patch(
            "/api/requests/withdrawal/1/status",
            json={"status": "approved"},
            headers=team["leader_headers"],
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_request_is_404(self, client, admin_headers):
        response = await client.patch(
            "/api/requests/withdrawal/999/status",
            json={"status": "rejected"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_status_is_400(self, client, admin_headers):
        response = await client.patch(
            "/api/requests/investment/1/status",
            json={"status": "maybe"},
            headers=admin_headers,
        )
        assert response.status_code == 400
