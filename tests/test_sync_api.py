"""
WealthDesk - Sync API Tests

Machine ingestion shares its row semantics with the bulk import.
"""

import pytest

from conftest import make_client

SYNC_HEADERS = {"Authorization": "Bearer test-sync-token"}


def sync_client(code, **extra):
    payload = {"code": code, "name": f"Synced {code}", "mobile": "9111111111", "email": f"{code.lower()}@example.com"}
    payload.update(extra)
    return payload


class TestSyncAuth:

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, client, db_session):
        response = await client.get("/api/sync/clients")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_token_is_401(self, client, db_session):
        response = await client.get("/api/sync/clients", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_user_session_token_is_not_a_sync_token(self, client, admin_headers):
        response = await client.get("/api/sync/clients", headers=admin_headers)
        assert response.status_code == 401


class TestSyncClients:

    @pytest.mark.asyncio
    async def test_push_then_pull(self, client, db_session):
        pushed = await client.post(
            "/api/sync/clients",
            json={"clients": [sync_client("S1"), sync_client("S2"), {"name": "No code"}]},
            headers=SYNC_HEADERS,
        )

        assert pushed.status_code == 200
        body = pushed.json()
        assert body["successCount"] == 2
        assert [e["row"] for e in body["errors"]] == [3]

        pulled = await client.get("/api/sync/clients", headers=SYNC_HEADERS)
        assert pulled.json()["total"] == 2
        assert {c["code"] for c in pulled.json()["clients"]} == {"S1", "S2"}

    @pytest.mark.asyncio
    async def test_existing_codes_are_skipped(self, client, db_session):
        await make_client(db_session, "S1")

        response = await client.post("/api/sync/clients", json={"clients": [sync_client("S1")]}, headers=SYNC_HEADERS)

        assert response.json()["skippedCount"] == 1
        assert response.json()["successCount"] == 0

    @pytest.mark.asyncio
    async def test_missing_array_is_400(self, client, db_session):
        response = await client.post("/api/sync/clients", json={"items": []}, headers=SYNC_HEADERS)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_numbers_do_not_abort(self, client, db_session):
        response = await client.post(
            "/api/sync/clients",
            json={"clients": [sync_client("S5", pincode="NaN"), sync_client("S6", referenceId="Infinity")]},
            headers=SYNC_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["successCount"] == 2
        assert response.json()["errors"] == []


class TestSyncTransactions:

    @pytest.mark.asyncio
    async def test_push_validates_each_row(self, client, db_session):
        await make_client(db_session, "S9")

        response = await client.post(
            "/api/sync/transactions",
            json={"transactions": [
                {"clientCode": "S9", "indicatorName": "Investment", "amount": 1000, "transactionDate": "2026-02-03"},
                {"clientCode": "S9", "indicatorName": "Bonus", "amount": 5},
                {"clientCode": "NOPE", "indicatorName": "Payout", "amount": 5},
                {"clientCode": "S9", "indicatorName": "Payout", "amount": "abc"},
                {"indicatorName": "Payout", "amount": 5},
            ]},
            headers=SYNC_HEADERS,
        )

        body = response.json()
        assert body["successCount"] == 1
        assert [e["row"] for e in body["errors"]] == [2, 3, 4, 5]

        pulled = await client.get(
            "/api/sync/transactions",
            params={"clientCode": "S9", "indicatorName": "investment"},
            headers=SYNC_HEADERS,
        )
        rows = pulled.json()["transactions"]
        assert len(rows) == 1
        assert rows[0]["transactionDate"] == "2026-02-03"
        assert rows[0]["indicatorName"] == "Investment"

    @pytest.mark.asyncio
    async def test_pull_rejects_unknown_indicator(self, client, db_session):
        response = await client.get(
            "/api/sync/transactions",
            params={"indicatorName": "Dividend"},
            headers=SYNC_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
