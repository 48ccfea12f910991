"""
HTTP contract tests for the auth, progress and payment routers.
"""
import os

import pytest

from app.config.settings import PROOF_UPLOAD_DIR
from app.services.errors import StoreError
from app.services.store import PAYMENTS
from conftest import ADMIN_HEADERS

PROOF_FILE = {"proof": ("transfer.png", b"\x89PNG fake image", "image/png")}


def proof_count() -> int:
    return len(os.listdir(PROOF_UPLOAD_DIR)) if PROOF_UPLOAD_DIR.exists() else 0


async def submit(client, headers, **form):
    data = {"packageId": "starter", "method": "bank_transfer", "amount": "25000", "points": "50"}
    data.update(form)
    return await client.post("/api/payments", data=data, files=PROOF_FILE, headers=headers)


class TestAuth:

    @pytest.mark.asyncio
    async def test_register_login_me(self, client, auth_headers, notifier):
        resp = await client.get("/api/auth/me", headers=auth_headers)

        assert resp.status_code == 200
        profile = resp.json()["data"]
        assert profile["email"] == "budi@example.com"
        assert profile["freeTrials"] == 5
        assert profile["points"] == 0
        assert "passwordHash" not in profile

        await notifier.drain()
        assert any(m["to"] == "admin@example.com" and "https://wa.me/6281234567890" in m["html"]
                   for m in notifier.sent)

    @pytest.mark.asyncio
    async def test_duplicate_email_and_phone(self, client, auth_headers):
        resp = await client.post("/api/auth/register", json={
            "name": "Other", "email": "budi@example.com", "password": "rahasia123", "phone": "081299998888",
        })
        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "DuplicateUser"

        resp = await client.post("/api/auth/register", json={
            "name": "Other", "email": "other@example.com", "password": "rahasia123", "phone": "+62 812-3456-7890",
        })
        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "DuplicateUser"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"name": "A", "email": "a@example.com", "password": "short", "phone": "081234567890"},
        {"name": "A", "email": "not-an-email", "password": "rahasia123", "phone": "081234567890"},
        {"name": "A", "email": "a@example.com", "password": "rahasia123", "phone": "12345"},
        {"name": "", "email": "a@example.com", "password": "rahasia123", "phone": "081234567890"},
        {"name": "A", "email": "a@example.com", "password": "rahasia123"},
    ])
    async def test_register_validation(self, client, payload):
        resp = await client.post("/api/auth/register", json=payload)

        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "InvalidInput"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, auth_headers):
        resp = await client.post("/api/auth/login", json={"email": "budi@example.com", "password": "wrong-pass"})
        assert resp.status_code == 401

        resp = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "rahasia123"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_token_required(self, client):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["code"] == 401

        resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 403
        assert resp.json() == {"code": 403, "message": "Token 无效", "data": None}


class TestProgress:

    @pytest.mark.asyncio
    async def test_trials_run_out(self, client, auth_headers):
        body = {"languageId": "es", "difficultyId": "easy", "level": 1, "score": 10}
        for _ in range(5):
            resp = await client.post("/api/progress", json=body, headers=auth_headers)
            assert resp.status_code == 200

        resp = await client.post("/api/progress", json=body, headers=auth_headers)
        assert resp.status_code == 403
        assert resp.json()["data"]["error"] == "InsufficientBalance"

        resp = await client.get("/api/progress", headers=auth_headers)
        assert resp.json()["data"] == {"es_easy": {"level": 1, "score": 50}}

        resp = await client.get("/api/progress/balance", headers=auth_headers)
        assert resp.json()["data"] == {"freeTrials": 0, "points": 0}

    @pytest.mark.asyncio
    async def test_negative_score_rejected(self, client, auth_headers):
        body = {"languageId": 1, "difficultyId": 2, "level": 1, "score": -5}
        resp = await client.post("/api/progress", json=body, headers=auth_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == 400
        assert body["data"]["error"] == "InvalidInput"


class TestPayments:

    @pytest.mark.asyncio
    async def test_purchase_then_approve(self, client, auth_headers):
        resp = await submit(client, auth_headers)
        assert resp.status_code == 200, resp.text
        payment = resp.json()["data"]
        assert payment["status"] == "pending"
        assert payment["proofImage"].startswith("/uploads/proofs/")

        resp = await client.get("/api/payments/pending", headers=ADMIN_HEADERS)
        assert [p["id"] for p in resp.json()["data"]] == [payment["id"]]

        resp = await client.post(f"/api/payments/{payment['id']}/approve", headers=ADMIN_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "approved"

        resp = await client.post(f"/api/payments/{payment['id']}/approve", headers=ADMIN_HEADERS)
        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "AlreadyProcessed"

        me = (await client.get("/api/auth/me", headers=auth_headers)).json()["data"]
        assert me["points"] == 50

        mine = (await client.get("/api/payments/user", headers=auth_headers)).json()["data"]
        assert [p["status"] for p in mine] == ["approved"]

    @pytest.mark.asyncio
    async def test_legacy_submit_route(self, client, auth_headers):
        resp = await client.post(
            "/api/payment/submit",
            data={"packageType": "full", "method": "qris", "amount": "49000", "points": "2100"},
            files=PROOF_FILE,
            headers=auth_headers,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["packageName"] == "Full Access 7-in-1 (2,100 pts)"

    @pytest.mark.asyncio
    async def test_tampered_amount_keeps_no_upload(self, client, auth_headers):
        before = proof_count()

        resp = await submit(client, auth_headers, amount="20000")

        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "InvalidPackage"
        assert proof_count() == before

    @pytest.mark.asyncio
    async def test_missing_proof(self, client, auth_headers):
        resp = await client.post(
            "/api/payments",
            data={"packageId": "starter", "method": "qris", "amount": "25000", "points": "50"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "MissingProof"

    @pytest.mark.asyncio
    async def test_reject_with_reason(self, client, auth_headers):
        payment = (await submit(client, auth_headers)).json()["data"]

        resp = await client.post(f"/api/payments/{payment['id']}/reject",
                                 json={"reason": "Nominal tidak sesuai"}, headers=ADMIN_HEADERS)

        assert resp.status_code == 200
        assert resp.json()["data"]["rejectReason"] == "Nominal tidak sesuai"
        me = (await client.get("/api/auth/me", headers=auth_headers)).json()["data"]
        assert me["points"] == 0

    @pytest.mark.asyncio
    async def test_reject_without_body(self, client, auth_headers):
        payment = (await submit(client, auth_headers)).json()["data"]

        resp = await client.post(f"/api/payments/{payment['id']}/reject", headers=ADMIN_HEADERS)

        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_admin_routes(self, client, auth_headers):
        assert (await client.get("/api/payments/all")).status_code == 403
        assert (await client.post("/api/payments/x/approve", headers={"X-Admin-Key": "nope"})).status_code == 403

        resp = await client.post("/api/payments/missing/approve", headers=ADMIN_HEADERS)
        assert resp.status_code == 404
        assert resp.json()["data"]["error"] == "NotFound"

        first = (await submit(client, auth_headers)).json()["data"]
        second = (await submit(client, auth_headers, packageId="regular", amount="45000", points="100")).json()["data"]
        resp = await client.get("/api/payments/all", headers=ADMIN_HEADERS)
        ids = [p["id"] for p in resp.json()["data"]]
        assert set(ids) == {first["id"], second["id"]}

    @pytest.mark.asyncio
    async def test_non_numeric_amount_is_invalid_package(self, client, auth_headers):
        before = proof_count()

        resp = await submit(client, auth_headers, amount="abc")

        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "InvalidPackage"
        assert proof_count() == before

    @pytest.mark.asyncio
    async def test_missing_proof_checked_before_amount(self, client, auth_headers):
        resp = await client.post(
            "/api/payments",
            data={"packageId": "starter", "method": "qris", "amount": "abc", "points": "50"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["data"]["error"] == "MissingProof"

    @pytest.mark.asyncio
    async def test_store_failure_removes_upload(self, client, auth_headers, store, monkeypatch):
        original_commit = store.commit

        async def commit(changes):
            if PAYMENTS in changes:
                raise StoreError("disk full")
            await original_commit(changes)

        monkeypatch.setattr(store, "commit", commit)
        before = proof_count()

        resp = await submit(client, auth_headers)

        assert resp.status_code == 500
        assert resp.json() == {"code": 500, "message": "服务器内部错误", "data": None}
        assert proof_count() == before
        assert await store.get(PAYMENTS) == []

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client):
        resp = await client.get("/api/nothing-here")

        assert resp.status_code == 404
        assert resp.json()["code"] == 404
