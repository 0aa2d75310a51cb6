"""
Integration tests for the Receipt Verifier HTTP endpoints.
"""
import io
import json
from decimal import Decimal

import httpx
import pytest

from verifier.config import settings
from verifier.dependencies import get_ocr_client
from verifier.main import app
from verifier.models import FailedVerificationModel, ReceiverAccountModel
from verifier.pipeline.ocr import OcrClient

VERIFY_BODY = {"bankType": "CBE", "reference": "FT1234", "suffix": "5017", "senderId": "s1"}


@pytest.fixture()
def auth():
    return {"API-Key": settings.API_KEY}


@pytest.fixture()
def merchant_account(db):
    db.add(ReceiverAccountModel(bank_type="CBE", account_number="1000352945017", account_name="Merchant Trading PLC"))
    db.commit()


@pytest.fixture()
def ocr_answer(api_client):
    """Makes the OCR collaborator answer with the given JSON content."""

    def install(content):
        completion = {"choices": [{"message": {"content": json.dumps(content)}}]}
        client = OcrClient(
            api_key="k-123",
            url="https://ocr.test/v1/chat/completions",
            model="pixtral-12b-2409",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=completion)),
        )
        app.dependency_overrides[get_ocr_client] = lambda: client

    return install


class TestService:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestApiKey:
    def test_missing_key(self, api_client):
        resp = api_client.post("/api/verify-receipt", json=VERIFY_BODY)
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Invalid or missing API-Key"}

    def test_wrong_key(self, api_client):
        resp = api_client.post("/api/verify-receipt", json=VERIFY_BODY, headers={"API-Key": "nope"})
        assert resp.status_code == 401

    def test_protects_failed_list(self, api_client):
        assert api_client.get("/api/verify-receipt/failed").status_code == 401

    def test_direct_lookup_is_open(self, api_client):
        resp = api_client.get("/api/verify/cbe", params={"reference": "FT1234", "accountSuffix": "5017"})
        assert resp.status_code == 200


class TestVerifyReceipt:
    def test_success(self, api_client, auth, merchant_account):
        resp = api_client.post("/api/verify-receipt", json=VERIFY_BODY, headers=auth)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Verification successful and recorded"}

    def test_repeat_is_400(self, api_client, auth, merchant_account):
        api_client.post("/api/verify-receipt", json=VERIFY_BODY, headers=auth)
        resp = api_client.post("/api/verify-receipt", json=VERIFY_BODY, headers=auth)
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "message": "Reference already processed"}

    def test_provider_tag_alias(self, api_client, auth):
        body = {"providerTag": "cbe", "reference": "FT1234", "suffix": "5017", "senderId": "s1"}
        resp = api_client.post("/api/verify-receipt", json=body, headers=auth)
        assert resp.status_code == 200

    def test_unsupported_bank(self, api_client, auth):
        resp = api_client.post("/api/verify-receipt", json={**VERIFY_BODY, "bankType": "paypal"}, headers=auth)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Unsupported bank type: PAYPAL"

    @pytest.mark.parametrize("missing", ["bankType", "reference", "senderId"])
    def test_required_fields(self, api_client, auth, missing):
        body = {k: v for k, v in VERIFY_BODY.items() if k != missing}
        resp = api_client.post("/api/verify-receipt", json=body, headers=auth)
        assert resp.status_code == 422

    @pytest.mark.parametrize("blank", ["reference", "senderId"])
    def test_whitespace_only_fields(self, api_client, auth, blank):
        resp = api_client.post("/api/verify-receipt", json={**VERIFY_BODY, blank: "   "}, headers=auth)
        assert resp.status_code == 422


class TestScreenshot:
    def _upload(self, api_client, auth, data=None):
        return api_client.post(
            "/api/verify-receipt/upload-screenshot",
            files={"file": ("receipt.png", io.BytesIO(b"\x89PNG fake"), "image/png")},
            data=data if data is not None else {"senderId": "s1", "suffix": "5017"},
            headers=auth,
        )

    def test_ocr_then_verify(self, api_client, auth, ocr_answer, merchant_account):
        ocr_answer({"type": "cbe", "reference": "FT1234"})
        resp = self._upload(api_client, auth)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["detectedBank"] == "CBE"
        assert body["extractedReference"] == "FT1234"
        assert body["message"] == "Verification successful and recorded"

    def test_ocr_failure(self, api_client, auth, ocr_answer):
        ocr_answer({"type": "unknown", "reference": None, "error": "not a receipt"})
        resp = self._upload(api_client, auth)
        assert resp.status_code == 400
        assert resp.json()["error"] == "not a receipt"

    def test_sender_required(self, api_client, auth, ocr_answer):
        ocr_answer({"type": "cbe", "reference": "FT1234"})
        resp = self._upload(api_client, auth, data={"suffix": "5017"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "senderId is required"


class TestRotatedAccounts:
    def test_one_account_per_provider(self, api_client, auth, db):
        db.add_all([
            ReceiverAccountModel(bank_type="CBE", account_number="1000000000001", account_name="A"),
            ReceiverAccountModel(bank_type="CBE", account_number="1000000000002", account_name="B"),
            ReceiverAccountModel(bank_type="TELEBIRR", account_number="251900000001", account_name="C"),
        ])
        db.commit()

        first = api_client.get("/api/verify-receipt", headers=auth).json()
        assert sorted(a["bank_type"] for a in first) == ["CBE", "TELEBIRR"]
        second = api_client.get("/api/verify-receipt", headers=auth).json()
        cbe_first = next(a for a in first if a["bank_type"] == "CBE")
        cbe_second = next(a for a in second if a["bank_type"] == "CBE")
        assert cbe_first["account_number"] != cbe_second["account_number"]


class TestFailedVerifications:
    def test_paginated_latest_first(self, api_client, auth):
        for ref in ("R1", "R2", "R3"):
            api_client.post(
                "/api/verify-receipt", json={**VERIFY_BODY, "bankType": "paypal", "reference": ref}, headers=auth
            )
        resp = api_client.get("/api/verify-receipt/failed", params={"page": 0, "size": 2}, headers=auth)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 3
        assert body["page"] == 0
        assert body["size"] == 2
        assert [item["reference"] for item in body["items"]] == ["R3", "R2"]
        assert body["items"][0]["kind"] == "unsupported_provider"

    def test_empty(self, api_client, auth, db):
        body = api_client.get("/api/verify-receipt/failed", headers=auth).json()
        assert body["items"] == []
        assert db.query(FailedVerificationModel).count() == 0


class TestDirectLookup:
    def test_cbe(self, api_client):
        resp = api_client.get("/api/verify/cbe", params={"reference": "FT1234", "accountSuffix": "5017"})
        body = resp.json()
        assert body["success"] is True
        assert Decimal(body["amount"]) == Decimal("100.00")
        assert body["receiver_account"] == "1****5017"

    def test_cbe_missing_suffix(self, api_client):
        resp = api_client.get("/api/verify/cbe", params={"reference": "FT1234"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Account suffix is required"

    def test_cbe_failure_is_reported_in_body(self, api_client):
        resp = api_client.get("/api/verify/cbe", params={"reference": "FT1234", "accountSuffix": "0000"})
        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert resp.json()["error"] == "HTTP error: 404"

    def test_telebirr_not_found(self, api_client):
        resp = api_client.get("/api/verify/telebirr/CE404")
        assert resp.status_code == 404

    def test_lookup_records_nothing(self, api_client, db):
        api_client.get("/api/verify/cbe", params={"reference": "FT1234", "accountSuffix": "5017"})
        assert api_client.get("/api/verified-payments").json() == []


class TestReceiverAccounts:
    def test_crud(self, client):
        resp = client.post(
            "/api/receiver-accounts",
            json={"bank_type": "cbe", "account_number": "1000352945017", "account_name": "Merchant"},
        )
        assert resp.status_code == 201
        account = resp.json()
        assert account["bank_type"] == "CBE"

        resp = client.put(
            f"/api/receiver-accounts/{account['id']}",
            json={"bank_type": "CBE", "account_number": "1000352945017", "account_name": "Merchant PLC"},
        )
        assert resp.json()["account_name"] == "Merchant PLC"

        assert len(client.get("/api/receiver-accounts").json()) == 1
        assert client.delete(f"/api/receiver-accounts/{account['id']}").status_code == 204
        assert client.get(f"/api/receiver-accounts/{account['id']}").status_code == 404

    def test_unsupported_bank(self, client):
        resp = client.post(
            "/api/receiver-accounts",
            json={"bank_type": "paypal", "account_number": "1", "account_name": "X"},
        )
        assert resp.status_code == 400


class TestVerifiedPayments:
    def test_list_and_filter(self, api_client, auth):
        api_client.post("/api/verify-receipt", json=VERIFY_BODY, headers=auth)

        payments = api_client.get("/api/verified-payments", params={"bankType": "cbe"}).json()
        assert len(payments) == 1
        assert payments[0]["sender_id"] == "s1"
        assert Decimal(payments[0]["amount"]) == Decimal("100.00")

        assert api_client.get("/api/verified-payments", params={"senderId": "other"}).json() == []
        assert api_client.get("/api/verified-payments", params={"fromDate": "2024-02-01T00:00:00"}).json() == []

        payment_id = payments[0]["id"]
        assert api_client.get(f"/api/verified-payments/{payment_id}").json()["reference"] == "FT1234"

    def test_not_found(self, client):
        assert client.get("/api/verified-payments/999").status_code == 404
