import json
import time
import uuid

import pytest
from fastapi.testclient import TestClient

from billing_gateway.core.security import mint_dev_token
from billing_gateway.main import app
from billing_gateway.payments import webhook

FAKE_SECRET = "whsec_fake_test"
STRIPE_SECRET = "whsec_stripe_test"


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {mint_dev_token(sub='tester')}"}


def _fake_event(event_type="payment.succeeded", resource_id="pay_fake_1"):
    return json.dumps(
        {
            "id": f"evt_{uuid.uuid4().hex}",
            "type": event_type,
            "created": int(time.time()),
            "data": {"id": resource_id},
        }
    ).encode()


def _post_fake(client, body, secret=FAKE_SECRET, **headers):
    return client.post(
        "/webhooks/fake",
        content=body,
        headers={"x-fake-signature": webhook.sign(body, secret), **headers},
    )


class TestHealthAndCatalog:
    def test_health_lists_registered_providers(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "providers": ["fake", "stripe"]}

    def test_request_id_is_echoed(self, client):
        r = client.get("/health", headers={"X-Request-Id": "req-123"})
        assert r.headers["x-request-id"] == "req-123"

    def test_catalog_hides_hidden_providers(self, client):
        r = client.get("/providers")
        assert r.status_code == 200
        assert [m["slug"] for m in r.json()] == ["stripe"]

    def test_manifest_is_camel_cased(self, client):
        r = client.get("/providers/stripe")
        assert r.status_code == 200
        body = r.json()
        assert body["sandboxAvailable"] is True
        assert body["capabilities"]["payments"]["features"]["partialRefunds"] is True
        assert body["configSchema"]["apiKey"]["type"] == "password"

    def test_unknown_manifest_is_404(self, client):
        assert client.get("/providers/paypal").status_code == 404


class TestInstall:
    def test_install_requires_a_token(self, client):
        r = client.post("/providers/fake/install", json={"config": {"apiKey": "fake_ok"}})
        assert r.status_code == 401

    def test_install_and_uninstall(self, client, admin_headers):
        r = client.post(
            "/providers/fake/install",
            json={"config": {"apiKey": "fake_ok"}, "webhookUrl": "https://gw.example.com/webhooks/fake"},
            headers=admin_headers,
        )
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["data"]["webhookEndpointId"].startswith("we_")

        r = client.post(
            "/providers/fake/uninstall",
            json={"config": {"apiKey": "fake_ok"}, "data": body["data"]},
            headers=admin_headers,
        )
        assert r.json() == {"provider": "fake", "success": True}

    def test_bad_credentials_are_401_with_error_body(self, client, admin_headers):
        r = client.post("/providers/fake/install", json={"config": {"apiKey": "bad_key"}}, headers=admin_headers)
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "invalid_credentials"

    def test_invalid_config_is_400(self, client, admin_headers):
        r = client.post("/providers/stripe/install", json={"config": {"apiKey": "pk_live_x"}}, headers=admin_headers)
        assert r.status_code == 400
        assert r.json()["error"]["code"] == "invalid_input"

    def test_unknown_provider_is_404(self, client, admin_headers):
        r = client.post("/providers/paypal/install", json={"config": {}}, headers=admin_headers)
        assert r.status_code == 404


class TestWebhooks:
    def test_signed_event_is_acknowledged(self, client):
        r = _post_fake(client, _fake_event())
        assert r.status_code == 200
        assert r.json() == {"received": True, "eventType": "PAYMENT_SUCCEEDED"}

    def test_redelivery_is_deduped(self, client):
        body = _fake_event()
        assert "deduped" not in _post_fake(client, body).json()
        again = _post_fake(client, body)
        assert again.status_code == 200
        assert again.json()["deduped"] is True

    def test_forged_signature_is_400(self, client):
        r = _post_fake(client, _fake_event(), secret="whsec_wrong")
        assert r.status_code == 400
        assert r.json()["detail"] == {
            "code": "webhook_signature_verification_failed",
            "reason": "signature_mismatch",
        }

    def test_missing_signature_is_400(self, client):
        r = client.post("/webhooks/fake", content=_fake_event())
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "invalid_signature_format"

    def test_stale_delivery_is_400(self, client):
        body = _fake_event()
        header = webhook.sign(body, FAKE_SECRET, timestamp=int(time.time()) - 3600)
        r = client.post("/webhooks/fake", content=body, headers={"x-fake-signature": header})
        assert r.status_code == 400
        assert r.json()["detail"]["reason"] == "timestamp_too_old"

    def test_unmapped_event_is_acknowledged(self, client):
        r = _post_fake(client, _fake_event(event_type="something.odd"))
        assert r.status_code == 200
        assert r.json() == {"received": True}

    def test_stripe_delivery(self, client):
        body = json.dumps(
            {
                "id": f"evt_{uuid.uuid4().hex}",
                "type": "charge.refunded",
                "created": int(time.time()),
                "livemode": False,
                "data": {"object": {"id": "ch_1", "object": "charge"}},
            }
        ).encode()
        r = client.post("/webhooks/stripe", content=body, headers={"Stripe-Signature": webhook.sign(body, STRIPE_SECRET)})
        assert r.status_code == 200
        assert r.json()["eventType"] == "REFUND_PROCESSED"

    def test_unknown_provider_is_404(self, client):
        body = _fake_event()
        r = client.post("/webhooks/paypal", content=body, headers={"x-fake-signature": webhook.sign(body, FAKE_SECRET)})
        assert r.status_code == 404
