import hashlib
import hmac
import json
import time
from urllib.parse import parse_qs, urlparse
from unittest.mock import MagicMock
import httpx
import pytest
from jose import jwt
from app.core.config import settings
from app.core.security import create_access_token
from app.crud import tenant as tenant_crud
from app.models.tenant import OnboardingStep, PaymentProviderStatus
from app.schemas.provisioning import ProvisioningStatus, ProvisioningStatusRecord
from app.services.email_verification import send_verification_email_worker
from app.services.payment_onboarding import payment_onboarding_service
from app.services.payment_providers import SquareOAuthClient, StripeAccountSnapshot, stripe_connect_client
from app.services.provisioning import run_seed_pipeline_worker
from app.services.status_store import status_store


def _signup(client, **overrides):
    body = {
        "business_name": "Acme Supplies",
        "email": "owner@acme.test",
        "password": "s3cret-pass",
        "subdomain": "acme",
    }
    body.update(overrides)
    response = client.post("/api/onboarding/signup", json=body)
    assert response.status_code == 201, response.text
    data = response.json()
    return data["tenant_id"], {"Authorization": f"Bearer {data['access_token']}"}


@pytest.fixture
def stripe_api(monkeypatch):
    """Replaces the Stripe API calls on the shared client; webhook verification stays real."""
    api = MagicMock()
    api.create_express_account.return_value = "acct_123"
    api.create_onboarding_link.return_value = "https://connect.stripe.com/setup/e/acct_123/abc"
    api.create_login_link.return_value = "https://connect.stripe.com/express/acct_123/xyz"
    api.retrieve_account.return_value = StripeAccountSnapshot(account_id="acct_123")
    for name in ("create_express_account", "create_onboarding_link", "create_login_link", "retrieve_account"):
        monkeypatch.setattr(stripe_connect_client, name, getattr(api, name))
    return api


@pytest.fixture
def square_api(monkeypatch):
    def handler(request):
        if request.url.path == "/oauth2/token":
            return httpx.Response(200, json={
                "access_token": "EAAA-access",
                "refresh_token": "EQAA-refresh",
                "expires_at": "2099-01-01T00:00:00Z",
            })
        return httpx.Response(200, json={"merchant": {"id": "MLX123", "main_location_id": "L88"}})

    client = SquareOAuthClient(
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        base_url="https://connect.squareupsandbox.com"
    )
    monkeypatch.setattr(payment_onboarding_service, "square", client)
    return client


def _signed_webhook(client, event):
    payload = json.dumps(event)
    timestamp = int(time.time())
    signature = hmac.new(b"whsec_test", f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return client.post(
        "/api/webhooks/stripe-connect",
        content=payload,
        headers={"Content-Type": "application/json", "Stripe-Signature": f"t={timestamp},v1={signature}"}
    )


# ---------- signup & provisioning ----------

def test_signup_returns_token_and_queues_work(client, submitted_jobs):
    tenant_id, headers = _signup(client)

    token = headers["Authorization"].split(" ", 1)[1]
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["email"] == "owner@acme.test"
    assert claims["tenant_id"] == tenant_id
    assert [job[0] for job in submitted_jobs] == [run_seed_pipeline_worker, send_verification_email_worker]


def test_signup_conflicts(client):
    _signup(client)

    same_domain = client.post("/api/onboarding/signup", json={
        "business_name": "Other", "email": "other@acme.test", "password": "s3cret-pass", "subdomain": "acme"
    })
    same_email = client.post("/api/onboarding/signup", json={
        "business_name": "Other", "email": "owner@acme.test", "password": "s3cret-pass", "subdomain": "other"
    })

    assert same_domain.status_code == 409
    assert same_email.status_code == 409


def test_signup_validates_input(client):
    response = client.post("/api/onboarding/signup", json={
        "business_name": "Acme", "email": "owner@acme.test", "password": "short", "subdomain": "Bad Domain!"
    })

    assert response.status_code == 422


def test_status_tracks_provisioning(client, run_jobs):
    tenant_id, _ = _signup(client)

    pending = client.get(f"/api/onboarding/{tenant_id}/status").json()
    assert pending["provisioning_status"] == "PENDING"
    assert pending["provisioning_progress"] == 0
    assert pending["onboarding_step"] == "provisioning"
    assert pending["subdomain"] == "acme"

    run_jobs()

    ready = client.get(f"/api/onboarding/{tenant_id}/status").json()
    assert ready["provisioning_status"] == "READY"
    assert ready["provisioning_progress"] == 100
    assert ready["current_step"] == "Ready!"


def test_status_of_unknown_tenant_is_404(client):
    assert client.get("/api/onboarding/999/status").status_code == 404


def test_login_after_signup(client):
    _signup(client)

    ok = client.post("/api/auth/verify-credentials", json={"email": "owner@acme.test", "password": "s3cret-pass"})
    bad = client.post("/api/auth/verify-credentials", json={"email": "owner@acme.test", "password": "wrong-pass"})

    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "owner@acme.test"
    assert ok.json()["user"]["email_verified"] is False
    assert ok.json()["access_token"]
    assert bad.status_code == 401


# ---------- completion ----------

def test_complete_without_provider(client, run_jobs):
    tenant_id, headers = _signup(client)

    early = client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers)
    assert early.status_code == 400

    run_jobs()
    done = client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers)
    first_completed_at = client.get(f"/api/onboarding/{tenant_id}/status").json()["onboarding_completed_at"]
    again = client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers)

    assert done.status_code == 200
    assert done.json() == {"success": True}
    assert again.status_code == 200
    status = client.get(f"/api/onboarding/{tenant_id}/status").json()
    assert status["onboarding_step"] == "completed"
    assert status["onboarding_completed_at"] == first_completed_at


def test_complete_requires_active_provider(client, run_jobs, stripe_api):
    tenant_id, headers = _signup(client, payment_provider="stripe")
    run_jobs()

    response = client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers)

    assert response.status_code == 400
    assert "Payment provider" in response.json()["detail"]


def test_tenant_routes_require_auth(client):
    tenant_id, _ = _signup(client)

    assert client.post(f"/api/onboarding/{tenant_id}/complete").status_code == 401
    assert client.post(f"/api/onboarding/{tenant_id}/payment/initiate").status_code == 401


def test_tenant_routes_reject_other_tenants(client, stripe_api):
    tenant_id, _ = _signup(client, payment_provider="stripe")
    _, outsider = _signup(client, email="owner@globex.test", subdomain="globex")

    assert client.post(f"/api/onboarding/{tenant_id}/complete", headers=outsider).status_code == 403
    assert client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=outsider).status_code == 403
    assert client.get(f"/api/onboarding/{tenant_id}/stripe/dashboard", headers=outsider).status_code == 403
    stripe_api.create_express_account.assert_not_called()


# ---------- Stripe ----------

def test_stripe_onboarding_flow(client, run_jobs, stripe_api):
    tenant_id, headers = _signup(client, payment_provider="stripe")
    run_jobs()

    initiate = client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)
    assert initiate.status_code == 200
    assert initiate.json() == {"url": "https://connect.stripe.com/setup/e/acct_123/abc", "provider": "stripe"}

    webhook = _signed_webhook(client, {
        "id": "evt_1",
        "type": "account.updated",
        "created": int(time.time()),
        "data": {"object": {
            "id": "acct_123", "charges_enabled": True, "payouts_enabled": True, "details_submitted": True,
        }},
    })
    assert webhook.status_code == 200

    status = client.get(f"/api/onboarding/{tenant_id}/status").json()
    assert status["payment_provider_status"] == "active"
    assert status["stripe_charges_enabled"] is True
    assert status["onboarding_step"] == "payment"

    dashboard = client.get(f"/api/onboarding/{tenant_id}/stripe/dashboard", headers=headers)
    assert dashboard.json() == {"url": "https://connect.stripe.com/express/acct_123/xyz"}

    assert client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers).status_code == 200


def test_status_polls_stripe_when_webhook_is_missing(client, stripe_api):
    tenant_id, headers = _signup(client, payment_provider="stripe")
    client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)
    stripe_api.retrieve_account.return_value = StripeAccountSnapshot(
        account_id="acct_123", charges_enabled=True, payouts_enabled=True, details_submitted=True
    )

    status = client.get(f"/api/onboarding/{tenant_id}/status").json()

    assert status["payment_provider_status"] == "active"
    stripe_api.retrieve_account.assert_called_with("acct_123")


def test_status_survives_stripe_outage(client, stripe_api):
    from app.core.exceptions import ExternalProviderError

    tenant_id, headers = _signup(client, payment_provider="stripe")
    client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)
    stripe_api.retrieve_account.side_effect = ExternalProviderError(provider="stripe")

    response = client.get(f"/api/onboarding/{tenant_id}/status")

    assert response.status_code == 200
    assert response.json()["payment_provider_status"] == "onboarding"


def test_payment_refresh_endpoint(client, stripe_api):
    tenant_id, headers = _signup(client, payment_provider="stripe")
    client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)
    stripe_api.retrieve_account.return_value = StripeAccountSnapshot(
        account_id="acct_123", charges_enabled=True, payouts_enabled=False, details_submitted=False
    )

    response = client.get(f"/api/onboarding/{tenant_id}/payment/refresh", headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "status": "onboarding",
        "charges_enabled": True,
        "payouts_enabled": False,
        "details_submitted": False,
    }


def test_stripe_provider_error_is_502(client, stripe_api):
    from app.core.exceptions import ExternalProviderError

    tenant_id, headers = _signup(client, payment_provider="stripe")
    stripe_api.create_express_account.side_effect = ExternalProviderError(provider="stripe")

    response = client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)

    assert response.status_code == 502
    assert response.json()["detail"] == "Payment provider request failed, please try again"


# ---------- Square ----------

def test_square_onboarding_flow(client, run_jobs, square_api):
    tenant_id, headers = _signup(client, payment_provider="square")
    run_jobs()

    initiate = client.post(f"/api/onboarding/{tenant_id}/payment/initiate", headers=headers)
    assert initiate.status_code == 200
    url = initiate.json()["url"]
    assert url.startswith("https://connect.squareupsandbox.com/oauth2/authorize?")
    state = parse_qs(urlparse(url).query)["state"][0]

    callback = client.get(
        "/api/onboarding/square/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False
    )
    assert callback.status_code == 302
    assert callback.headers["location"] == (
        f"http://frontend.test/onboarding/{tenant_id}/complete?provider=square"
    )

    status = client.get(f"/api/onboarding/{tenant_id}/status").json()
    assert status["payment_provider_status"] == "active"
    assert status["onboarding_step"] == "payment_complete"
    assert status["square_merchant_id"] == "MLX123"

    assert client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers).status_code == 200

    # The state was consumed by the first callback
    replay = client.get(
        "/api/onboarding/square/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False
    )
    assert replay.headers["location"] == "http://frontend.test/onboarding/payment-error?reason=invalid_state"


def test_square_callback_with_provider_error_param(client):
    response = client.get(
        "/api/onboarding/square/callback",
        params={"error": "access_denied", "state": "x"},
        follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "http://frontend.test/onboarding/payment-error?reason=access_denied"


def test_square_callback_without_code(client):
    response = client.get("/api/onboarding/square/callback", params={"state": "x"}, follow_redirects=False)

    assert response.headers["location"] == "http://frontend.test/onboarding/payment-error?reason=missing_code"


def test_complete_rejected_while_seeding(client, db):
    tenant_id, headers = _signup(client, payment_provider="stripe")
    status_store.set(
        tenant_id,
        ProvisioningStatusRecord(tenant_id=tenant_id, status=ProvisioningStatus.SEEDING_WAREHOUSE, progress=60)
    )
    tenant = tenant_crud.get(db, tenant_id)
    tenant_crud.update(db, tenant=tenant, values={"payment_provider_status": PaymentProviderStatus.ACTIVE})

    response = client.post(f"/api/onboarding/{tenant_id}/complete", headers=headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Provisioning is not yet complete"
    db.refresh(tenant)
    assert tenant.onboarding_step == OnboardingStep.PROVISIONING


def test_token_for_another_tenant_is_rejected(client):
    tenant_id, headers = _signup(client)
    token = headers["Authorization"].split(" ", 1)[1]
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    forged = create_access_token({"id": claims["id"], "email": claims["email"], "tenant_id": tenant_id + 1})

    response = client.post(f"/api/onboarding/{tenant_id}/complete", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401
