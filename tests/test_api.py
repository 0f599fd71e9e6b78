"""Tests for the HTTP API."""

import json
import tempfile
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from safecaption.auth.store import JsonDataStore
from safecaption.billing.providers import hmac_sha256_hex
from safecaption.billing.razorpay import RazorpayProvider
from safecaption.billing.stripe import StripeProvider
from web.backend.app.main import app
from web.backend.app.middleware.auth import get_providers, get_store

VALIDATE = "/api/v1/validate"


def _mock_provider_api(request: httpx.Request) -> httpx.Response:
    if request.url.host == "api.razorpay.com":
        return httpx.Response(200, json={"id": "order_R1", "amount": 239900, "currency": "INR"})
    return httpx.Response(200, json={"id": "cs_test_1", "url": "https://checkout.stripe.com/x"})


@pytest.fixture
def env():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        transport = httpx.MockTransport(_mock_provider_api)
        providers = [
            RazorpayProvider(key_id="rzp_test_key", key_secret="rzp_secret", transport=transport),
            StripeProvider(secret_key="sk_test_stripe", webhook_secret="whsec_test", transport=transport),
        ]
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_providers] = lambda: providers

        profile = store.create_profile("ana@example.com")
        record = store.create_api_key(profile.id, "Default")
        session = store.create_session(profile.id)
        yield {
            "client": TestClient(app),
            "store": store,
            "profile": profile,
            "key": record.key,
            "session": {"Authorization": f"Bearer {session.token}"},
        }
        app.dependency_overrides.clear()


def _auth(key: str) -> dict:
    return {"Authorization": f"Bearer {key}"}


# ── Meta ─────────────────────────────────────────────────────────────


def test_health(env):
    resp = env["client"].get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


# ── Validation endpoint ──────────────────────────────────────────────


def test_validate_success(env):
    resp = env["client"].post(
        VALIDATE,
        headers=_auth(env["key"]),
        json={"caption": "Check out my new collection! \U0001F525", "hashtags": ["#fashion", "#style"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["safe"] is True
    assert body["score"] == 100
    assert body["issues"] == []
    assert body["metrics"]["engagementScore"] == 55
    assert body["suggestions"]["hashtags"][:2] == ["#fashion", "#style"]
    assert isinstance(body["processingTime"], int)

    assert resp.headers["X-RateLimit-Limit"] == "10"
    assert resp.headers["X-RateLimit-Remaining"] == "10"
    assert resp.headers["X-Processing-Time"].endswith("ms")


def test_validate_unsafe_caption_gets_suggestion(env):
    resp = env["client"].post(
        VALIDATE, headers=_auth(env["key"]), json={"caption": "Link in bio, I hate mondays"}
    )
    body = resp.json()
    assert body["safe"] is False
    assert body["score"] == 50
    assert body["suggestions"]["caption"] == ", I *** mondays"


def test_validate_accepts_x_api_key_header(env):
    resp = env["client"].post(VALIDATE, headers={"X-API-Key": env["key"]}, json={"caption": "Hello"})
    assert resp.status_code == 200


def test_validate_options_switch_checks_off(env):
    resp = env["client"].post(
        VALIDATE,
        headers=_auth(env["key"]),
        json={"caption": "I hate this", "options": {"checkHateSpeech": False}},
    )
    assert resp.json()["safe"] is True


def test_validate_records_usage(env):
    env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
    store, profile = env["store"], env["profile"]
    assert store.get_profile(profile.id).api_calls_count == 1
    assert store.list_api_keys(profile.id)[0].usage_count == 1

    resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
    assert resp.headers["X-RateLimit-Remaining"] == "9"


def test_validate_missing_key(env):
    resp = env["client"].post(VALIDATE, json={"caption": "Hello"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "MISSING_API_KEY"


def test_validate_rejects_bad_keys(env):
    for key in ("pk_123", "sk_" + "0" * 64):
        resp = env["client"].post(VALIDATE, headers=_auth(key), json={"caption": "Hello"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "INVALID_API_KEY"


def test_auth_runs_before_body_parsing(env):
    resp = env["client"].post(VALIDATE, content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 401


def test_validate_bad_json(env):
    headers = {**_auth(env["key"]), "Content-Type": "application/json"}
    resp = env["client"].post(VALIDATE, content=b"{not json", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_JSON"


def test_validate_rejects_lone_surrogates(env):
    headers = {**_auth(env["key"]), "Content-Type": "application/json"}
    bodies = (
        {"caption": "hate \ud83d this"},
        {"caption": "Hi", "hashtags": ["#ok", "\udc00"]},
    )
    for body in bodies:
        resp = env["client"].post(VALIDATE, content=json.dumps(body), headers=headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_REQUEST"


def test_validate_null_options_stay_enabled(env):
    resp = env["client"].post(
        VALIDATE,
        headers=_auth(env["key"]),
        json={"caption": "I hate this", "options": {"checkHateSpeech": None, "checkSpam": None}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["safe"] is False
    assert body["score"] == 70


def test_validate_bad_field_types(env):
    resp = env["client"].post(
        VALIDATE, headers=_auth(env["key"]), json={"caption": "Hi", "hashtags": "notalist"}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_REQUEST"


def test_validate_missing_caption(env):
    for body in ({}, {"caption": ""}):
        resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json=body)
        assert resp.status_code == 400
        assert resp.json()["code"] == "MISSING_CAPTION"


def test_validate_caption_length_limit(env):
    ok = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "a" * 2200})
    assert ok.status_code == 200

    resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "a" * 2201})
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "CAPTION_TOO_LONG"
    assert body["error"] == "Caption exceeds Instagram limit of 2200 characters"


def test_validate_rate_limited(env):
    for _ in range(10):
        resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
        assert resp.status_code == 200

    resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
    assert resp.status_code == 429
    assert resp.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert resp.headers["Retry-After"] == "60"
    assert resp.headers["X-RateLimit-Limit"] == "10"
    assert resp.headers["X-RateLimit-Remaining"] == "0"


def test_validate_quota_exceeded(env):
    store, profile = env["store"], env["profile"]
    store.update_subscription(profile.id, "free", "active", call_limit=1)

    first = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
    assert first.status_code == 200

    resp = env["client"].post(VALIDATE, headers=_auth(env["key"]), json={"caption": "Hello"})
    assert resp.status_code == 429
    assert resp.json() == {
        "error": "API limit exceeded. Please upgrade your plan.",
        "code": "QUOTA_EXCEEDED",
    }


# ── Keys and usage ───────────────────────────────────────────────────


def test_key_management(env):
    client = env["client"]
    resp = client.post("/api/keys", headers=env["session"], json={"name": "CI"})
    assert resp.status_code == 200
    created = resp.json()
    assert created["key"].startswith("sk_")

    listed = client.get("/api/keys", headers=env["session"]).json()
    assert {k["name"] for k in listed} == {"Default", "CI"}
    assert all("key" not in k for k in listed)

    resp = client.delete(f"/api/keys/{created['id']}", headers=env["session"])
    assert resp.json() == {"deleted": True}
    resp = client.delete(f"/api/keys/{created['id']}", headers=env["session"])
    assert resp.status_code == 404
    assert resp.json()["code"] == "KEY_NOT_FOUND"


def test_key_name_required(env):
    resp = env["client"].post("/api/keys", headers=env["session"], json={"name": "  "})
    assert resp.status_code == 400
    assert resp.json()["code"] == "MISSING_KEY_NAME"


def test_dashboard_requires_session(env):
    client = env["client"]
    resp = client.get("/api/keys")
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHORIZED"

    resp = client.get("/api/keys", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_SESSION"


def test_usage_summary(env):
    resp = env["client"].get("/api/usage", headers=env["session"])
    assert resp.json() == {
        "subscription_tier": "free",
        "subscription_status": "active",
        "api_calls_count": 0,
        "api_calls_limit": 100,
        "rate_limit_per_minute": 10,
    }


# ── Billing ──────────────────────────────────────────────────────────


def test_list_plans(env):
    plans = env["client"].get("/api/plans").json()
    assert [p["id"] for p in plans] == ["free", "pro", "enterprise"]
    assert plans[1]["rate_limit_per_minute"] == 60


def test_razorpay_checkout_and_confirmation(env):
    client = env["client"]
    resp = client.post("/api/razorpay/create-order", headers=env["session"], json={"plan": "pro"})
    assert resp.status_code == 200
    order = resp.json()
    assert order == {
        "orderId": "order_R1",
        "amount": 239900,
        "currency": "INR",
        "description": "SafeCaption Pro Plan - Monthly",
        "keyId": "rzp_test_key",
    }

    bad = client.post(
        "/api/payment-success",
        headers=env["session"],
        json={"orderId": "order_R1", "paymentId": "pay_1", "signature": "forged"},
    )
    assert bad.status_code == 400
    assert bad.json()["code"] == "INVALID_SIGNATURE"

    signature = hmac_sha256_hex("rzp_secret", b"order_R1|pay_1")
    resp = client.post(
        "/api/payment-success",
        headers=env["session"],
        json={"orderId": "order_R1", "paymentId": "pay_1", "signature": signature},
    )
    assert resp.status_code == 200
    assert resp.json()["subscription_tier"] == "pro"
    assert env["store"].get_profile(env["profile"].id).api_calls_limit == 10_000


def test_checkout_rejects_invalid_plan(env):
    for plan in ("free", "gold", None):
        resp = env["client"].post(
            "/api/razorpay/create-order", headers=env["session"], json={"plan": plan}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_PLAN"


def test_stripe_checkout_and_webhook(env):
    client = env["client"]
    resp = client.post(
        "/api/stripe/create-checkout",
        headers=env["session"],
        json={"plan": "enterprise", "billing": "yearly"},
    )
    assert resp.json() == {"url": "https://checkout.stripe.com/x", "sessionId": "cs_test_1"}

    payload = json.dumps({
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "subscription": "sub_1"}},
    }).encode()
    ts = str(int(time.time()))
    signature = f"t={ts},v1={hmac_sha256_hex('whsec_test', ts.encode() + b'.' + payload)}"

    resp = client.post("/api/stripe/webhook", content=payload, headers={"Stripe-Signature": signature})
    assert resp.status_code == 200
    assert resp.json() == {"received": True, "activated": True}
    assert env["store"].get_profile(env["profile"].id).subscription_tier == "enterprise"

    resp = client.post("/api/stripe/webhook", content=payload, headers={"Stripe-Signature": "t=1,v1=00"})
    assert resp.status_code == 400
