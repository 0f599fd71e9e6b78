"""Tests for the JSON-file data store."""

import tempfile
from datetime import timedelta
from pathlib import Path

import pytest

from safecaption.auth.models import UsageLog, utc_now
from safecaption.auth.store import API_KEY_PREFIX, JsonDataStore, generate_api_key
from safecaption.billing.models import OrderStatus, PaymentOrder
from safecaption.errors import InputError, StoreError


def test_generate_api_key_format():
    key = generate_api_key()
    assert key.startswith(API_KEY_PREFIX)
    assert len(key) == len(API_KEY_PREFIX) + 64
    assert generate_api_key() != key


def test_profile_lifecycle():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        profile = store.create_profile("ana@example.com")
        assert profile.subscription_tier == "free"
        assert profile.api_calls_limit == 100
        assert profile.api_calls_count == 0

        assert store.get_profile(profile.id) == profile
        assert store.get_profile_by_email("ANA@example.com").id == profile.id
        assert store.get_profile("missing") is None

        store.increment_api_calls(profile.id)
        store.increment_api_calls(profile.id)
        assert store.get_profile(profile.id).api_calls_count == 2

        updated = store.update_subscription(profile.id, "pro", "active", 10_000)
        assert updated.subscription_tier == "pro"
        assert updated.api_calls_limit == 10_000
        assert updated.api_calls_count == 0


def test_duplicate_email_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        store.create_profile("ana@example.com")
        with pytest.raises(InputError) as exc_info:
            store.create_profile("Ana@Example.com")
        assert exc_info.value.code == "PROFILE_EXISTS"


def test_api_key_lifecycle():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        profile = store.create_profile("ana@example.com")
        record = store.create_api_key(profile.id, "Production")

        assert record.key.startswith("sk_")
        assert record.prefix == record.key[:8]
        assert [k.id for k in store.list_api_keys(profile.id)] == [record.id]

        found_key, found_profile = store.get_api_key_with_profile(record.key)
        assert found_key.id == record.id
        assert found_profile.id == profile.id
        assert store.get_api_key_with_profile("sk_unknown") is None

        now = utc_now()
        store.touch_api_key(record.id, now)
        touched = store.list_api_keys(profile.id)[0]
        assert touched.usage_count == 1
        assert touched.last_used == now.isoformat()

        assert store.deactivate_api_key("someone-else", record.id) is False
        assert store.deactivate_api_key(profile.id, record.id) is True
        assert store.list_api_keys(profile.id)[0].is_active is False

        assert store.delete_api_key(profile.id, record.id) is True
        assert store.delete_api_key(profile.id, record.id) is False
        assert store.list_api_keys(profile.id) == []


def test_usage_counting_window():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        now = utc_now()
        for i, age in enumerate([5, 30, 59, 61, 300]):
            store.record_usage(
                UsageLog(
                    id=f"log-{i}",
                    api_key_id="key-1",
                    endpoint="/api/v1/validate",
                    status_code=200,
                    response_time=3,
                    created_at=(now - timedelta(seconds=age)).isoformat(),
                )
            )
        store.record_usage(
            UsageLog(id="other", api_key_id="key-2", endpoint="/", status_code=200, response_time=1)
        )

        assert store.count_usage_since("key-1", now - timedelta(seconds=60)) == 3
        assert store.count_usage_since("key-2", now - timedelta(seconds=60)) == 1
        assert store.count_usage_since("key-3", now - timedelta(seconds=60)) == 0


def test_usage_count_treats_naive_timestamps_as_utc():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        naive = (utc_now() - timedelta(seconds=5)).replace(tzinfo=None)
        store.record_usage(
            UsageLog(
                id="a",
                api_key_id="k",
                endpoint="/",
                status_code=200,
                response_time=1,
                created_at=naive.isoformat(),
            )
        )
        assert store.count_usage_since("k", utc_now() - timedelta(minutes=1)) == 1


def test_usage_log_skips_corrupt_lines():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        store.record_usage(
            UsageLog(id="a", api_key_id="k", endpoint="/", status_code=200, response_time=1)
        )
        with open(Path(tmpdir) / "usage_logs.jsonl", "a") as f:
            f.write("{not json\n")
        assert store.count_usage_since("k", utc_now() - timedelta(minutes=1)) == 1


def test_sessions():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        profile = store.create_profile("ana@example.com")
        session = store.create_session(profile.id)
        assert store.get_session_profile(session.token).id == profile.id
        assert store.get_session_profile("bogus") is None

        expired = store.create_session(profile.id, expires_in_hours=-1)
        assert store.get_session_profile(expired.token) is None


def test_payment_orders():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        store.save_payment_order(
            PaymentOrder(
                order_id="order_1",
                user_id="u1",
                provider="razorpay",
                plan="pro",
                billing_cycle="monthly",
                amount=239900,
            )
        )
        order = store.get_payment_order("order_1")
        assert order.status == OrderStatus.created.value
        assert order.currency == "INR"

        updated = store.update_payment_order("order_1", status="paid", payment_id="pay_1")
        assert updated.status == "paid"
        assert updated.payment_id == "pay_1"
        assert store.update_payment_order("missing", status="paid") is None
        assert store.get_payment_order("missing") is None


def test_corrupt_file_raises_store_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonDataStore(tmpdir)
        (Path(tmpdir) / "api_keys.json").write_text("{broken")
        with pytest.raises(StoreError):
            store.get_api_key_with_profile("sk_abc")
