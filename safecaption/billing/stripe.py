"""Stripe integration over its REST API (checkout sessions + webhooks)."""

from __future__ import annotations

import hmac
import json
import time
from typing import Callable, Optional

import httpx

from safecaption import config
from safecaption.auth.models import Profile
from safecaption.billing.models import BillingCycle, CheckoutOrder, Plan
from safecaption.billing.plans import CURRENCY
from safecaption.billing.providers import PaymentProvider, hmac_sha256_hex
from safecaption.errors import InputError, PaymentProviderError

STRIPE_API_BASE = "https://api.stripe.com/v1"

# Maximum age of a webhook signature, in seconds
SIGNATURE_TOLERANCE = 300

_INTERVALS = {BillingCycle.monthly: "month", BillingCycle.yearly: "year"}


class StripeProvider(PaymentProvider):
    """Creates subscription checkout sessions and verifies webhook events."""

    name = "stripe"

    def __init__(
        self,
        secret_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(transport)
        self.secret_key = secret_key if secret_key is not None else config.STRIPE_SECRET_KEY
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else config.STRIPE_WEBHOOK_SECRET
        )
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    async def create_order(
        self,
        plan: Plan,
        cycle: BillingCycle,
        profile: Profile,
        success_url: str = "",
        cancel_url: str = "",
    ) -> CheckoutOrder:
        self._require_configured()
        amount = plan.price(cycle)
        description = plan.describe(cycle)
        item = "line_items[0]"
        data = await self._post(
            f"{STRIPE_API_BASE}/checkout/sessions",
            headers={"Authorization": f"Bearer {self.secret_key}"},
            data={
                "mode": "subscription",
                "success_url": success_url,
                "cancel_url": cancel_url,
                "customer_email": profile.email,
                "client_reference_id": profile.id,
                f"{item}[quantity]": "1",
                f"{item}[price_data][currency]": CURRENCY.lower(),
                f"{item}[price_data][unit_amount]": str(amount),
                f"{item}[price_data][recurring][interval]": _INTERVALS[cycle],
                f"{item}[price_data][product_data][name]": description,
                "metadata[userId]": profile.id,
                "metadata[plan]": plan.id,
                "metadata[billing]": cycle.value,
                "subscription_data[metadata][userId]": profile.id,
            },
        )
        return CheckoutOrder(
            order_id=data["id"],
            amount=amount,
            currency=CURRENCY,
            description=description,
            checkout_url=data.get("url", ""),
        )

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Verify a ``Stripe-Signature`` header (``t=<ts>,v1=<hex>[,v1=...]``)."""
        if not self.webhook_secret:
            raise PaymentProviderError("Stripe webhook secret not configured")

        timestamp = ""
        candidates: list[str] = []
        for part in (signature or "").split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                candidates.append(value)

        if not timestamp.isdigit() or not candidates:
            return False
        if abs(self._clock() - int(timestamp)) > SIGNATURE_TOLERANCE:
            return False

        expected = hmac_sha256_hex(self.webhook_secret, timestamp.encode() + b"." + payload)
        return any(hmac.compare_digest(expected, c) for c in candidates)

    @staticmethod
    def parse_event(payload: bytes) -> dict:
        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InputError("Malformed webhook payload", code="INVALID_JSON") from exc
        if not isinstance(event, dict):
            raise InputError("Malformed webhook payload", code="INVALID_JSON")
        return event
