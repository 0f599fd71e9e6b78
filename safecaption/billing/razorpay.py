"""Razorpay integration over its REST API (orders + HMAC callback signature)."""

from __future__ import annotations

import hmac
from typing import Optional

import httpx

from safecaption import config
from safecaption.auth.models import Profile
from safecaption.billing.models import BillingCycle, CheckoutOrder, Plan
from safecaption.billing.plans import CURRENCY
from safecaption.billing.providers import PaymentProvider, hmac_sha256_hex
from safecaption.errors import PaymentProviderError

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


class RazorpayProvider(PaymentProvider):
    """Creates one-time orders; the checkout widget runs client-side.

    Parameters
    ----------
    key_id, key_secret : str | None
        Razorpay credentials. Fall back to ``RAZORPAY_KEY_ID`` and
        ``RAZORPAY_KEY_SECRET`` when *None*.
    """

    name = "razorpay"

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(transport)
        self.key_id = key_id if key_id is not None else config.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else config.RAZORPAY_KEY_SECRET

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    async def create_order(
        self,
        plan: Plan,
        cycle: BillingCycle,
        profile: Profile,
        success_url: str = "",
        cancel_url: str = "",
    ) -> CheckoutOrder:
        self._require_configured()
        data = await self._post(
            f"{RAZORPAY_API_BASE}/orders",
            auth=(self.key_id, self.key_secret),
            json={
                "amount": plan.price(cycle),
                "currency": CURRENCY,
                "notes": {"userId": profile.id, "plan": plan.id, "billing": cycle.value},
            },
        )
        return CheckoutOrder(
            order_id=data["id"],
            amount=data.get("amount", plan.price(cycle)),
            currency=data.get("currency", CURRENCY),
            description=plan.describe(cycle),
            public_key=self.key_id,
        )

    @staticmethod
    def callback_payload(order_id: str, payment_id: str) -> bytes:
        """The message Razorpay signs when a payment completes."""
        return f"{order_id}|{payment_id}".encode("utf-8")

    def verify_signature(self, payload: bytes, signature: str) -> bool:
        if not self.key_secret:
            raise PaymentProviderError("Razorpay secret not configured")
        expected = hmac_sha256_hex(self.key_secret, payload)
        return hmac.compare_digest(expected, signature or "")
