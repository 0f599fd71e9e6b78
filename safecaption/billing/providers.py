"""Payment provider capability shared by Razorpay and Stripe.

Both providers create a checkout for a plan and verify the signature on
the callback that confirms payment. Activating the subscription afterwards
is provider-independent and lives in ``BillingService``.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from safecaption.auth.models import Profile
from safecaption.billing.models import BillingCycle, CheckoutOrder, Plan
from safecaption.errors import PaymentProviderError


def hmac_sha256_hex(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class PaymentProvider(ABC):
    """One payment processor integration."""

    name = ""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    @property
    @abstractmethod
    def configured(self) -> bool:
        """Return *True* when credentials are available."""

    @abstractmethod
    async def create_order(
        self,
        plan: Plan,
        cycle: BillingCycle,
        profile: Profile,
        success_url: str = "",
        cancel_url: str = "",
    ) -> CheckoutOrder:
        """Open a checkout for *plan* at the provider."""

    @abstractmethod
    def verify_signature(self, payload: bytes, signature: str) -> bool:
        """Check that a payment callback was signed by the provider."""

    def _require_configured(self) -> None:
        if not self.configured:
            raise PaymentProviderError(f"{self.name.capitalize()} is not configured")

    async def _post(self, url: str, **kwargs: Any) -> dict:
        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
                resp = await client.post(url, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            raise PaymentProviderError(
                f"{self.name.capitalize()} API error: {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise PaymentProviderError(
                f"Failed to reach {self.name.capitalize()} API: {exc}"
            ) from exc
