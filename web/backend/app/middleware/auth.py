"""Auth middleware -- FastAPI dependencies for the store, gate and sessions.

Two credentials are in play:
1. ``Authorization: Bearer sk_...`` or ``X-API-Key: sk_...`` on the
   validation endpoint, checked by the access gate.
2. ``Authorization: Bearer <session_token>`` on dashboard endpoints (key
   management, billing), resolved by ``get_current_user``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from safecaption.auth.gate import AccessGate
from safecaption.auth.models import Profile
from safecaption.auth.store import DataStore, JsonDataStore
from safecaption.billing.providers import PaymentProvider
from safecaption.billing.razorpay import RazorpayProvider
from safecaption.billing.service import BillingService
from safecaption.billing.stripe import StripeProvider
from safecaption.errors import AuthError

# Shared instances
_store: Optional[DataStore] = None
_providers: Optional[list[PaymentProvider]] = None


def get_store() -> DataStore:
    """Return the singleton data store."""
    global _store
    if _store is None:
        _store = JsonDataStore()
    return _store


def get_gate(store: DataStore = Depends(get_store)) -> AccessGate:
    return AccessGate(store)


def get_providers() -> list[PaymentProvider]:
    """Return the configured payment providers (Razorpay and Stripe)."""
    global _providers
    if _providers is None:
        _providers = [RazorpayProvider(), StripeProvider()]
    return _providers


def get_billing(
    store: DataStore = Depends(get_store),
    providers: list[PaymentProvider] = Depends(get_providers),
) -> BillingService:
    return BillingService(store, providers)


async def get_current_user(
    authorization: Optional[str] = Header(None),
    store: DataStore = Depends(get_store),
) -> Profile:
    """Resolve the dashboard session token to its profile.

    Raises ``AuthError`` (401) when the header is missing, not a bearer
    token, or the session is unknown or expired.
    """
    if not authorization:
        raise AuthError("Unauthorized", code="UNAUTHORIZED")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Unauthorized", code="UNAUTHORIZED")

    profile = store.get_session_profile(token.strip())
    if profile is None:
        raise AuthError("Invalid session", code="INVALID_SESSION")
    return profile
