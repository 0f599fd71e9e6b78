"""Billing service: checkout creation and plan activation.

Call sites never branch on the provider; they name one and the service
looks it up. Order records are keyed by the provider's opaque order id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from safecaption.auth.models import Profile, SubscriptionStatus, utc_now
from safecaption.billing.models import CheckoutOrder, OrderStatus, PaymentOrder
from safecaption.billing.plans import PRICING_PLANS, get_paid_plan, parse_cycle
from safecaption.billing.providers import PaymentProvider
from safecaption.billing.stripe import StripeProvider
from safecaption.errors import InputError, NotFoundError, PaymentProviderError

if TYPE_CHECKING:
    from safecaption.auth.store import DataStore

logger = logging.getLogger(__name__)

STRIPE_CHECKOUT_COMPLETED = "checkout.session.completed"


class BillingService:
    """Creates checkouts and activates subscriptions once paid."""

    def __init__(self, store: DataStore, providers: Iterable[PaymentProvider]) -> None:
        self.store = store
        self._providers = {p.name: p for p in providers}

    def provider(self, name: str) -> PaymentProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise PaymentProviderError(f"Unknown payment provider '{name}'") from None

    # -- checkout ------------------------------------------------------------

    async def create_order(
        self,
        provider_name: str,
        profile: Profile,
        plan_id: Optional[str],
        billing: Optional[str] = None,
        success_url: str = "",
        cancel_url: str = "",
    ) -> CheckoutOrder:
        """Open a checkout at *provider_name* and record the pending order."""
        plan = get_paid_plan(plan_id)
        cycle = parse_cycle(billing)
        provider = self.provider(provider_name)

        checkout = await provider.create_order(
            plan, cycle, profile, success_url=success_url, cancel_url=cancel_url
        )
        self.store.save_payment_order(
            PaymentOrder(
                order_id=checkout.order_id,
                user_id=profile.id,
                provider=provider.name,
                plan=plan.id,
                billing_cycle=cycle.value,
                amount=checkout.amount,
                currency=checkout.currency,
            )
        )
        logger.info(
            "Created %s order %s for user %s (%s, %s)",
            provider.name, checkout.order_id, profile.id, plan.id, cycle.value,
        )
        return checkout

    # -- confirmation --------------------------------------------------------

    def verify(self, provider_name: str, payload: bytes, signature: str) -> None:
        if not self.provider(provider_name).verify_signature(payload, signature):
            logger.warning("Rejected %s callback with a bad signature", provider_name)
            raise InputError("Payment signature verification failed", code="INVALID_SIGNATURE")

    def update_subscription(self, user_id: str, plan_id: str) -> Profile:
        """Move a user onto *plan_id* and reset their monthly call count."""
        plan = PRICING_PLANS.get(plan_id)
        if plan is None:
            raise InputError("Invalid plan selected", code="INVALID_PLAN")
        profile = self.store.update_subscription(
            user_id,
            tier=plan.id,
            status=SubscriptionStatus.active.value,
            call_limit=plan.monthly_call_limit,
            reset_count=True,
        )
        if profile is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        return profile

    def activate_order(
        self,
        order_id: str,
        payment_id: str,
        signature: str = "",
        user_id: Optional[str] = None,
    ) -> Profile:
        """Activate the plan recorded on a paid order.

        Idempotent: an order already marked paid returns the current profile
        without touching the subscription again.
        """
        order = self.store.get_payment_order(order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            raise NotFoundError("Payment order not found", code="ORDER_NOT_FOUND")

        if order.status == OrderStatus.paid.value:
            profile = self.store.get_profile(order.user_id)
            if profile is None:
                raise NotFoundError("User not found", code="USER_NOT_FOUND")
            return profile

        profile = self.update_subscription(order.user_id, order.plan)
        self.store.update_payment_order(
            order_id,
            payment_id=payment_id,
            signature=signature,
            status=OrderStatus.paid.value,
            paid_at=utc_now().isoformat(),
        )
        logger.info("Activated %s plan for user %s via order %s", order.plan, order.user_id, order_id)
        return profile

    def confirm_payment(
        self,
        provider_name: str,
        order_id: str,
        payment_id: str,
        payload: bytes,
        signature: str,
        user_id: Optional[str] = None,
    ) -> Profile:
        """Verify a payment callback and activate its order."""
        self.verify(provider_name, payload, signature)
        return self.activate_order(order_id, payment_id, signature=signature, user_id=user_id)

    def handle_stripe_webhook(self, payload: bytes, signature: str) -> Optional[Profile]:
        """Process a Stripe webhook; returns the profile when a plan was activated."""
        self.verify(StripeProvider.name, payload, signature)
        event = StripeProvider.parse_event(payload)
        if event.get("type") != STRIPE_CHECKOUT_COMPLETED:
            logger.debug("Ignoring Stripe event %s", event.get("type"))
            return None

        data = event.get("data")
        session = data.get("object") if isinstance(data, dict) else None
        if not isinstance(session, dict):
            raise InputError("Malformed webhook payload", code="INVALID_JSON")
        order_id = session.get("id", "")
        payment_id = session.get("subscription") or session.get("payment_intent") or ""
        return self.activate_order(order_id, payment_id)
