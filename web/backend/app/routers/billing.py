"""Billing router -- plans, Razorpay orders, Stripe checkout and webhooks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request

from safecaption import config
from safecaption.auth.gate import rate_limit_for_tier
from safecaption.auth.models import Profile
from safecaption.billing.plans import PRICING_PLANS
from safecaption.billing.razorpay import RazorpayProvider
from safecaption.billing.service import BillingService
from safecaption.billing.stripe import StripeProvider
from web.backend.app.middleware.auth import get_billing, get_current_user
from web.backend.app.models.api import (
    CheckoutRequest,
    PaymentSuccessRequest,
    PaymentSuccessResponse,
    PlanResponse,
    RazorpayOrderResponse,
    StripeCheckoutResponse,
    WebhookAckResponse,
)

router = APIRouter(prefix="/api", tags=["billing"])


@router.get("/plans", response_model=list[PlanResponse])
async def list_plans():
    """Return the pricing table."""
    return [
        PlanResponse(
            id=plan.id,
            name=plan.name,
            price_monthly=plan.price_monthly,
            price_yearly=plan.price_yearly,
            monthly_call_limit=plan.monthly_call_limit,
            rate_limit_per_minute=rate_limit_for_tier(plan.id),
            features=list(plan.features),
        )
        for plan in PRICING_PLANS.values()
    ]


# ---------------------------------------------------------------------------
# Razorpay
# ---------------------------------------------------------------------------


@router.post("/razorpay/create-order", response_model=RazorpayOrderResponse)
async def create_razorpay_order(
    req: CheckoutRequest,
    user: Profile = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
):
    """Create a Razorpay order for the checkout widget."""
    order = await billing.create_order(RazorpayProvider.name, user, req.plan, req.billing)
    return RazorpayOrderResponse(
        orderId=order.order_id,
        amount=order.amount,
        currency=order.currency,
        description=order.description,
        keyId=order.public_key,
    )


@router.post("/payment-success", response_model=PaymentSuccessResponse)
async def razorpay_payment_success(
    req: PaymentSuccessRequest,
    user: Profile = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
):
    """Verify the Razorpay checkout callback and activate the paid plan."""
    profile = billing.confirm_payment(
        RazorpayProvider.name,
        order_id=req.orderId,
        payment_id=req.paymentId,
        payload=RazorpayProvider.callback_payload(req.orderId, req.paymentId),
        signature=req.signature,
        user_id=user.id,
    )
    return PaymentSuccessResponse(
        subscription_tier=profile.subscription_tier,
        api_calls_limit=profile.api_calls_limit,
    )


# ---------------------------------------------------------------------------
# Stripe
# ---------------------------------------------------------------------------


@router.post("/stripe/create-checkout", response_model=StripeCheckoutResponse)
async def create_stripe_checkout(
    req: CheckoutRequest,
    user: Profile = Depends(get_current_user),
    billing: BillingService = Depends(get_billing),
):
    """Create a Stripe checkout session and return its hosted URL."""
    base = config.PUBLIC_URL.rstrip("/")
    order = await billing.create_order(
        StripeProvider.name,
        user,
        req.plan,
        req.billing,
        success_url=f"{base}/dashboard?success=true&plan={req.plan}",
        cancel_url=f"{base}/pricing?canceled=true",
    )
    return StripeCheckoutResponse(url=order.checkout_url, sessionId=order.order_id)


@router.post("/stripe/webhook", response_model=WebhookAckResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
    billing: BillingService = Depends(get_billing),
):
    """Receive Stripe events; completed checkouts activate the plan."""
    payload = await request.body()
    profile = billing.handle_stripe_webhook(payload, stripe_signature)
    return WebhookAckResponse(activated=profile is not None)
