"""Pricing plans and monthly call quotas.

Monthly quotas here are separate from the per-minute rate limits enforced
by the access gate.
"""

from __future__ import annotations

from safecaption.auth.models import FREE_CALL_LIMIT, Tier
from safecaption.billing.models import BillingCycle, Plan
from safecaption.errors import InputError

PRICING_PLANS: dict[str, Plan] = {
    Tier.free.value: Plan(
        id=Tier.free.value,
        name="Free",
        price_monthly=0,
        price_yearly=0,
        monthly_call_limit=FREE_CALL_LIMIT,
        features=(
            "100 API calls/month",
            "10 requests/minute",
            "Community support",
            "Basic validation",
        ),
    ),
    Tier.pro.value: Plan(
        id=Tier.pro.value,
        name="Pro",
        price_monthly=239900,  # ₹2,399
        price_yearly=2499900,  # ₹24,999
        monthly_call_limit=10_000,
        features=(
            "10,000 API calls/month",
            "60 requests/minute",
            "Email support",
            "Advanced validation",
            "Analytics dashboard",
        ),
    ),
    Tier.enterprise.value: Plan(
        id=Tier.enterprise.value,
        name="Enterprise",
        price_monthly=819900,  # ₹8,199
        price_yearly=8199900,  # ₹81,999
        monthly_call_limit=100_000,
        features=(
            "100,000 API calls/month",
            "1,000 requests/minute",
            "Priority support",
            "SLA guarantee",
        ),
    ),
}

CURRENCY = "INR"


def get_paid_plan(plan_id: str | None) -> Plan:
    """Return a purchasable plan, rejecting free and unknown ids."""
    plan = PRICING_PLANS.get(plan_id or "")
    if plan is None or plan.price_monthly == 0:
        raise InputError("Invalid plan selected", code="INVALID_PLAN")
    return plan


def parse_cycle(value: str | None) -> BillingCycle:
    if not value:
        return BillingCycle.monthly
    try:
        return BillingCycle(value)
    except ValueError:
        raise InputError(f"Invalid billing cycle '{value}'", code="INVALID_PLAN") from None


def format_price(amount: int) -> str:
    """Render an amount in paise as rupees, e.g. ``₹2,399``."""
    return f"₹{amount // 100:,}"
