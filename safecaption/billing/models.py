"""Billing domain models: plans, billing cycles and payment orders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class BillingCycle(str, Enum):
    monthly = "monthly"
    yearly = "yearly"


class OrderStatus(str, Enum):
    created = "created"
    paid = "paid"
    failed = "failed"
    cancelled = "cancelled"


@dataclass(frozen=True)
class Plan:
    """A purchasable subscription plan. Prices are in paise."""

    id: str
    name: str
    price_monthly: int
    price_yearly: int
    monthly_call_limit: int
    features: tuple[str, ...] = ()

    def price(self, cycle: BillingCycle) -> int:
        return self.price_yearly if cycle == BillingCycle.yearly else self.price_monthly

    def describe(self, cycle: BillingCycle) -> str:
        period = "Annual" if cycle == BillingCycle.yearly else "Monthly"
        return f"SafeCaption {self.name} Plan - {period}"


@dataclass
class PaymentOrder:
    """Tracks a checkout from creation at the provider until it is paid."""

    order_id: str
    user_id: str
    provider: str
    plan: str
    billing_cycle: str
    amount: int
    currency: str = "INR"
    payment_id: str = ""
    signature: str = ""
    status: str = OrderStatus.created.value
    created_at: str = ""
    paid_at: str = ""
    metadata: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class CheckoutOrder:
    """What a provider hands back when a checkout is created."""

    order_id: str
    amount: int
    currency: str
    description: str
    checkout_url: str = ""
    public_key: str = ""
