"""Auth domain models: profiles, API keys, sessions and usage logs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Tier(str, Enum):
    """Subscription tiers, cheapest first."""

    free = "free"
    pro = "pro"
    enterprise = "enterprise"


class SubscriptionStatus(str, Enum):
    active = "active"
    canceled = "canceled"
    past_due = "past_due"


FREE_CALL_LIMIT = 100


@dataclass
class Profile:
    """The owning user of API keys, with plan and lifetime call counters."""

    id: str
    email: str
    subscription_tier: str = Tier.free.value
    subscription_status: str = SubscriptionStatus.active.value
    api_calls_count: int = 0
    api_calls_limit: int = FREE_CALL_LIMIT
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now().isoformat()
        if not self.updated_at:
            self.updated_at = self.created_at

    @property
    def quota_exhausted(self) -> bool:
        return self.api_calls_count >= self.api_calls_limit


@dataclass
class ApiKeyRecord:
    """An issued API key. The core only reads it and bumps its counters."""

    id: str
    user_id: str
    key: str
    name: str
    created_at: str = ""
    last_used: str = ""
    usage_count: int = 0
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now().isoformat()

    @property
    def prefix(self) -> str:
        """First 8 characters, safe to display and log."""
        return self.key[:8]


@dataclass
class Session:
    """A signed-in dashboard session."""

    token: str
    user_id: str
    created_at: str = ""
    expires_at: str = ""


@dataclass
class UsageLog:
    """One metered API call."""

    id: str
    api_key_id: str
    endpoint: str
    status_code: int
    response_time: int
    ip_address: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = utc_now().isoformat()
