"""Access gate: API-key authentication, rate limiting and usage accounting.

Each request walks the same sequence::

    key present -> key format -> key lookup -> monthly quota -> rate window

and ends ALLOWED or DENIED. Denials raise ``AuthError`` or ``QuotaError``.

Store failures are handled asymmetrically: a failed key lookup denies the
request, a failed rate-window count lets it through, and a failed usage
write is logged and dropped. All counters are read-then-written without
locking, so limits are approximate when one key sends concurrent requests.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from safecaption.auth.models import ApiKeyRecord, Profile, Tier, UsageLog, utc_now
from safecaption.auth.store import API_KEY_PREFIX, DataStore
from safecaption.errors import AuthError, DependencyError, QuotaError

logger = logging.getLogger(__name__)

# Requests per trailing minute, per API key. Independent of the monthly
# call limits stored on each profile.
RATE_LIMITS_PER_MINUTE: dict[str, int] = {
    Tier.free.value: 10,
    Tier.pro.value: 60,
    Tier.enterprise.value: 1000,
}

DEFAULT_RATE_LIMIT = RATE_LIMITS_PER_MINUTE[Tier.free.value]
RATE_WINDOW = timedelta(seconds=60)
RETRY_AFTER_SECONDS = 60

_BEARER = "Bearer "


@dataclass(frozen=True)
class AuthenticatedKey:
    """A validated key together with its owning profile."""

    key: ApiKeyRecord
    profile: Profile


@dataclass(frozen=True)
class RateLimitStatus:
    """Result of the rate-window check.

    ``limit`` and ``remaining`` are ``None`` when the window could not be
    counted and the request was let through.
    """

    allowed: bool
    limit: Optional[int] = None
    remaining: Optional[int] = None


def rate_limit_for_tier(tier: str) -> int:
    return RATE_LIMITS_PER_MINUTE.get(tier, DEFAULT_RATE_LIMIT)


def clean_key(raw_key: str) -> str:
    """Strip an optional ``Bearer`` prefix and surrounding whitespace."""
    key = raw_key.strip()
    if key.startswith(_BEARER):
        key = key[len(_BEARER):]
    return key.strip()


class AccessGate:
    """Gatekeeper in front of the validation endpoint."""

    def __init__(
        self,
        store: DataStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self._clock = clock

    @staticmethod
    def extract_key(
        authorization: Optional[str],
        x_api_key: Optional[str],
    ) -> Optional[str]:
        """Pick the raw key from the request headers; Authorization wins."""
        return authorization or x_api_key or None

    def authenticate(self, raw_key: Optional[str]) -> AuthenticatedKey:
        """Resolve *raw_key* to an active key with quota left.

        Raises ``AuthError`` for a missing, malformed, unknown or inactive
        key and ``QuotaError`` when the owner's monthly calls are used up.
        """
        if not raw_key:
            raise AuthError(
                "API key required. Provide it in the Authorization header.",
                code="MISSING_API_KEY",
            )

        key = clean_key(raw_key)
        if not key.startswith(API_KEY_PREFIX):
            raise AuthError("Invalid API key format")

        try:
            found = self.store.get_api_key_with_profile(key)
        except DependencyError:
            logger.exception("Key lookup failed; denying request")
            raise AuthError("Failed to validate API key")

        if found is None:
            logger.info("Rejected unknown API key %s...", key[:8])
            raise AuthError("Invalid API key")

        record, profile = found
        if not record.is_active:
            logger.info("Rejected inactive API key %s", record.prefix)
            raise AuthError("Invalid API key")

        if profile.quota_exhausted:
            logger.info(
                "Monthly quota exhausted for user %s (%d/%d)",
                profile.id,
                profile.api_calls_count,
                profile.api_calls_limit,
            )
            raise QuotaError(
                "API limit exceeded. Please upgrade your plan.",
                code="QUOTA_EXCEEDED",
            )

        return AuthenticatedKey(key=record, profile=profile)

    def check_rate_limit(self, auth: AuthenticatedKey) -> RateLimitStatus:
        """Count the key's calls in the trailing minute against its tier."""
        limit = rate_limit_for_tier(auth.profile.subscription_tier)
        since = self._clock() - RATE_WINDOW

        try:
            used = self.store.count_usage_since(auth.key.id, since)
        except DependencyError:
            logger.warning("Rate window unavailable for key %s; allowing", auth.key.prefix, exc_info=True)
            return RateLimitStatus(allowed=True)

        if used >= limit:
            logger.info("Rate limit hit for key %s (%d/%d per minute)", auth.key.prefix, used, limit)
            return RateLimitStatus(allowed=False, limit=limit, remaining=0)

        return RateLimitStatus(allowed=True, limit=limit, remaining=limit - used)

    def enforce_rate_limit(self, auth: AuthenticatedKey) -> RateLimitStatus:
        """Like ``check_rate_limit`` but raises ``QuotaError`` when denied."""
        status = self.check_rate_limit(auth)
        if not status.allowed:
            raise QuotaError(
                "Rate limit exceeded",
                code="RATE_LIMIT_EXCEEDED",
                headers={
                    "X-RateLimit-Limit": str(status.limit),
                    "X-RateLimit-Remaining": "0",
                    "Retry-After": str(RETRY_AFTER_SECONDS),
                },
            )
        return status

    def track_usage(
        self,
        auth: AuthenticatedKey,
        endpoint: str,
        status_code: int,
        response_time: int,
        ip_address: Optional[str] = None,
    ) -> None:
        """Record a completed call: usage log, key counters, user counter.

        Three independent writes. A failure part-way leaves the earlier
        writes in place; it is logged and never surfaced to the caller.
        """
        now = self._clock()
        try:
            self.store.record_usage(
                UsageLog(
                    id=str(uuid.uuid4()),
                    api_key_id=auth.key.id,
                    endpoint=endpoint,
                    status_code=status_code,
                    response_time=response_time,
                    ip_address=ip_address or "",
                    created_at=now.isoformat(),
                )
            )
            self.store.touch_api_key(auth.key.id, now)
            self.store.increment_api_calls(auth.profile.id)
        except DependencyError:
            logger.warning("Failed to track usage for key %s", auth.key.prefix, exc_info=True)
