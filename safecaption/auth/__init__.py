"""API-key auth, rate limiting, usage metering and the backing data store."""

from safecaption.auth.gate import AccessGate, AuthenticatedKey, RateLimitStatus
from safecaption.auth.models import ApiKeyRecord, Profile, Session, Tier, UsageLog
from safecaption.auth.store import DataStore, JsonDataStore

__all__ = [
    "AccessGate",
    "ApiKeyRecord",
    "AuthenticatedKey",
    "DataStore",
    "JsonDataStore",
    "Profile",
    "RateLimitStatus",
    "Session",
    "Tier",
    "UsageLog",
]
