"""API key router -- issue, list and revoke keys, and show usage counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from safecaption.auth.gate import rate_limit_for_tier
from safecaption.auth.models import ApiKeyRecord, Profile
from safecaption.auth.store import DataStore
from safecaption.errors import InputError, NotFoundError
from web.backend.app.middleware.auth import get_current_user, get_store
from web.backend.app.models.api import (
    APIKeyCreateRequest,
    APIKeyCreateResponse,
    APIKeyResponse,
    UsageSummaryResponse,
)

router = APIRouter(prefix="/api", tags=["keys"])


def _key_response(record: ApiKeyRecord) -> APIKeyResponse:
    return APIKeyResponse(
        id=record.id,
        name=record.name,
        prefix=record.prefix,
        created_at=record.created_at,
        last_used=record.last_used,
        usage_count=record.usage_count,
        is_active=record.is_active,
    )


@router.post("/keys", response_model=APIKeyCreateResponse)
async def create_api_key(
    req: APIKeyCreateRequest,
    user: Profile = Depends(get_current_user),
    store: DataStore = Depends(get_store),
):
    """Create a new API key. The full key is only returned here."""
    name = (req.name or "").strip()
    if not name:
        raise InputError("Key name is required", code="MISSING_KEY_NAME")

    record = store.create_api_key(user.id, name)
    return APIKeyCreateResponse(
        id=record.id,
        key=record.key,
        name=record.name,
        created_at=record.created_at,
    )


@router.get("/keys", response_model=list[APIKeyResponse])
async def list_api_keys(
    user: Profile = Depends(get_current_user),
    store: DataStore = Depends(get_store),
):
    """List the caller's API keys (secret shown as a prefix only)."""
    return [_key_response(k) for k in store.list_api_keys(user.id)]


@router.delete("/keys/{key_id}")
async def delete_api_key(
    key_id: str,
    user: Profile = Depends(get_current_user),
    store: DataStore = Depends(get_store),
):
    """Delete one of the caller's API keys."""
    if not store.delete_api_key(user.id, key_id):
        raise NotFoundError("API key not found", code="KEY_NOT_FOUND")
    return {"deleted": True}


@router.get("/usage", response_model=UsageSummaryResponse)
async def usage_summary(user: Profile = Depends(get_current_user)):
    """Return the caller's plan, monthly usage and per-minute rate limit."""
    return UsageSummaryResponse(
        subscription_tier=user.subscription_tier,
        subscription_status=user.subscription_status,
        api_calls_count=user.api_calls_count,
        api_calls_limit=user.api_calls_limit,
        rate_limit_per_minute=rate_limit_for_tier(user.subscription_tier),
    )
