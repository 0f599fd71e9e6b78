"""Pydantic models for API request/response serialization.

Field names follow the public JSON contract (camelCase where the clients
expect it) and mirror the dataclasses in ``safecaption``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from safecaption.validation.models import ValidationOptions, ValidationRequest


# ---------------------------------------------------------------------------
# Validation models
# ---------------------------------------------------------------------------


class ValidateOptionsRequest(BaseModel):
    """Mirrors safecaption.validation.models.ValidationOptions.

    A switch is off only when sent as ``false``; omitted or ``null`` means on.
    """

    model_config = ConfigDict(populate_by_name=True)

    check_hate_speech: Optional[bool] = Field(None, alias="checkHateSpeech")
    check_spam: Optional[bool] = Field(None, alias="checkSpam")
    check_compliance: Optional[bool] = Field(None, alias="checkCompliance")
    optimize_hashtags: Optional[bool] = Field(None, alias="optimizeHashtags")
    predict_engagement: Optional[bool] = Field(None, alias="predictEngagement")


class ValidateRequest(BaseModel):
    """Body of ``POST /api/v1/validate``.

    ``caption`` is optional here so a missing caption can be reported with
    its own error code rather than a generic schema error.
    """

    caption: Optional[str] = None
    hashtags: Optional[list[str]] = None
    options: Optional[ValidateOptionsRequest] = None

    def to_domain(self) -> ValidationRequest:
        opts = self.options or ValidateOptionsRequest()
        return ValidationRequest(
            caption=self.caption or "",
            hashtags=tuple(self.hashtags or ()),
            options=ValidationOptions(
                check_hate_speech=opts.check_hate_speech is not False,
                check_spam=opts.check_spam is not False,
                check_compliance=opts.check_compliance is not False,
                optimize_hashtags=opts.optimize_hashtags is not False,
                predict_engagement=opts.predict_engagement is not False,
            ),
        )


class SuggestionsResponse(BaseModel):
    caption: Optional[str] = None
    hashtags: Optional[list[str]] = None


class MetricsResponse(BaseModel):
    engagementScore: int
    readabilityScore: int
    hashtagRelevance: int


class ValidateResponse(BaseModel):
    """Mirrors safecaption.validation.models.ValidationResponse."""

    safe: bool
    score: int
    issues: list[str] = Field(default_factory=list)
    suggestions: SuggestionsResponse = Field(default_factory=SuggestionsResponse)
    metrics: MetricsResponse
    processingTime: int = 0


class ErrorResponse(BaseModel):
    error: str
    code: str


# ---------------------------------------------------------------------------
# API key models
# ---------------------------------------------------------------------------


class APIKeyCreateRequest(BaseModel):
    name: Optional[str] = None


class APIKeyCreateResponse(BaseModel):
    """Returned once, at creation; the only time the full key is shown."""

    id: str
    key: str
    name: str
    created_at: str


class APIKeyResponse(BaseModel):
    """Mirrors safecaption.auth.models.ApiKeyRecord without the secret."""

    id: str
    name: str
    prefix: str
    created_at: str = ""
    last_used: str = ""
    usage_count: int = 0
    is_active: bool = True


class UsageSummaryResponse(BaseModel):
    subscription_tier: str
    subscription_status: str
    api_calls_count: int
    api_calls_limit: int
    rate_limit_per_minute: int


# ---------------------------------------------------------------------------
# Billing models
# ---------------------------------------------------------------------------


class PlanResponse(BaseModel):
    """Mirrors safecaption.billing.models.Plan."""

    id: str
    name: str
    price_monthly: int
    price_yearly: int
    monthly_call_limit: int
    rate_limit_per_minute: int
    features: list[str] = Field(default_factory=list)


class CheckoutRequest(BaseModel):
    plan: Optional[str] = None
    billing: Optional[str] = None


class RazorpayOrderResponse(BaseModel):
    orderId: str
    amount: int
    currency: str
    description: str
    keyId: str


class StripeCheckoutResponse(BaseModel):
    url: str
    sessionId: str


class PaymentSuccessRequest(BaseModel):
    paymentId: str = ""
    orderId: str = ""
    signature: str = ""


class PaymentSuccessResponse(BaseModel):
    success: bool = True
    message: str = "Subscription updated successfully"
    subscription_tier: str = ""
    api_calls_limit: int = 0


class WebhookAckResponse(BaseModel):
    received: bool = True
    activated: bool = False
