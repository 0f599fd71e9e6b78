"""Error taxonomy shared by the validation core, the access gate and billing.

Each error carries a machine-readable ``code`` and the HTTP status the web
layer answers with, so routers never translate exceptions by hand.
"""

from __future__ import annotations

from typing import Optional


class SafeCaptionError(Exception):
    """Base class for every error surfaced to API clients."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.headers = headers or {}

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


class AuthError(SafeCaptionError):
    """Missing, malformed, unknown or inactive API key or session."""

    status_code = 401
    default_code = "INVALID_API_KEY"


class QuotaError(SafeCaptionError):
    """Monthly call quota or per-minute rate limit exceeded."""

    status_code = 429
    default_code = "RATE_LIMIT_EXCEEDED"


class InputError(SafeCaptionError):
    """Missing or invalid request data."""

    status_code = 400
    default_code = "INVALID_REQUEST"


class NotFoundError(SafeCaptionError):
    status_code = 404
    default_code = "NOT_FOUND"


class DependencyError(SafeCaptionError):
    """An external collaborator (data store, payment provider) failed."""

    status_code = 502
    default_code = "DEPENDENCY_ERROR"


class StoreError(DependencyError):
    """The data store could not be read or written."""

    status_code = 500
    default_code = "INTERNAL_ERROR"


class PaymentProviderError(DependencyError):
    default_code = "PAYMENT_PROVIDER_ERROR"


class InternalError(SafeCaptionError):
    """Unexpected failure inside the validation pipeline."""
