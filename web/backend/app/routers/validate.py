"""Validation router -- ``POST /api/v1/validate``.

Sequence per request: access gate (key, quota, rate window), body parsing,
content validation, usage logging, response with rate-limit headers.
The body is read only after the gate passes, so unauthenticated callers
always get a 401 regardless of what they sent.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from safecaption.auth.gate import DEFAULT_RATE_LIMIT, AccessGate
from safecaption.errors import InputError, InternalError
from safecaption.validation.models import ValidationRequest
from safecaption.validation.rules import MAX_CAPTION_LENGTH, text_length
from safecaption.validation.validator import ContentValidator
from web.backend.app.middleware.auth import get_gate
from web.backend.app.models.api import ErrorResponse, ValidateRequest, ValidateResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["validation"])

VALIDATE_ENDPOINT = "/api/v1/validate"

_validator = ContentValidator()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _parse_body(request: Request) -> ValidationRequest:
    """Read and check the JSON body; raises ``InputError`` on bad input."""
    try:
        payload = await request.json()
    except ValueError:
        raise InputError("Request body must be valid JSON", code="INVALID_JSON")

    try:
        body = ValidateRequest.model_validate(payload)
    except ValidationError:
        raise InputError("Invalid request body", code="INVALID_REQUEST")

    if not body.caption:
        raise InputError("Caption is required", code="MISSING_CAPTION")

    # Lone surrogates survive JSON decoding but cannot be measured or echoed back
    try:
        for text in (body.caption, *(body.hashtags or ())):
            text.encode("utf-8")
    except UnicodeEncodeError:
        raise InputError("Request contains invalid Unicode text", code="INVALID_REQUEST")

    if text_length(body.caption) > MAX_CAPTION_LENGTH:
        raise InputError(
            f"Caption exceeds Instagram limit of {MAX_CAPTION_LENGTH} characters",
            code="CAPTION_TOO_LONG",
        )

    return body.to_domain()


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For") or request.headers.get("CF-Connecting-IP")
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.post(
    VALIDATE_ENDPOINT,
    response_model=ValidateResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Validate an Instagram caption",
)
async def validate_caption(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    gate: AccessGate = Depends(get_gate),
):
    """Score a caption for safety and engagement.

    Authenticate with ``Authorization: Bearer sk_...`` or ``X-API-Key``.
    """
    start = time.monotonic()

    auth = gate.authenticate(gate.extract_key(authorization, x_api_key))
    rate = gate.enforce_rate_limit(auth)

    validation_request = await _parse_body(request)

    try:
        result = _validator.run(validation_request)
    except Exception:
        logger.exception("Validation pipeline failed")
        raise InternalError("Internal server error")

    elapsed_ms = int((time.monotonic() - start) * 1000)
    result = dataclasses.replace(result, processing_time=elapsed_ms)

    gate.track_usage(auth, VALIDATE_ENDPOINT, 200, elapsed_ms, _client_ip(request))

    return JSONResponse(
        content=result.to_dict(),
        headers={
            "X-Processing-Time": f"{elapsed_ms}ms",
            "X-RateLimit-Limit": str(rate.limit if rate.limit is not None else DEFAULT_RATE_LIMIT),
            "X-RateLimit-Remaining": str(rate.remaining if rate.remaining is not None else 0),
        },
    )
