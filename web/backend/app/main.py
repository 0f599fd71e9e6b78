"""FastAPI application for the SafeCaption API.

Provides REST API endpoints wrapping the ``safecaption`` package for:
- Caption validation (``POST /api/v1/validate``), gated by API key
- API key management and usage counters
- Pricing plans and subscription billing (Razorpay, Stripe)
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from safecaption import __version__, config
from safecaption.errors import SafeCaptionError
from web.backend.app.routers import billing, keys, validate

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SafeCaption API",
    description=(
        "Heuristic content moderation for Instagram captions: safety checks, "
        "engagement metrics and hashtag suggestions behind API-key access."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(SafeCaptionError)
async def safecaption_error_handler(request: Request, exc: SafeCaptionError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "code": "INVALID_REQUEST"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(validate.router)
app.include_router(keys.router)
app.include_router(billing.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "SafeCaption API",
        "version": __version__,
        "description": "Instagram caption validation API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
