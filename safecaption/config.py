"""Environment configuration for SafeCaption.

Every setting has a safe default so the API and CLI start without any
environment at all; payment providers simply report themselves as not
configured until their credentials are present.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

DATA_DIR = os.environ.get("SAFECAPTION_DATA_DIR", "")

# ---------------------------------------------------------------------------
# Web
# ---------------------------------------------------------------------------

LOG_LEVEL = os.environ.get("SAFECAPTION_LOG_LEVEL", "INFO")
CORS_ORIGINS = os.environ.get("SAFECAPTION_CORS_ORIGINS", "*")
PUBLIC_URL = os.environ.get("SAFECAPTION_PUBLIC_URL", "http://localhost:8000")

# ---------------------------------------------------------------------------
# Payment providers
# ---------------------------------------------------------------------------

RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID", "")
RAZORPAY_KEY_SECRET = os.environ.get("RAZORPAY_KEY_SECRET", "")
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "")


def data_dir() -> Path:
    """Return the directory holding the JSON data store."""
    if DATA_DIR:
        return Path(DATA_DIR).expanduser()
    return Path.home() / ".safecaption"


def cors_origins() -> list[str]:
    return [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]


def configure_logging(level: str | None = None) -> None:
    """Install the root logging handler used by the API and the CLI."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
