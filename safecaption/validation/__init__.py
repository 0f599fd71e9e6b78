"""Caption validation pipeline.

Rule tables, metric scoring, safety checks and suggestion generation.
"""

from safecaption.validation.models import (
    Metrics,
    Suggestions,
    ValidationOptions,
    ValidationReport,
    ValidationRequest,
    ValidationResponse,
)
from safecaption.validation.validator import ContentValidator, Penalties

__all__ = [
    "ContentValidator",
    "Metrics",
    "Penalties",
    "Suggestions",
    "ValidationOptions",
    "ValidationReport",
    "ValidationRequest",
    "ValidationResponse",
]
