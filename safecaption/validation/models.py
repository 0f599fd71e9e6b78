"""Data models for the caption validation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ValidationOptions:
    """Per-request switches. Every check is enabled unless turned off."""

    check_hate_speech: bool = True
    check_spam: bool = True
    check_compliance: bool = True
    optimize_hashtags: bool = True
    predict_engagement: bool = True  # accepted for API compatibility; metrics always run


@dataclass(frozen=True)
class ValidationRequest:
    """A caption and its hashtags as submitted by the client."""

    caption: str
    hashtags: tuple[str, ...] = ()
    options: ValidationOptions = field(default_factory=ValidationOptions)

    def __post_init__(self) -> None:
        if not isinstance(self.hashtags, tuple):
            object.__setattr__(self, "hashtags", tuple(self.hashtags))


@dataclass(frozen=True)
class Metrics:
    """Engagement-oriented scores, each in [0, 100]."""

    engagement_score: int
    readability_score: int
    hashtag_relevance: int


@dataclass(frozen=True)
class Suggestions:
    caption: Optional[str] = None
    hashtags: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of the safety checks plus metrics, before suggestions."""

    safe: bool
    score: int
    issues: tuple[str, ...]
    metrics: Metrics


@dataclass(frozen=True)
class ValidationResponse:
    """Full response body of a validation call."""

    safe: bool
    score: int
    issues: tuple[str, ...]
    suggestions: Suggestions
    metrics: Metrics
    processing_time: int = 0

    def to_dict(self) -> dict:
        """Serialize using the camelCase field names of the public API."""
        suggestions: dict = {}
        if self.suggestions.caption is not None:
            suggestions["caption"] = self.suggestions.caption
        if self.suggestions.hashtags is not None:
            suggestions["hashtags"] = list(self.suggestions.hashtags)
        return {
            "safe": self.safe,
            "score": self.score,
            "issues": list(self.issues),
            "suggestions": suggestions,
            "metrics": {
                "engagementScore": self.metrics.engagement_score,
                "readabilityScore": self.metrics.readability_score,
                "hashtagRelevance": self.metrics.hashtag_relevance,
            },
            "processingTime": self.processing_time,
        }
