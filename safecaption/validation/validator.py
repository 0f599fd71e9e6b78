"""Content validator: safety checks, score aggregation and suggestions.

Checks run in a fixed order (hate speech, spam, compliance). Inside each
pattern table the first match wins, so a category is reported at most once
per caption. The score starts at 100, loses a fixed penalty per triggered
check and is clamped to [0, 100] at the very end.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from safecaption.validation.models import (
    Metrics,
    Suggestions,
    ValidationReport,
    ValidationRequest,
    ValidationResponse,
)
from safecaption.validation.rules import (
    CAPTION_HASHTAG_PATTERN,
    DEFAULT_RULES,
    SPAM_EMOJI_PATTERN,
    RuleSet,
    contains_phrase,
    first_match,
)
from safecaption.validation.scorer import engagement_score, hashtag_relevance, readability_score
from safecaption.validation.suggestions import optimize_hashtags, sanitize_caption

# ---------------------------------------------------------------------------
# Issue messages
# ---------------------------------------------------------------------------

ISSUE_INAPPROPRIATE = "Potentially inappropriate content detected"
ISSUE_SPAM = "Spam-like content detected"
ISSUE_EMOJI = "Excessive emoji usage detected"
ISSUE_HASHTAGS = "Too many hashtags in caption text"
ISSUE_MISLEADING = "Potentially misleading claims detected"

MAX_EMOJI = 15
MAX_CAPTION_HASHTAGS = 10


@dataclass(frozen=True)
class Penalties:
    """Points subtracted from the score per triggered check."""

    inappropriate: int = 30
    spam: int = 20
    emoji: int = 10
    caption_hashtags: int = 10
    misleading: int = 25


DEFAULT_PENALTIES = Penalties()


@dataclass
class _Findings:
    safe: bool = True
    score: int = 100
    issues: list[str] = field(default_factory=list)

    def flag(self, issue: str, penalty: int, unsafe: bool = True) -> None:
        self.issues.append(issue)
        self.score -= penalty
        if unsafe:
            self.safe = False


def clamp_score(score: int) -> int:
    return max(0, min(100, score))


class ContentValidator:
    """Stateless caption validator; safe to share across requests."""

    def __init__(
        self,
        rules: RuleSet = DEFAULT_RULES,
        penalties: Penalties = DEFAULT_PENALTIES,
    ) -> None:
        self.rules = rules
        self.penalties = penalties

    # -- checks --------------------------------------------------------------

    def _check_hate_speech(self, caption: str, findings: _Findings) -> None:
        if first_match(self.rules.inappropriate, caption) is not None:
            findings.flag(ISSUE_INAPPROPRIATE, self.penalties.inappropriate)

    def _check_spam(self, caption: str, findings: _Findings) -> None:
        if contains_phrase(self.rules.spam_phrases, caption) is not None:
            findings.flag(ISSUE_SPAM, self.penalties.spam)

        # Emoji and hashtag stuffing lower the score but do not make a caption unsafe
        if len(SPAM_EMOJI_PATTERN.findall(caption)) > MAX_EMOJI:
            findings.flag(ISSUE_EMOJI, self.penalties.emoji, unsafe=False)

        if len(CAPTION_HASHTAG_PATTERN.findall(caption)) > MAX_CAPTION_HASHTAGS:
            findings.flag(ISSUE_HASHTAGS, self.penalties.caption_hashtags, unsafe=False)

    def _check_compliance(self, caption: str, findings: _Findings) -> None:
        if first_match(self.rules.misleading, caption) is not None:
            findings.flag(ISSUE_MISLEADING, self.penalties.misleading)

    # -- public API ----------------------------------------------------------

    def compute_metrics(self, request: ValidationRequest) -> Metrics:
        return Metrics(
            engagement_score=engagement_score(
                request.caption, request.hashtags, self.rules.call_to_action
            ),
            readability_score=readability_score(request.caption),
            hashtag_relevance=hashtag_relevance(request.caption, request.hashtags),
        )

    def validate(self, request: ValidationRequest) -> ValidationReport:
        """Run the enabled safety checks and compute metrics."""
        caption = request.caption
        options = request.options
        findings = _Findings()

        if options.check_hate_speech:
            self._check_hate_speech(caption, findings)
        if options.check_spam:
            self._check_spam(caption, findings)
        if options.check_compliance:
            self._check_compliance(caption, findings)

        return ValidationReport(
            safe=findings.safe,
            score=clamp_score(findings.score),
            issues=tuple(findings.issues),
            metrics=self.compute_metrics(request),
        )

    def suggest(self, request: ValidationRequest, report: ValidationReport) -> Suggestions:
        """Build hashtag and caption suggestions for a validated request."""
        hashtags = None
        if request.options.optimize_hashtags and request.hashtags:
            hashtags = tuple(optimize_hashtags(request.hashtags, self.rules))

        caption = None
        if not report.safe and request.caption:
            caption = sanitize_caption(request.caption, self.rules)

        return Suggestions(caption=caption, hashtags=hashtags)

    def run(self, request: ValidationRequest, processing_time: int = 0) -> ValidationResponse:
        """Validate *request* and assemble the complete response."""
        report = self.validate(request)
        return ValidationResponse(
            safe=report.safe,
            score=report.score,
            issues=report.issues,
            suggestions=self.suggest(request, report),
            metrics=report.metrics,
            processing_time=processing_time,
        )
