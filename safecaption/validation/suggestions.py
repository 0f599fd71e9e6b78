"""Hashtag optimization and caption clean-up suggestions."""

from __future__ import annotations

import re
from typing import Sequence

from safecaption.validation.rules import DEFAULT_RULES, MAX_HASHTAGS, RuleSet

_MASK = "***"


def optimize_hashtags(hashtags: Sequence[str], rules: RuleSet = DEFAULT_RULES) -> list[str]:
    """Normalize, de-duplicate and pad a hashtag list up to Instagram's limit.

    Tags are lower-cased and prefixed with ``#``; duplicates are dropped
    keeping the first occurrence. The list is cut at 30 entries and then
    topped up from the trending fallback list.
    """
    normalized = []
    for tag in hashtags:
        tag = tag.lower()
        normalized.append(tag if tag.startswith("#") else f"#{tag}")

    optimized = list(dict.fromkeys(normalized))[:MAX_HASHTAGS]

    for trend in rules.trending_hashtags:
        if len(optimized) >= MAX_HASHTAGS:
            break
        if trend not in optimized:
            optimized.append(trend)

    return optimized


def sanitize_caption(caption: str, rules: RuleSet = DEFAULT_RULES) -> str:
    """Best-effort rewrite of an unsafe caption.

    Masks inappropriate terms, deletes spam phrases and tames runs of
    punctuation. The result is not guaranteed to read well.
    """
    sanitized = caption

    for pattern in rules.inappropriate:
        sanitized = pattern.sub(_MASK, sanitized)

    for phrase in rules.spam_phrases:
        sanitized = re.sub(re.escape(phrase), "", sanitized, flags=re.IGNORECASE)

    sanitized = re.sub(r"!{3,}", "!", sanitized)
    sanitized = re.sub(r"\?{3,}", "?", sanitized)
    sanitized = re.sub(r"\.{4,}", "...", sanitized)

    return sanitized.strip()
