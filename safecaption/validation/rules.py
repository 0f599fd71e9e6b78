"""Heuristic rule tables used by the checks, the scorer and the sanitizer.

All tables are compiled once at import and never mutated. ``RuleSet``
bundles them so a validator can be built against alternative tables.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Instagram limits
# ---------------------------------------------------------------------------

MAX_CAPTION_LENGTH = 2200
MAX_HASHTAGS = 30

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------

# Word characters and boundaries are ASCII-only: "#旅行" is not a hashtag
# token and "éspam" still has a boundary before "spam".

# Hate, abuse, follow-for-follow spam and solicitation
INAPPROPRIATE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE | re.ASCII)
    for p in [
        r"\b(hate|violence|abuse|harassment)\b",
        r"\b(spam|follow4follow|f4f|l4l)\b",
        r"\b(click\s*link|bio\s*link|dm\s*me)\b",
        r"\b(free\s*followers|buy\s*followers)\b",
    ]
)

# Plain phrases, matched case-insensitively by containment
SPAM_PHRASES: tuple[str, ...] = (
    "DM for collab",
    "Check my bio",
    "Link in bio",
    "100% real",
    "No scam",
    "Get rich quick",
)

MISLEADING_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE | re.ASCII)
    for p in [
        r"guaranteed\s*(results|success|money)",
        r"\b(cure|miracle|instant\s*results)\b",
        r"\b(medical\s*advice|financial\s*advice)\b",
    ]
)

CALL_TO_ACTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(comment|share|like|follow|tag|save)\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\b(let me know|thoughts|agree|disagree)\b", re.IGNORECASE | re.ASCII),
    re.compile(r"\?$", re.MULTILINE),
)

# Emoji blocks counted by the spam check
SPAM_EMOJI_PATTERN = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\u2600-\u26FF\u2700-\u27BF]"
)

# Narrower range rewarded by the engagement score
ENGAGEMENT_EMOJI_PATTERN = re.compile("[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF]")

CAPTION_HASHTAG_PATTERN = re.compile(r"#\w+", re.ASCII)

TRENDING_HASHTAGS: tuple[str, ...] = (
    "#reels",
    "#instagram",
    "#viral",
    "#explore",
    "#instagood",
)


@dataclass(frozen=True)
class RuleSet:
    """The full set of tables consulted by one validator."""

    inappropriate: tuple[re.Pattern[str], ...] = INAPPROPRIATE_PATTERNS
    spam_phrases: tuple[str, ...] = SPAM_PHRASES
    misleading: tuple[re.Pattern[str], ...] = MISLEADING_PATTERNS
    call_to_action: tuple[re.Pattern[str], ...] = CALL_TO_ACTION_PATTERNS
    trending_hashtags: tuple[str, ...] = TRENDING_HASHTAGS


DEFAULT_RULES = RuleSet()


def first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> re.Pattern[str] | None:
    """Return the first pattern in table order that matches *text*."""
    for pattern in patterns:
        if pattern.search(text):
            return pattern
    return None


def contains_phrase(phrases: tuple[str, ...], text: str) -> str | None:
    lowered = text.lower()
    for phrase in phrases:
        if phrase.lower() in lowered:
            return phrase
    return None


def text_length(text: str) -> int:
    """Length in UTF-16 code units, the unit Instagram's caption limit uses."""
    return len(text.encode("utf-16-le")) // 2
