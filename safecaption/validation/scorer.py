"""Engagement, readability and hashtag-relevance metrics.

Pure functions of the caption text and hashtag list. None of them depends
on which safety checks were enabled.
"""

from __future__ import annotations

import math
import re
from typing import Sequence

from safecaption.validation.rules import (
    CALL_TO_ACTION_PATTERNS,
    ENGAGEMENT_EMOJI_PATTERN,
    first_match,
    text_length,
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def engagement_score(
    caption: str,
    hashtags: Sequence[str],
    call_to_action: tuple[re.Pattern[str], ...] = CALL_TO_ACTION_PATTERNS,
) -> int:
    """Predict how well a caption invites interaction.

    Starts at 50 and adds points for a call to action, a caption length in
    the 100-150 sweet spot, a moderate hashtag count and light emoji use.
    """
    score = 50

    if first_match(call_to_action, caption) is not None:
        score += 10

    length = text_length(caption)
    if 100 <= length <= 150:
        score += 20
    elif 50 <= length <= 200:
        score += 10

    tag_count = len(hashtags)
    if 5 <= tag_count <= 10:
        score += 15
    elif 3 <= tag_count <= 15:
        score += 10

    emoji_count = len(ENGAGEMENT_EMOJI_PATTERN.findall(caption))
    if 1 <= emoji_count <= 3:
        score += 5

    return min(100, score)


def readability_score(caption: str) -> int:
    """Score average words per sentence; 10-15 reads best on social media."""
    sentences = [s for s in _SENTENCE_SPLIT.split(caption) if s.strip()]
    words = caption.split()
    avg_words = len(words) / max(1, len(sentences))

    if 10 <= avg_words <= 15:
        return 90
    if 5 <= avg_words <= 20:
        return 70
    return 50


def hashtag_relevance(caption: str, hashtags: Sequence[str]) -> int:
    """Percentage of hashtags that overlap a word of the caption.

    A hashtag counts when a caption word is a substring of it or the other
    way round. Returns 50 when there are no hashtags to judge.
    """
    if not hashtags:
        return 50

    caption_words = caption.lower().split()
    relevant = 0
    for tag in hashtags:
        clean = (tag[1:] if tag.startswith("#") else tag).lower()
        if any(word in clean or clean in word for word in caption_words):
            relevant += 1

    return _round_half_up(relevant / len(hashtags) * 100)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
