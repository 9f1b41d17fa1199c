"""Heuristic feature extractors.

Pure, synchronous functions over the concatenated conversation text.  Every
lexicon is matched case-insensitively as a plain substring, so "likes" hits
"like" and "always" hits both the explicit and the recurring lexicons.

Each extractor returns a value already normalized to [0, 10]; the explicit
marker check returns a bool that the aggregator maps to 10 or 0.
"""

from __future__ import annotations

# =====================================================================
# Lexicons
# =====================================================================

EXPLICIT_MARKERS: tuple[str, ...] = (
    "remember",
    "dont forget",
    "don't forget",
    "important",
    "note that",
    "keep in mind",
    "make sure to",
    "never forget",
    "always remember",
    "will need this",
    "save this",
    "store this",
    "always",
    "never",
    "must remember",
    "critical",
    "vital",
    "essential",
)

# (weight per hit, words)
EMOTIONAL_BUCKETS: dict[str, tuple[int, tuple[str, ...]]] = {
    "preference": (2, ("prefer", "like", "dislike", "want", "need", "wish", "hope", "love", "hate")),
    "negative": (2, ("hate", "frustrated", "annoyed", "angry", "upset", "disappointed", "sad", "terrible")),
    "concern": (3, ("worried", "concerned", "afraid", "scared", "nervous")),
    "positive": (1, ("love", "excited", "happy", "great", "awesome", "amazing", "fantastic", "wonderful")),
}

TIME_BUCKETS: dict[str, tuple[int, tuple[str, ...]]] = {
    "urgent": (3, ("urgent", "asap", "immediately", "right now", "emergency", "critical")),
    "deadline": (3, ("deadline", "due", "by monday", "by friday", "by tomorrow", "end of day", "eod")),
    "future": (
        2,
        (
            "tomorrow",
            "today",
            "next week",
            "upcoming",
            "soon",
            "this month",
            "next month",
            "schedule",
            "remind me",
        ),
    ),
    "recurring": (2, ("every week", "daily", "weekly", "monthly", "recurring", "always")),
}

HIGH_UTILITY: tuple[str, ...] = (
    # preferences
    "preference", "prefer", "like", "dislike", "love", "hate",
    # credentials
    "password", "credentials", "login", "account",
    # goals
    "project", "goal", "objective",
    # scheduling
    "meeting", "schedule", "appointment",
    # configuration
    "configuration", "config", "setup", "install",
)

MEDIUM_UTILITY: tuple[str, ...] = (
    "information", "fact", "detail", "remember", "note",
    "work", "task", "todo",
    "learn", "study", "research",
)

# Matched against the whole (trimmed) content, not as substrings.
LOW_UTILITY: frozenset[str] = frozenset(
    {"hello", "hi", "thanks", "thank you", "okay", "sure", "question", "what", "how", "why"}
)

MAX_FACTOR = 10
BASE_UTILITY = 5


# =====================================================================
# Extractors
# =====================================================================


def detect_explicit_markers(content: str) -> bool:
    """Return ``True`` if the text contains an explicit emphasis phrase.

    A hit forces ``store_explicit`` later, whatever the final score.
    """
    lower = content.lower()
    return any(marker in lower for marker in EXPLICIT_MARKERS)


def detect_emotional_weight(content: str) -> int:
    """Score emotional and preference content in [0, 10].

    Each lexicon hit adds its bucket weight: concern 3, preference and
    negative 2, positive 1.  A word listed in two buckets counts twice.
    """
    return _bucket_score(content, EMOTIONAL_BUCKETS)


def detect_time_sensitivity(content: str) -> int:
    """Score urgency, deadlines and scheduling cues in [0, 10]."""
    return _bucket_score(content, TIME_BUCKETS)


def predict_future_utility(content: str, segment_count: int) -> int:
    """Estimate how useful the content will be later, in [0, 10].

    Starts at 5.  Exactly one keyword bucket applies, checked high to low:
    +2 for a high-utility keyword, else +1 for a medium one, else -2 when
    the entire content is a throwaway phrase such as "thanks".  Longer
    conversations (more than 3 segments) get +1.

    Args:
        content: Concatenated conversation text.
        segment_count: Number of segments the text was built from.
    """
    lower = content.lower()
    score = BASE_UTILITY

    if any(word in lower for word in HIGH_UTILITY):
        score += 2
    elif any(word in lower for word in MEDIUM_UTILITY):
        score += 1
    elif _normalize_phrase(lower) in LOW_UTILITY:
        score -= 2

    if segment_count > 3:
        score += 1

    return _clamp(score)


# =====================================================================
# Helpers
# =====================================================================


def _bucket_score(content: str, buckets: dict[str, tuple[int, tuple[str, ...]]]) -> int:
    lower = content.lower()
    score = 0
    for weight, words in buckets.values():
        for word in words:
            if word in lower:
                score += weight
    return _clamp(score)


def _normalize_phrase(text: str) -> str:
    return text.strip().rstrip(".!?, ").strip()


def _clamp(value: int) -> int:
    return max(0, min(value, MAX_FACTOR))
