"""Score aggregation, tier classification and action resolution.

This module is the single transition table of the engine: given factors
and a ``ScoringConfig`` it decides score, tier, expiry and recommended
action.  Everything here is pure.
"""

from __future__ import annotations

from memcortex.config.scoring import ScoringConfig
from memcortex.core.types import RecommendedAction, ScoringFactors, ScoringResult
from memcortex.memory.base import MemoryTier
from memcortex.scoring.rounding import round_half_up

WEIGHTS: dict[str, float] = {
    "explicit_emphasis": 2.0,
    "emotional_weight": 1.5,
    "future_utility": 1.8,
    "repetition": 1.3,
    "time_sensitivity": 1.5,
    "context_anchoring": 1.2,
    "novelty": 1.0,
}

MAX_WEIGHTED_SUM = sum(10 * w for w in WEIGHTS.values())

#: Scores reported for each tier while scoring is disabled.
DISABLED_SCORES: dict[MemoryTier, int] = {
    MemoryTier.EXPLICIT: 9,
    MemoryTier.SILENT: 6,
    MemoryTier.EPHEMERAL: 3,
}

TRIVIAL_SCORE = 2
TRIVIAL_REASONING = "trivial"
DISABLED_REASONING = "Scoring disabled"

_TIER_ACTIONS: dict[MemoryTier, RecommendedAction] = {
    MemoryTier.EXPLICIT: RecommendedAction.STORE_EXPLICIT,
    MemoryTier.SILENT: RecommendedAction.STORE_SILENT,
    MemoryTier.EPHEMERAL: RecommendedAction.STORE_EPHEMERAL,
}


def calculate_weighted_score(factors: ScoringFactors) -> int:
    """Combine factors into one importance score in [0, 10].

    ``round(sum(f * w) / sum(10 * w) * 10)``, capped at 10.  Identical
    factor vectors always give identical scores.
    """
    values = factors.as_dict()
    weighted_sum = sum(values[name] * weight for name, weight in WEIGHTS.items())
    return min(round_half_up(weighted_sum / MAX_WEIGHTED_SUM * 10), 10)


def determine_tier(score: int, config: ScoringConfig) -> MemoryTier:
    """Map a score onto a tier using the configured thresholds."""
    if score >= config.explicit_threshold:
        return MemoryTier.EXPLICIT
    if score >= config.ephemeral_threshold:
        return MemoryTier.SILENT
    return MemoryTier.EPHEMERAL


def determine_action(tier: MemoryTier, has_explicit_marker: bool) -> RecommendedAction:
    """Resolve the storage action; an explicit marker always wins."""
    if has_explicit_marker:
        return RecommendedAction.STORE_EXPLICIT
    return _TIER_ACTIONS[tier]


def expires_in_hours(tier: MemoryTier, config: ScoringConfig) -> int | None:
    """Lifetime for a tier; ``None`` means permanent."""
    if tier is MemoryTier.EPHEMERAL:
        return config.default_ephemeral_hours
    if tier is MemoryTier.SILENT:
        return config.silent_hours
    return None


def build_result(
    score: int,
    config: ScoringConfig,
    reasoning: str,
    has_explicit_marker: bool = False,
) -> ScoringResult:
    """Assemble a ``ScoringResult`` whose tier and expiry follow from ``score``.

    An explicit marker forces the top tier (and so a permanent record)
    while the reported score stays the computed one.
    """
    tier = MemoryTier.EXPLICIT if has_explicit_marker else determine_tier(score, config)
    return ScoringResult(
        score=score,
        tier=tier,
        reasoning=reasoning,
        recommended_action=determine_action(tier, has_explicit_marker),
        expires_in_hours=expires_in_hours(tier, config),
    )


def disabled_result(config: ScoringConfig) -> ScoringResult:
    """Canned result used while scoring is disabled."""
    tier = config.default_tier
    return ScoringResult(
        score=DISABLED_SCORES[tier],
        tier=tier,
        reasoning=DISABLED_REASONING,
        recommended_action=_TIER_ACTIONS[tier],
        expires_in_hours=expires_in_hours(tier, config),
    )


def trivial_result(config: ScoringConfig) -> ScoringResult:
    """Fixed low result for conversations too short to be worth scoring."""
    return ScoringResult(
        score=TRIVIAL_SCORE,
        tier=MemoryTier.EPHEMERAL,
        reasoning=TRIVIAL_REASONING,
        recommended_action=RecommendedAction.STORE_EPHEMERAL,
        expires_in_hours=config.default_ephemeral_hours,
    )


def generate_reasoning(score: int, tier: MemoryTier, factors: ScoringFactors) -> str:
    """Human-readable explanation of a score.  Not authoritative."""
    reasons: list[str] = []

    if factors.explicit_emphasis:
        reasons.append("user explicitly asked to remember")
    if factors.emotional_weight > 3:
        reasons.append("emotional/preference content detected")
    if factors.repetition > 5:
        reasons.append("repeated information")
    if factors.repetition < 3:
        reasons.append("new, unique information")
    if factors.context_anchoring > 5:
        reasons.append("connects to existing memories")
    if factors.time_sensitivity > 3:
        reasons.append("time-sensitive information")
    if factors.novelty > 7:
        reasons.append("novel information")
    if factors.future_utility > 7:
        reasons.append("high future utility predicted")
    if factors.future_utility < 3:
        reasons.append("low future utility")

    if not reasons:
        reasons.append("routine conversation")

    return f"Score {score}/10 ({tier.value}): {', '.join(reasons)}"
